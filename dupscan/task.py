"""Tasks passed through the search pipeline and the sorted search result."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping


@dataclass(frozen=True)
class Key:
    """Identity of a candidate group: file size, head hash and equality group."""

    size: int = 0
    hash: int = 0
    equal: int = 0


@dataclass
class Info:
    """What is known about a single file besides its key."""

    checked: bool = False
    path: str = ""


@dataclass
class Task:
    """A file (or folder) travelling through the pipeline."""

    key: Key = field(default_factory=Key)
    info: Info = field(default_factory=Info)

    @property
    def path(self) -> str:
        return self.info.path

    @property
    def size(self) -> int:
        return self.key.size


@dataclass
class Element:
    """One group of identical files."""

    size: int
    hash: int
    group: int
    paths: list[str] = field(default_factory=list)


@dataclass
class Result:
    """All groups of identical files, ordered by size, hash and group."""

    elements: list[Element] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self) -> Iterator[Element]:
        return iter(self.elements)


def element_sort_key(element: Element) -> tuple[int, int, int]:
    """Ordering of result elements: by size, then hash, then group."""
    return (element.size, element.hash, element.group)


def build_result(groups: Mapping[Key, Iterable[str]]) -> Result:
    """Turn a mapping of keys to paths into a sorted result."""
    elements = [
        Element(size=key.size, hash=key.hash, group=key.equal, paths=sorted(paths))
        for key, paths in groups.items()
    ]
    elements.sort(key=element_sort_key)
    return Result(elements)