[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dupscan"
version = "0.1.0"
description = "Concurrent duplicate file finder that filters by size, a head checksum and byte-by-byte comparison"
requires-python = ">=3.10"
keywords = ["duplicates", "files", "deduplication", "filesystem", "crc32"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
    "Topic :: Utilities",
]
dependencies = [
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
dupscan = "dupscan.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["dupscan"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
