"""Find duplicate files by size, head checksum and byte-by-byte comparison."""

__version__ = "0.1.0"