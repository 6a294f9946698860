"""Custom exceptions for harlog package."""


class HarlogError(Exception):
    """Base exception class for all harlog errors."""


class HARParseError(HarlogError):
    """Raised when a HAR document or one of its entries cannot be parsed."""


class PathEscapeError(HarlogError):
    """Raised when an output file path resolves outside its root directory.

    Attributes:
        path: The candidate path as supplied by the filename function.
        root: The directory the path was required to stay within.
    """

    def __init__(self, path: str, root: str) -> None:
        super().__init__(f"file path {path} is outside of output directory {root}")
        self.path = path
        self.root = root


class ArchiveWriteError(HarlogError):
    """Raised when a HAR file cannot be written to disk."""
