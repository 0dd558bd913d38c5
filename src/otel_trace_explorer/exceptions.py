"""
Exceptions raised by the trace explorer.
"""


class TraceExplorerError(Exception):
    """Base class for all trace explorer errors."""


class TraceFileReadError(TraceExplorerError):
    """A trace file could not be opened or read."""

    def __init__(self, file_path: str, reason: str = ""):
        self.file_path = file_path
        message = f"Failed to read trace file '{file_path}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UnsupportedFileTypeError(TraceExplorerError):
    """No parser is registered for the file's extension."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(f"Unsupported trace file type: '{file_path}'")


class NothingToDoError(TraceExplorerError):
    """No supported trace files were supplied."""
