"""
Interfaces for trace file parsers.
"""

from abc import ABC, abstractmethod
from typing import Iterator, List, Tuple, TYPE_CHECKING

from ..exceptions import TraceFileReadError

if TYPE_CHECKING:
    from ..models import Span


class TraceParser(ABC):
    """Abstract interface for parsers that turn a trace file into spans."""

    @property
    @abstractmethod
    def supported_extensions(self) -> Tuple[str, ...]:
        """
        File extensions handled by this parser, lower-case with a leading dot.
        """
        pass

    @abstractmethod
    def parse(self, file_path: str) -> List["Span"]:
        """
        Parse a trace file and return all spans found.

        Malformed records are skipped; only an unreadable file fails.

        Args:
            file_path: Path to the trace file

        Returns:
            List of spans in file order

        Raises:
            TraceFileReadError: If the file cannot be opened or read
        """
        pass

    @staticmethod
    def read_lines(file_path: str) -> Iterator[str]:
        """Yield the lines of a file without trailing newlines."""
        try:
            with open(file_path, "r", encoding="utf-8-sig", errors="replace") as fh:
                for line in fh:
                    yield line.rstrip("\r\n")
        except OSError as e:
            raise TraceFileReadError(file_path, str(e)) from e
