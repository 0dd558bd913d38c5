"""
Factory selecting a trace parser by file extension.
"""

from typing import List, Optional, Sequence
import logging
import os

from .interfaces import TraceParser
from .jsonl_file import JsonlFileParser
from .log_file import LogFileParser
from ..exceptions import UnsupportedFileTypeError
from ..models import TraceFileType

_FILE_TYPES = {
    ".log": TraceFileType.LOG,
    ".jsonl": TraceFileType.JSONL,
}


class TraceParserFactory:
    """
    Creates trace parsers based on file extension.
    """

    def __init__(self, parsers: Optional[Sequence[TraceParser]] = None):
        """
        Initialize the factory.

        Args:
            parsers: Parsers to choose from; defaults to the .log and .jsonl parsers
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self._parsers: List[TraceParser] = list(parsers) if parsers is not None else [
            LogFileParser(),
            JsonlFileParser(),
        ]

    @property
    def supported_extensions(self) -> List[str]:
        return [ext for parser in self._parsers for ext in parser.supported_extensions]

    @staticmethod
    def _extension(file_path: str) -> str:
        return os.path.splitext(file_path)[1].lower()

    def get_parser(self, file_path: str) -> Optional[TraceParser]:
        """
        Get the parser for the given file path.

        Args:
            file_path: Path to the trace file

        Returns:
            The matching parser, or None if the extension is unsupported
        """
        extension = self._extension(file_path)
        for parser in self._parsers:
            if extension in parser.supported_extensions:
                return parser
        return None

    def require_parser(self, file_path: str) -> TraceParser:
        """Like get_parser, but raises UnsupportedFileTypeError instead of returning None."""
        parser = self.get_parser(file_path)
        if parser is None:
            raise UnsupportedFileTypeError(file_path)
        return parser

    def is_supported(self, file_path: str) -> bool:
        return self.get_parser(file_path) is not None

    def get_file_type(self, file_path: str) -> TraceFileType:
        return _FILE_TYPES.get(self._extension(file_path), TraceFileType.LOG)
