"""
Email Extractor Module

Turns uploaded spreadsheet bytes into a deduplicated list of candidate
email addresses.
"""

import csv
import io
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import openpyxl
import xlrd

from .config import (
    BASIC_FORMAT,
    EXTRACTION_PATTERN,
    MAX_EMAILS_FREE_TIER,
    MAX_FILE_SIZE_MB,
    MIME_TYPES,
)
from .errors import (
    EmptyExtractionError,
    ExtractionFailedError,
    FileTooLargeError,
    UnsupportedFormatError,
)
from .models import ExtractionResult

logger = logging.getLogger(__name__)


def _row_to_text(values) -> str:
    return ','.join('' if v is None else str(v) for v in values)


class TabularReader(ABC):
    """Flattens every sheet of a tabular file into comma-joined text lines."""

    @abstractmethod
    def to_text(self, data: bytes) -> str:
        pass


class XlsxReader(TabularReader):
    def to_text(self, data: bytes) -> str:
        workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        try:
            lines = []
            for sheet in workbook.worksheets:
                for row in sheet.iter_rows(values_only=True):
                    lines.append(_row_to_text(row))
            return '\n'.join(lines)
        finally:
            workbook.close()


class XlsReader(TabularReader):
    def to_text(self, data: bytes) -> str:
        book = xlrd.open_workbook(file_contents=data)
        lines = []
        for sheet in book.sheets():
            for index in range(sheet.nrows):
                lines.append(_row_to_text(sheet.row_values(index)))
        return '\n'.join(lines)


class CsvReader(TabularReader):
    # latin-1 maps every byte, so the last attempt always succeeds.
    encodings = ('utf-8-sig', 'cp1252', 'latin-1')

    def to_text(self, data: bytes) -> str:
        text = self._decode(data)
        return '\n'.join(_row_to_text(row) for row in csv.reader(io.StringIO(text)))

    def _decode(self, data: bytes) -> str:
        for encoding in self.encodings[:-1]:
            try:
                return data.decode(encoding)
            except UnicodeDecodeError:
                continue
        return data.decode(self.encodings[-1])


class EmailExtractor:
    """
    Extracts candidate emails from uploaded files.

    Candidates are lower-cased, deduplicated case-insensitively in first-seen
    order, filtered with the basic email format, and capped at ``max_emails``.

    Example:
        >>> extractor = EmailExtractor()
        >>> extractor.extract(b'alice@x.com, bob@x.com, alice@x.com', 'csv').emails
        ['alice@x.com', 'bob@x.com']
    """

    def __init__(self, max_emails: int = MAX_EMAILS_FREE_TIER,
                 max_file_size_mb: int = MAX_FILE_SIZE_MB,
                 readers: Optional[Dict[str, TabularReader]] = None):
        """
        Initialize the EmailExtractor.

        Args:
            max_emails: Maximum number of candidates returned
            max_file_size_mb: Upload size limit in megabytes
            readers: Tabular readers keyed by file type
        """
        self.max_emails = max_emails
        self.max_file_size_mb = max_file_size_mb
        self.readers = readers or {
            'xlsx': XlsxReader(),
            'xls': XlsReader(),
            'csv': CsvReader(),
        }

    @staticmethod
    def detect_file_type(filename: str, mime_type: str = '') -> str:
        """
        Determine the file type from its name, then its MIME type.

        Args:
            filename: Uploaded file name
            mime_type: Declared content type

        Returns:
            One of 'xlsx', 'xls', 'csv'

        Raises:
            UnsupportedFormatError: Neither name nor MIME type is supported
        """
        name = (filename or '').lower()
        for file_type in ('xlsx', 'xls', 'csv'):
            if name.endswith(f'.{file_type}'):
                return file_type

        mime = (mime_type or '').lower()
        for file_type, types in MIME_TYPES.items():
            if any(t in mime for t in types):
                return file_type

        raise UnsupportedFormatError()

    def check_size(self, size: int) -> None:
        if size > self.max_file_size_mb * 1024 * 1024:
            raise FileTooLargeError()

    def to_text(self, data: bytes, file_type: str) -> str:
        reader = self.readers.get(file_type)
        if reader is None:
            raise UnsupportedFormatError()
        try:
            return reader.to_text(data)
        except Exception as e:
            logger.warning(f"Failed to parse {file_type} upload: {e}")
            raise ExtractionFailedError(f"Failed to parse spreadsheet: {e}") from e

    @staticmethod
    def find_candidates(text: str) -> List[str]:
        return EXTRACTION_PATTERN.findall(text)

    @staticmethod
    def is_candidate(email: str) -> bool:
        return (
            len(email) > 5
            and '@' in email
            and bool(BASIC_FORMAT.match(email))
            and '..' not in email
            and not email.startswith('@')
            and not email.endswith('@')
        )

    def extract(self, data: bytes, file_type: str) -> ExtractionResult:
        """
        Extract candidate emails from file content.

        Args:
            data: Raw file bytes
            file_type: One of the supported file types

        Returns:
            ExtractionResult with unique candidates and truncation flag

        Raises:
            UnsupportedFormatError: No reader exists for the file type
            ExtractionFailedError: The file could not be parsed
            EmptyExtractionError: No candidate survived filtering
        """
        matches = self.find_candidates(self.to_text(data, file_type))

        unique = list(dict.fromkeys(m.strip().lower() for m in matches))
        candidates = [e for e in unique if self.is_candidate(e)]

        if not candidates:
            raise EmptyExtractionError()

        truncated = len(candidates) > self.max_emails
        if truncated:
            logger.info(f"Truncating {len(candidates)} extracted emails to {self.max_emails}")

        return ExtractionResult(
            emails=candidates[:self.max_emails],
            truncated=truncated,
            total_extracted=len(matches),
            duplicates_removed=len(matches) - len(unique),
        )
