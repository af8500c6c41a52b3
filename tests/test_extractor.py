"""
Unit Tests for EmailExtractor

File type detection, tabular parsing, deduplication, filtering and truncation.
"""

import io
from unittest.mock import MagicMock, patch

import pytest
from openpyxl import Workbook

from mailverify.errors import (
    EmptyExtractionError,
    ExtractionFailedError,
    FileProcessingError,
    FileTooLargeError,
    UnsupportedFormatError,
)
from mailverify.extractor import CsvReader, EmailExtractor, XlsReader, XlsxReader


def xlsx_bytes(*sheets):
    workbook = Workbook()
    workbook.remove(workbook.active)
    for index, rows in enumerate(sheets):
        sheet = workbook.create_sheet(f'Sheet{index + 1}')
        for row in rows:
            sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class TestDetectFileType:
    """Tests for upload type detection."""

    @pytest.mark.parametrize("filename,expected", [
        ("contacts.xlsx", "xlsx"),
        ("CONTACTS.XLSX", "xlsx"),
        ("legacy.xls", "xls"),
        ("export.csv", "csv"),
    ])
    def test_by_extension(self, filename, expected):
        """Test the file extension decides the type."""
        assert EmailExtractor.detect_file_type(filename) == expected

    @pytest.mark.parametrize("mime,expected", [
        ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
        ("application/vnd.ms-excel", "xls"),
        ("text/csv; charset=utf-8", "csv"),
    ])
    def test_by_mime_type(self, mime, expected):
        """Test the MIME type is used when the name has no known extension."""
        assert EmailExtractor.detect_file_type("upload", mime) == expected

    @pytest.mark.parametrize("filename,mime", [
        ("report.pdf", "application/pdf"),
        ("notes.txt", "text/plain"),
        ("", ""),
    ])
    def test_unsupported(self, filename, mime):
        """Test unknown uploads are rejected with a 400."""
        with pytest.raises(UnsupportedFormatError) as exc_info:
            EmailExtractor.detect_file_type(filename, mime)
        assert exc_info.value.status_code == 400
        assert exc_info.value.code == 'unsupported_format'


class TestExtractCsv:
    """Tests for extraction from CSV uploads."""

    def setup_method(self):
        self.extractor = EmailExtractor()

    def test_duplicates_removed_in_first_seen_order(self):
        """Test duplicates are dropped keeping first-seen order."""
        result = self.extractor.extract(b"alice@x.com, bob@x.com, alice@x.com", "csv")
        assert result.emails == ["alice@x.com", "bob@x.com"]
        assert result.truncated is False
        assert result.total_extracted == 3
        assert result.duplicates_removed == 1

    def test_case_insensitive_dedup(self):
        """Test addresses differing only in case are duplicates."""
        result = self.extractor.extract(b"name,email\nAnn,A@B.com\nann,a@b.com\n", "csv")
        assert result.emails == ["a@b.com"]

    def test_emails_found_anywhere_in_cells(self):
        """Test addresses embedded in free text are found."""
        data = b"id,notes\n1,Contact jane.doe@company.org for details\n2,n/a\n"
        assert self.extractor.extract(data, "csv").emails == ["jane.doe@company.org"]

    def test_double_dots_rejected(self):
        """Test candidates containing '..' are filtered out."""
        data = b"john..doe@x.com,ok@x.com,bad@host..com"
        assert self.extractor.extract(data, "csv").emails == ["ok@x.com"]

    def test_utf8_bom_is_ignored(self):
        """Test a leading UTF-8 BOM does not leak into the first cell."""
        data = "﻿email\nfirst@example.com\n".encode("utf-8")
        assert self.extractor.extract(data, "csv").emails == ["first@example.com"]

    def test_latin1_bytes_do_not_alter_addresses(self):
        """Test undecodable UTF-8 bytes never shorten an address into another one."""
        data = "jos\xe9@x.com,ok@x.com".encode("latin-1")
        emails = self.extractor.extract(data, "csv").emails
        assert "jos@x.com" not in emails
        assert emails == ["ok@x.com"]

    def test_no_candidates_raises(self):
        """Test a file without addresses raises EmptyExtractionError."""
        with pytest.raises(EmptyExtractionError) as exc_info:
            self.extractor.extract(b"name,phone\nBob,555-1234\n", "csv")
        assert exc_info.value.code == 'no_emails_found'
        assert isinstance(exc_info.value, FileProcessingError)

    def test_unknown_type_raises(self):
        """Test an unknown file type is rejected."""
        with pytest.raises(UnsupportedFormatError):
            self.extractor.extract(b"a@b.com", "pdf")


class TestTruncation:
    """Tests for the per-upload email cap."""

    def test_truncates_to_cap(self):
        """Test extraction keeps the first max_emails addresses."""
        data = "\n".join(f"user{i}@example.com" for i in range(150)).encode()
        result = EmailExtractor(max_emails=100).extract(data, "csv")
        assert len(result.emails) == 100
        assert result.truncated is True
        assert result.emails[0] == "user0@example.com"
        assert result.emails[-1] == "user99@example.com"

    def test_exactly_at_cap_is_not_truncated(self):
        """Test an upload exactly at the cap is not flagged."""
        data = "\n".join(f"user{i}@example.com" for i in range(100)).encode()
        result = EmailExtractor(max_emails=100).extract(data, "csv")
        assert len(result.emails) == 100
        assert result.truncated is False

    def test_default_cap_is_one_hundred(self):
        """Test the default cap."""
        assert EmailExtractor().max_emails == 100


class TestExtractXlsx:
    """Tests for extraction from xlsx uploads."""

    def test_all_sheets_are_read(self):
        """Test addresses from every sheet are collected."""
        data = xlsx_bytes(
            [("Name", "Email"), ("Ann", "ann@example.com"), ("Bob", None)],
            [("Other", "bob@example.com"), ("dup", "ANN@example.com")],
        )
        result = EmailExtractor().extract(data, "xlsx")
        assert result.emails == ["ann@example.com", "bob@example.com"]

    def test_corrupt_workbook_raises_extraction_failed(self):
        """Test unreadable workbooks raise ExtractionFailedError."""
        with pytest.raises(ExtractionFailedError) as exc_info:
            EmailExtractor().extract(b"this is not a zip archive", "xlsx")
        assert exc_info.value.code == 'extraction_failed'
        assert exc_info.value.param == 'file'


class TestReaders:
    """Tests for the tabular-to-text readers."""

    def test_xlsx_reader_flattens_rows(self):
        """Test xlsx rows become comma-joined lines."""
        data = xlsx_bytes([("a", 1), ("b@c.com", "x")])
        assert XlsxReader().to_text(data) == "a,1\nb@c.com,x"

    def test_csv_reader_flattens_rows(self):
        """Test quoted CSV cells are unwrapped."""
        assert CsvReader().to_text(b'x,"y,z"\n1,2\n') == "x,y,z\n1,2"

    def test_csv_reader_falls_back_to_single_byte_encoding(self):
        """Test non-UTF-8 CSV text is decoded without losing characters."""
        data = "Zo\xeb,zoe@example.com".encode("cp1252")
        assert CsvReader().to_text(data) == "Zo\xeb,zoe@example.com"

    def test_csv_reader_prefers_utf8(self):
        """Test valid UTF-8 is decoded as UTF-8."""
        data = "Jos\xe9,jose@example.com".encode("utf-8")
        assert CsvReader().to_text(data) == "Jos\xe9,jose@example.com"

    def test_xls_reader_uses_every_sheet(self):
        """Test xls rows from every sheet are flattened."""
        sheet1 = MagicMock(nrows=2)
        sheet1.row_values.side_effect = [["Email"], ["old@legacy.com"]]
        sheet2 = MagicMock(nrows=1)
        sheet2.row_values.side_effect = [["second@legacy.com", 3.0]]
        book = MagicMock()
        book.sheets.return_value = [sheet1, sheet2]

        with patch('mailverify.extractor.xlrd.open_workbook', return_value=book) as open_workbook:
            text = XlsReader().to_text(b"binary")

        open_workbook.assert_called_once_with(file_contents=b"binary")
        assert text == "Email\nold@legacy.com\nsecond@legacy.com,3.0"

    def test_custom_reader(self):
        """Test a reader can be injected per file type."""
        reader = MagicMock()
        reader.to_text.return_value = "from@custom.io"
        extractor = EmailExtractor(readers={'csv': reader})
        assert extractor.extract(b"ignored", "csv").emails == ["from@custom.io"]


class TestFileSize:
    """Tests for the upload size limit."""

    def test_within_limit(self):
        """Test a file exactly at the limit is accepted."""
        EmailExtractor(max_file_size_mb=1).check_size(1024 * 1024)

    def test_over_limit(self):
        """Test a file over the limit raises FileTooLargeError."""
        with pytest.raises(FileTooLargeError) as exc_info:
            EmailExtractor(max_file_size_mb=1).check_size(1024 * 1024 + 1)
        assert exc_info.value.code == 'file_too_large'
