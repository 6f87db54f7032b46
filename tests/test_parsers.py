"""
Unit tests for document text extraction.
"""

import io

import pytest
from pypdf import PdfWriter

from cvmatch.errors import ExtractionError
from cvmatch.parsers import FileType, ParseError, detect_file_type, parse_file


def blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class TestDetectFileType:
    @pytest.mark.parametrize("filename,expected", [
        ("cv.pdf", FileType.PDF),
        ("CV.PDF", FileType.PDF),
        ("cv.txt", FileType.TEXT),
        ("notes.md", FileType.TEXT),
        ("cv.docx", FileType.UNKNOWN),
    ])
    def test_by_extension(self, filename, expected):
        assert detect_file_type(filename) == expected

    def test_by_magic_bytes(self):
        assert detect_file_type("upload", b"%PDF-1.7") == FileType.PDF
        assert detect_file_type("upload", b"hello") == FileType.UNKNOWN


class TestParseFile:
    def test_plain_text(self):
        doc = parse_file(io.BytesIO("Ana Silva\nEngenheira de Software".encode()), "ana.txt")

        assert doc.file_type == FileType.TEXT
        assert doc.text == "Ana Silva\nEngenheira de Software"
        assert doc.metadata["filename"] == "ana.txt"

    def test_empty_text_raises(self):
        with pytest.raises(ParseError):
            parse_file(io.BytesIO(b"   \n"), "empty.txt")

    def test_unsupported_type_raises(self):
        with pytest.raises(ParseError):
            parse_file(io.BytesIO(b"PK\x03\x04"), "cv.docx")

    def test_pdf_without_text_raises(self):
        with pytest.raises(ParseError):
            parse_file(io.BytesIO(blank_pdf()), "scan.pdf")

    def test_parse_error_is_an_extraction_error(self):
        assert issubclass(ParseError, ExtractionError)
