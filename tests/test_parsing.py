"""
Tests for the fixed-width batch file parser.

These tests verify:
  - The reference file yields its card numbers in file order
  - Header rules: missing or shorter than 51 chars fails on line 1
  - The "LOTE" footer stops scanning
  - Short lines, blank numbers and undecodable number columns are counted, not fatal
  - Empty, oversize and record-less inputs are rejected
  - Size checks happen before any line is read
"""

import io

import pytest

from card_vault.exceptions import (
    EmptyBatchError,
    EmptyInputError,
    FileTooLargeError,
    InvalidHeaderError,
)
from card_vault.parsing import CardFileParser, RecordParseWarning

HEADER = "DESAFIO-HYPERATIVA           20180524LOTE0001000010"
MAX_SIZE = 10 * 1024 * 1024


@pytest.fixture
def parser():
    return CardFileParser(max_size_bytes=MAX_SIZE)


def parse_bytes(parser, data: bytes, **kwargs):
    return parser.parse(io.BytesIO(data), **kwargs)


class TestValidFiles:

    def test_reference_file(self, parser, make_batch_file):
        """The documented example file yields both numbers, in order."""
        data = make_batch_file(["4456897922969999", "1234567890123456"])

        result = parse_bytes(parser, data)

        assert result.card_numbers == ["4456897922969999", "1234567890123456"]
        assert result.skipped_lines == 0
        assert result.invalid_lines == 0
        assert result.footer_line == 4
        assert result.declared_count == 2
        assert result.lines_read == 4

    def test_number_is_trimmed(self, parser, make_batch_file):
        """Whitespace around the number inside columns 8-26 is removed."""
        line = "C1" + " " * 7 + "4456897922969" + " " * 4
        assert len(line) == 26
        data = make_batch_file(lines=[line])

        result = parse_bytes(parser, data)

        assert result.card_numbers == ["4456897922969"]

    def test_characters_after_column_26_ignored(self, parser, make_batch_file):
        """Only [7, 26) is read; trailing content is not part of the number."""
        data = make_batch_file(lines=["C1     4456897922969999   EXTRA DATA"])

        assert parse_bytes(parser, data).card_numbers == ["4456897922969999"]

    def test_crlf_line_endings(self, parser):
        """Windows line endings parse the same as Unix ones."""
        data = "\r\n".join([
            HEADER,
            "C1     4456897922969999   ",
            "LOTE0001000001",
        ]).encode()

        assert parse_bytes(parser, data).card_numbers == ["4456897922969999"]

    def test_missing_footer(self, parser):
        """Without a footer every line to end of file is a record line."""
        data = "\n".join([HEADER, "C1     4456897922969999   "]).encode()

        result = parse_bytes(parser, data)

        assert result.card_numbers == ["4456897922969999"]
        assert result.footer_line is None

    def test_invalid_numbers_are_still_returned(self, parser, make_batch_file):
        """Length/digit validation belongs to ingestion, not to the parser."""
        data = make_batch_file(["12345", "ABCDEFGHIJKLMNOP"])

        assert parse_bytes(parser, data).card_numbers == ["12345", "ABCDEFGHIJKLMNOP"]


class TestFooter:

    def test_lines_after_footer_ignored(self, parser):
        """Nothing after the first LOTE line is read as a record."""
        data = "\n".join([
            HEADER,
            "C1     4456897922969999   ",
            "LOTE0001000001",
            "C2     1234567890123456   ",
        ]).encode()

        result = parse_bytes(parser, data)

        assert result.card_numbers == ["4456897922969999"]
        assert result.lines_read == 3

    def test_header_containing_lote_is_not_a_footer(self, parser, make_batch_file):
        """The header mentions LOTE but does not start with it."""
        data = make_batch_file(["4456897922969999"])

        assert parse_bytes(parser, data).card_numbers == ["4456897922969999"]

    def test_unreadable_declared_count(self, parser, make_batch_file):
        """A footer without a numeric count still ends the scan."""
        data = make_batch_file(["4456897922969999"], footer="LOTE")

        result = parse_bytes(parser, data)

        assert result.declared_count is None
        assert result.footer_line == 3


class TestSkippedAndInvalidLines:

    def test_short_line_skipped(self, parser, make_batch_file):
        """Lines under 26 chars are skipped and later lines still parsed."""
        data = make_batch_file(lines=[
            "C1     4456897922969999",      # 23 chars
            "C2     1234567890123456   ",
        ])

        result = parse_bytes(parser, data)

        assert result.card_numbers == ["1234567890123456"]
        assert result.skipped_lines == 1
        assert result.warnings == [
            RecordParseWarning(2, "short_line", "line is too short (length: 23)")
        ]

    def test_empty_line_skipped(self, parser, make_batch_file):
        """A blank line is just a short line."""
        data = make_batch_file(lines=["", "C2     1234567890123456   "])

        result = parse_bytes(parser, data)

        assert result.card_numbers == ["1234567890123456"]
        assert result.skipped_lines == 1

    def test_blank_number_skipped(self, parser, make_batch_file):
        """A long enough line with nothing in columns 8-26 contributes nothing."""
        data = make_batch_file(lines=[
            "C1" + " " * 30,
            "C2     1234567890123456   ",
        ])

        result = parse_bytes(parser, data)

        assert result.card_numbers == ["1234567890123456"]
        assert result.skipped_lines == 1
        assert result.warnings[0].kind == "blank_number"

    def test_undecodable_number_counted_as_invalid(self, parser):
        """Non-UTF-8 bytes inside the number columns make the record invalid."""
        data = b"\n".join([
            HEADER.encode(),
            b"C1     \xff\xfe56897922969999   ",
            b"C2     1234567890123456   ",
            b"LOTE0001000002",
        ])

        result = parse_bytes(parser, data)

        assert result.card_numbers == ["1234567890123456"]
        assert result.invalid_lines == 1
        assert result.skipped_lines == 0
        assert result.warnings[0].line_number == 2
        assert result.warnings[0].kind == "undecodable"

    def test_undecodable_bytes_after_number_ignored(self, parser):
        """Latin-1 text after column 26 doesn't cost the card on that line."""
        data = b"\n".join([
            HEADER.encode(),
            b"C1     4456897922969999   Jos\xe9",
            b"LOTE0001000001",
        ])

        result = parse_bytes(parser, data)

        assert result.card_numbers == ["4456897922969999"]
        assert result.invalid_lines == 0
        assert result.warnings == []


class TestHeader:

    def test_short_header_rejected(self, parser, make_batch_file):
        """A header under 51 chars fails, naming line 1."""
        data = make_batch_file(["4456897922969999"], header="DESAFIO-HYPERATIVA 20180524")

        with pytest.raises(InvalidHeaderError) as exc_info:
            parse_bytes(parser, data)

        assert exc_info.value.line_number == 1
        assert exc_info.value.actual_length == 27
        assert "line 1" in exc_info.value.detail

    def test_header_of_exactly_51_chars_accepted(self, parser, make_batch_file):
        """51 chars is the minimum, not a strict lower bound."""
        assert len(HEADER) == 51
        data = make_batch_file(["4456897922969999"], header=HEADER)

        assert parse_bytes(parser, data).card_numbers == ["4456897922969999"]

    def test_header_error_wins_over_empty_batch(self, parser):
        """A short header is reported even when there are no records either."""
        with pytest.raises(InvalidHeaderError):
            parse_bytes(parser, b"HEADER\nLOTE0001000000\n")

    def test_header_with_latin1_bytes_accepted(self, parser):
        """Header content isn't checked; a byte that isn't UTF-8 still counts toward the length."""
        data = b"\n".join([
            HEADER.encode() + b" S\xe3o Paulo",
            b"C1     4456897922969999   ",
            b"LOTE0001000001",
        ])

        assert parse_bytes(parser, data).card_numbers == ["4456897922969999"]

    def test_short_header_with_latin1_bytes_reports_its_length(self, parser):
        """A bad byte is counted as one character in the reported header length."""
        with pytest.raises(InvalidHeaderError) as exc_info:
            parse_bytes(parser, b"S\xe3o Paulo\nC1     4456897922969999   \n")

        assert exc_info.value.actual_length == 9


class TestEmptyAndOversizeInputs:

    def test_zero_length_input(self, parser):
        """An empty upload is rejected before parsing."""
        with pytest.raises(EmptyInputError):
            parse_bytes(parser, b"")

    def test_missing_stream(self, parser):
        """No stream at all is the same as an empty upload."""
        with pytest.raises(EmptyInputError):
            parser.parse(None)

    def test_only_header_and_footer(self, parser):
        """A valid header followed directly by the footer has no records."""
        data = f"{HEADER}\nLOTE0001000000\n".encode()

        with pytest.raises(EmptyBatchError):
            parse_bytes(parser, data)

    def test_only_skipped_lines(self, parser, make_batch_file):
        """Emptiness is decided after scanning every line."""
        data = make_batch_file(lines=["C1", "C2     short"])

        with pytest.raises(EmptyBatchError):
            parse_bytes(parser, data)

    def test_file_too_large(self, make_batch_file):
        """Inputs over the configured limit are rejected."""
        data = make_batch_file(["4456897922969999"])
        parser = CardFileParser(max_size_bytes=len(data) - 1)

        with pytest.raises(FileTooLargeError) as exc_info:
            parse_bytes(parser, data)

        assert exc_info.value.size == len(data)
        assert exc_info.value.max_size == len(data) - 1

    def test_declared_size_checked_before_reading(self, parser):
        """An oversize declared size fails without touching the stream."""

        class Unreadable(io.BytesIO):
            def readline(self, *args):
                raise AssertionError("stream must not be read")

        with pytest.raises(FileTooLargeError):
            parser.parse(Unreadable(b"x"), size=MAX_SIZE + 1)

    def test_declared_zero_size(self, parser):
        """A declared size of zero is an empty input."""
        with pytest.raises(EmptyInputError):
            parser.parse(io.BytesIO(b"ignored"), size=0)

    def test_stream_without_seekable_parsed_unmeasured(self, parser, make_batch_file):
        """A stream offering only readline is parsed with the size checks skipped."""
        data = make_batch_file(["4456897922969999"])

        class ReadlineOnly:
            def __init__(self, payload):
                self._buffer = io.BytesIO(payload)

            def readline(self, *args):
                return self._buffer.readline(*args)

        result = parser.parse(ReadlineOnly(data))

        assert result.card_numbers == ["4456897922969999"]

    def test_metadata_mismatch_only_warns(self, parser, make_batch_file, caplog):
        """A non-.txt name or non-text content type is logged, not rejected."""
        data = make_batch_file(["4456897922969999"])

        result = parse_bytes(
            parser, data, filename="cards.csv", content_type="application/octet-stream"
        )

        assert result.card_numbers == ["4456897922969999"]
        assert "not .txt" in caplog.text
        assert "not text/plain" in caplog.text
