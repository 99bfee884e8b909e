"""
Fixed-width batch file parser.

Batch uploads are plain text files with one card number per line:

    DESAFIO-HYPERATIVA           20180524LOTE0001000010      <- header, >= 51 chars
    C1     4456897922969999                                  <- record lines,
    C2     4456897999999999                                     number at [7, 26)
    LOTE0001000002                                           <- footer

Rules:
  - Line 1 (header) must exist and be at least 51 characters long.
    Otherwise InvalidHeaderError, naming line 1.
  - The first later line starting with "LOTE" is the footer. Scanning
    stops there; nothing after it is read.
  - Record lines shorter than 26 characters are skipped.
  - The card number is line[7:26] with surrounding whitespace removed;
    a blank number skips the line.
  - Bytes that are not UTF-8 are replaced with U+FFFD and never fail a
    line. A record whose number columns hold such a byte is counted as
    invalid and scanning continues.
  - Zero card numbers after the whole scan is an EmptyBatchError.

Per-line problems are advisory. They come back as RecordParseWarning values
in the ParseResult and never abort the parse. Only file-level problems raise.

The input is read one line at a time from a binary stream, so memory use
does not grow with the file, apart from the list of extracted numbers.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import BinaryIO

from card_vault.exceptions import (
    EmptyBatchError,
    EmptyInputError,
    FileTooLargeError,
    InvalidHeaderError,
)

logger = logging.getLogger(__name__)

FOOTER_SENTINEL = "LOTE"
HEADER_MIN_LENGTH = 51
RECORD_MIN_LENGTH = 26
CARD_NUMBER_START = 7
CARD_NUMBER_END = 26
# Footer layout: "LOTE" + batch number (4) + record count (6)
FOOTER_COUNT_SLICE = slice(8, 14)

ENCODING = "utf-8"
REPLACEMENT_CHARACTER = "\ufffd"


@dataclass(frozen=True)
class RecordParseWarning:
    """A non-fatal problem with one record line."""
    line_number: int
    kind: str       # "short_line", "blank_number" or "undecodable"
    message: str


@dataclass
class ParseResult:
    """Outcome of a successful parse: the card numbers plus line accounting."""
    card_numbers: list[str] = field(default_factory=list)
    lines_read: int = 0
    skipped_lines: int = 0
    invalid_lines: int = 0
    footer_line: int | None = None
    declared_count: int | None = None
    warnings: list[RecordParseWarning] = field(default_factory=list)


def _decode_line(raw: bytes) -> str:
    return raw.rstrip(b"\r\n").decode(ENCODING, errors="replace")


def _measure(stream: BinaryIO) -> int | None:
    """Bytes remaining in a seekable stream, or None if it can't be measured."""
    seekable = getattr(stream, "seekable", None)
    if seekable is None or not seekable():
        return None
    position = stream.tell()
    end = stream.seek(0, os.SEEK_END)
    stream.seek(position)
    return end - position


class CardFileParser:
    """
    Streams a fixed-width batch file into an ordered list of card numbers.

    Args:
        max_size_bytes: Largest accepted input. Checked before any line is read.
    """

    def __init__(self, max_size_bytes: int):
        self.max_size_bytes = max_size_bytes

    def validate(
        self,
        size: int | None,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> None:
        """
        Pre-parse checks on the upload as a whole.

        A size of None means the size is unknown (a non-seekable stream with
        no declared size); only the metadata checks apply then.

        Raises:
            EmptyInputError: If the size is zero.
            FileTooLargeError: If size exceeds max_size_bytes.
        """
        if size is not None and size <= 0:
            raise EmptyInputError()

        if size is not None and size > self.max_size_bytes:
            raise FileTooLargeError(size, self.max_size_bytes)

        # Metadata mismatches are tolerated: the content decides.
        if content_type and "text" not in content_type:
            logger.warning(
                "File content type '%s' is not text/plain, but will attempt to process",
                content_type,
            )
        if filename and not filename.lower().endswith(".txt"):
            logger.warning("File extension is not .txt: %s", filename)

    def parse(
        self,
        stream: BinaryIO | None,
        size: int | None = None,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> ParseResult:
        """
        Validate and parse a batch file.

        Args:
            stream: Binary file object positioned at the start of the file.
            size: Declared size in bytes. Measured from the stream if omitted.
            filename: Original filename, only used for a warning.
            content_type: Declared MIME type, only used for a warning.

        Returns:
            ParseResult with at least one card number.

        Raises:
            EmptyInputError, FileTooLargeError: Before reading any line.
            InvalidHeaderError: If line 1 is missing or too short.
            EmptyBatchError: If no card number was found after the full scan.
        """
        if stream is None:
            raise EmptyInputError()
        if size is None:
            size = _measure(stream)
        self.validate(size, filename=filename, content_type=content_type)

        result = ParseResult()
        lines = iter(stream.readline, b"")

        self._read_header(next(lines, None))
        line_number = 1

        for raw in lines:
            line_number += 1
            line = _decode_line(raw)

            if line.startswith(FOOTER_SENTINEL):
                logger.info("Footer found at line %d, stopping processing", line_number)
                result.footer_line = line_number
                result.declared_count = self._declared_count(line)
                break

            if len(line) < RECORD_MIN_LENGTH:
                self._skip(
                    result, line_number, "short_line",
                    f"line is too short (length: {len(line)})",
                )
                continue

            card_number = line[CARD_NUMBER_START:CARD_NUMBER_END].strip()
            if not card_number:
                self._skip(result, line_number, "blank_number", "no card number in columns 8-26")
                continue

            if REPLACEMENT_CHARACTER in card_number:
                self._reject(
                    result, line_number, "undecodable",
                    "card number columns contain bytes that are not UTF-8",
                )
                continue

            result.card_numbers.append(card_number)

        result.lines_read = line_number

        logger.info(
            "File processing completed: %d cards, %d skipped lines, %d invalid lines "
            "from %d total lines",
            len(result.card_numbers), result.skipped_lines, result.invalid_lines, line_number,
        )
        if (
            result.declared_count is not None
            and result.declared_count != len(result.card_numbers)
        ):
            logger.warning(
                "Footer declares %d records but %d card numbers were read",
                result.declared_count, len(result.card_numbers),
            )

        if not result.card_numbers:
            raise EmptyBatchError()

        return result

    @staticmethod
    def _read_header(raw: bytes | None) -> None:
        if raw is None:
            raise InvalidHeaderError(1, HEADER_MIN_LENGTH, 0)
        header = _decode_line(raw)
        if len(header) < HEADER_MIN_LENGTH:
            raise InvalidHeaderError(1, HEADER_MIN_LENGTH, len(header))

    @staticmethod
    def _declared_count(footer: str) -> int | None:
        digits = footer[FOOTER_COUNT_SLICE]
        if len(digits) == FOOTER_COUNT_SLICE.stop - FOOTER_COUNT_SLICE.start and digits.isdigit():
            return int(digits)
        return None

    @staticmethod
    def _skip(result: ParseResult, line_number: int, kind: str, message: str) -> None:
        logger.warning("Line %d skipped: %s", line_number, message)
        result.skipped_lines += 1
        result.warnings.append(RecordParseWarning(line_number, kind, message))

    @staticmethod
    def _reject(result: ParseResult, line_number: int, kind: str, message: str) -> None:
        logger.error("Failed to parse card at line %d: %s", line_number, message)
        result.invalid_lines += 1
        result.warnings.append(RecordParseWarning(line_number, kind, message))
