"""
Custom exception classes and FastAPI exception handlers.

The core (crypto, parsing, services) raises these domain errors without
knowing anything about HTTP. register_exception_handlers() translates them
into JSON responses of the form {"detail": ..., "error_type": ...}.

Exception hierarchy:
    CardVaultError (base)
    ├── BatchFileError
    │   ├── EmptyInputError        - upload is missing or zero bytes
    │   ├── FileTooLargeError      - upload exceeds MAX_UPLOAD_SIZE_BYTES
    │   ├── InvalidHeaderError     - first line missing or shorter than 51 chars
    │   └── EmptyBatchError        - no usable card numbers after a full scan
    ├── CryptoError                - envelope undecodable, tampered or wrong key
    ├── DuplicateCardError         - card number already stored (unique hash)
    ├── CardNotFoundError          - lookup miss
    ├── DuplicateUsernameError     - registering a taken username
    └── InvalidCredentialsError    - login failed

Per-line problems found while parsing a batch file are NOT exceptions: they
are reported as RecordParseWarning values on the ParseResult
(see card_vault.parsing).
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class CardVaultError(Exception):
    """Base exception for all Card Vault domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Batch file errors (fatal for the whole upload)
# ---------------------------------------------------------------------------

class BatchFileError(CardVaultError):
    """Base class for errors that reject an uploaded batch file as a whole."""


class EmptyInputError(BatchFileError):
    """Raised when the uploaded file is missing or has zero length."""

    def __init__(self):
        super().__init__("File is empty or missing")


class FileTooLargeError(BatchFileError):
    """
    Raised before parsing when the declared size is over the configured limit.

    Attributes:
        size: The size of the rejected input, in bytes.
        max_size: The configured maximum, in bytes.
    """

    def __init__(self, size: int, max_size: int):
        self.size = size
        self.max_size = max_size
        super().__init__(
            f"File size ({size} bytes) exceeds maximum allowed size "
            f"({max_size} bytes)"
        )


class InvalidHeaderError(BatchFileError):
    """Raised when the header line is missing or too short."""

    def __init__(self, line_number: int, expected_length: int, actual_length: int):
        self.line_number = line_number
        self.expected_length = expected_length
        self.actual_length = actual_length
        super().__init__(
            f"Invalid file format: header at line {line_number} is missing or "
            f"too short (expected {expected_length} chars, got {actual_length})"
        )


class EmptyBatchError(BatchFileError):
    """Raised when a batch yields no card numbers to store."""

    def __init__(self, detail: str = "No valid card numbers found in file"):
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Crypto and storage errors
# ---------------------------------------------------------------------------

class CryptoError(CardVaultError):
    """Raised when a value cannot be encrypted or an envelope cannot be opened."""


class DuplicateCardError(CardVaultError):
    """Raised when a card number (by search hash) is already stored."""

    def __init__(self, detail: str = "Card number is already registered"):
        super().__init__(detail)


class CardNotFoundError(CardVaultError):
    """Raised when no card matches a lookup key."""

    def __init__(self):
        super().__init__("Card not found")


# ---------------------------------------------------------------------------
# Authentication errors
# ---------------------------------------------------------------------------

class DuplicateUsernameError(CardVaultError):
    """Raised when attempting to register a username that's already in use."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"User {username} already exists")


class InvalidCredentialsError(CardVaultError):
    """Raised when login credentials are incorrect."""

    def __init__(self):
        super().__init__("Invalid username or password")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

# (exception class, HTTP status, error_type)
_ERROR_RESPONSES: list[tuple[type[CardVaultError], int, str]] = [
    (EmptyInputError, 400, "empty_input"),
    (FileTooLargeError, 413, "file_too_large"),
    (InvalidHeaderError, 400, "invalid_header"),
    (EmptyBatchError, 400, "empty_batch"),
    (CryptoError, 500, "crypto_error"),
    (DuplicateCardError, 409, "duplicate_card"),
    (CardNotFoundError, 404, "card_not_found"),
    (DuplicateUsernameError, 409, "duplicate_username"),
    (InvalidCredentialsError, 401, "invalid_credentials"),
]


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Each handler maps a domain exception to an HTTP status code and a
    consistent JSON body: {"detail": "...", "error_type": "..."}.
    InvalidHeaderError responses also carry the offending line number.

    This is called once during app startup in main.py.
    """

    def make_handler(status_code: int, error_type: str):
        async def handler(request: Request, exc: CardVaultError) -> JSONResponse:
            content = {"detail": exc.detail, "error_type": error_type}
            if isinstance(exc, InvalidHeaderError):
                content["line_number"] = exc.line_number
            return JSONResponse(status_code=status_code, content=content)

        return handler

    for exc_class, status_code, error_type in _ERROR_RESPONSES:
        app.add_exception_handler(exc_class, make_handler(status_code, error_type))
