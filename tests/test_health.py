"""
Tests for the health check and the error response format.
"""

from card_vault.exceptions import (
    CryptoError,
    EmptyBatchError,
    FileTooLargeError,
    InvalidHeaderError,
)


class TestHealth:

    async def test_health_check(self, client):
        """The health endpoint needs no token and reports the version."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestErrorDetails:
    """Domain errors carry readable details without card data."""

    def test_file_too_large_detail(self):
        """The detail names both sizes."""
        error = FileTooLargeError(size=2048, max_size=1024)
        assert "2048" in error.detail
        assert "1024" in error.detail

    def test_invalid_header_detail(self):
        """The detail names the line and both lengths."""
        error = InvalidHeaderError(line_number=1, expected_length=51, actual_length=10)
        assert error.detail == (
            "Invalid file format: header at line 1 is missing or too short "
            "(expected 51 chars, got 10)"
        )

    def test_default_details(self):
        """Errors without arguments still have a message."""
        assert EmptyBatchError().detail == "No valid card numbers found in file"
        assert str(CryptoError("Decryption failed")) == "Decryption failed"
