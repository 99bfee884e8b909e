"""
Card number encryption (AES-256-GCM) and the deterministic search hash.

Two different one-way/two-way transforms are applied to every card number:

1. ENVELOPE ENCRYPTION (AES-256-GCM)
   - 256-bit key, fresh 96-bit random nonce per call, 128-bit tag
   - Envelope layout: base64(nonce || ciphertext || tag)
   - Tampering, truncation and wrong keys are detected by the tag check and
     raised as CryptoError, never silently accepted

2. SEARCH HASH (SHA-256, unsalted)
   - Same card number always produces the same 64-char hex digest, so a card
     can be found with an indexed equality query instead of decrypting
     every row
   - The input space (16-digit numbers) is small enough to brute-force
     offline. Searchability is preferred over hash secrecy here; do not add
     a salt or the lookups break.

Key derivation:
  The AES key is SHA-256(passphrase). This is fast and unsalted, and is
  only acceptable because CARD_ENCRYPTION_PASSPHRASE is a high-entropy
  secret, not a human password. It must stay byte-compatible with existing
  envelopes, so it is not replaced by a slow KDF.
"""

import base64
import binascii
import hashlib
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from card_vault.exceptions import CryptoError

logger = logging.getLogger(__name__)

KEY_LENGTH = 32     # AES-256
NONCE_LENGTH = 12   # 96-bit GCM nonce
TAG_LENGTH = 16     # 128-bit GCM tag, appended to the ciphertext by AESGCM


def derive_key(passphrase: str) -> bytes:
    """
    Derive the 256-bit AES key from the configured passphrase.

    Args:
        passphrase: The card encryption secret.

    Returns:
        32 bytes: SHA-256 of the UTF-8 encoded passphrase.

    Raises:
        ValueError: If the passphrase is empty.
    """
    if not passphrase:
        raise ValueError("Encryption passphrase cannot be empty")
    return hashlib.sha256(passphrase.encode("utf-8")).digest()


def encrypt(plaintext: str, key: bytes) -> str:
    """
    Encrypt a string with AES-256-GCM under a fresh random nonce.

    Args:
        plaintext: The value to protect (e.g., "4456897922969999").
        key: 32-byte AES key (see derive_key).

    Returns:
        Base64 text of nonce || ciphertext || tag.

    Raises:
        CryptoError: If the key is not a valid AES-256 key, or the plaintext
            cannot be encoded as UTF-8 (e.g., lone surrogates).
    """
    if len(key) != KEY_LENGTH:
        raise CryptoError(f"Encryption key must be {KEY_LENGTH} bytes")

    try:
        data = plaintext.encode("utf-8")
    except UnicodeEncodeError as e:
        raise CryptoError("Encryption failed: plaintext is not encodable as UTF-8") from e

    nonce = os.urandom(NONCE_LENGTH)
    sealed = AESGCM(key).encrypt(nonce, data, None)
    return base64.b64encode(nonce + sealed).decode("ascii")


def decrypt(envelope: str, key: bytes) -> str:
    """
    Open an envelope produced by encrypt().

    Args:
        envelope: Base64 text of nonce || ciphertext || tag.
        key: 32-byte AES key the envelope was sealed with.

    Returns:
        The original plaintext string.

    Raises:
        CryptoError: If the envelope is not valid base64, is too short to
            hold a nonce and tag, fails authentication (wrong key or
            corrupted data), or does not decode to UTF-8.
    """
    if len(key) != KEY_LENGTH:
        raise CryptoError(f"Encryption key must be {KEY_LENGTH} bytes")

    try:
        raw = base64.b64decode(envelope, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CryptoError("Decryption failed: envelope is not valid base64") from e

    if len(raw) < NONCE_LENGTH + TAG_LENGTH:
        raise CryptoError("Decryption failed: envelope is too short")

    nonce, sealed = raw[:NONCE_LENGTH], raw[NONCE_LENGTH:]
    try:
        plaintext = AESGCM(key).decrypt(nonce, sealed, None)
    except InvalidTag as e:
        # No envelope contents in the log, only the fact that it failed
        logger.error("Card envelope failed authentication")
        raise CryptoError("Decryption failed: wrong key or corrupted data") from e

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CryptoError("Decryption failed: plaintext is not valid UTF-8") from e


def search_hash(plaintext: str) -> str:
    """
    Deterministic SHA-256 hex digest used to look cards up without decrypting.

    Args:
        plaintext: The card number.

    Returns:
        64 lowercase hex characters; identical for identical input.
    """
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


class CardCipher:
    """
    Encrypts and decrypts card numbers with a key derived once from a passphrase.

    Built from configuration by card_vault.dependencies.get_card_cipher and
    passed explicitly to the services that need it.
    """

    def __init__(self, passphrase: str):
        self._key = derive_key(passphrase)

    def encrypt(self, plaintext: str) -> str:
        return encrypt(plaintext, self._key)

    def decrypt(self, envelope: str) -> str:
        return decrypt(envelope, self._key)
