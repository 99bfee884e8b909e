"""
External card identifiers (ULID format).

The integer primary key of a card is sequential and would leak how many
cards exist, so callers only ever see a ULID:

    01ARZ3NDEKTSV4RRFFQ69G5FAV
    |--------||--------------|
     time (48 bits)  randomness (80 bits)

  - 26 characters of uppercase Crockford base32
  - The time part is milliseconds since the Unix epoch, so identifiers
    sort lexicographically by creation time
  - The random part makes collisions practically impossible without any
    coordination between processes

Generation and decoding are done by python-ulid.
"""

from datetime import datetime

from ulid import ULID

IDENTIFIER_LENGTH = 26


def new_card_identifier() -> str:
    """Generate a new 26-character, time-sortable card identifier."""
    return str(ULID())


def _parse(identifier: str) -> ULID:
    value = ULID.from_str(identifier)
    # Only the canonical uppercase spelling is an identifier we handed out
    if str(value) != identifier:
        raise ValueError(f"Not a canonical card identifier: {identifier!r}")
    return value


def is_card_identifier(value: str) -> bool:
    """Return True if value is shaped like an identifier from new_card_identifier()."""
    try:
        _parse(value)
    except ValueError:
        return False
    return True


def identifier_timestamp(identifier: str) -> datetime:
    """
    Decode the creation time embedded in an identifier.

    Returns:
        Timezone-aware UTC datetime, millisecond precision.

    Raises:
        ValueError: If the identifier is not a valid ULID string.
    """
    return _parse(identifier).datetime
