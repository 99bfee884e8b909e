"""
Card service - storing card numbers and finding them again.

Creation:
  - create_card(): one card number -> one Card
  - ingest_cards(): the card numbers of a parsed batch file -> all stored
    in one transaction, or none

  Every Card is built with Card.from_plaintext(), which encrypts the number,
  hashes it and assigns its ULID in one step. Duplicates are not checked
  up front: the unique index on card_number_hash decides, so two requests
  racing with the same number cannot both succeed.

Lookup:
  - get_card_by_number(): hashes the number and does an indexed equality
    query. Stored envelopes are never decrypted to search.
  - get_card_by_identifier(): by external ULID
  - list_cards(): paginated, in insertion order

Only reveal_card_number() ever decrypts, and nothing in the API calls it.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from card_vault.crypto import CardCipher, search_hash
from card_vault.exceptions import CardNotFoundError, EmptyBatchError
from card_vault.models.card import Card, is_valid_card_number
from card_vault.repository import CardRepository

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Outcome of a committed batch."""
    committed: int
    rejected: int
    identifiers: list[str] = field(default_factory=list)


async def create_card(
    db: AsyncSession,
    card_number: str,
    cipher: CardCipher,
) -> Card:
    """
    Store a single card number.

    Args:
        db: Database session.
        card_number: 16-digit card number (already validated by the schema).
        cipher: Configured CardCipher.

    Returns:
        The stored Card, with id and identifier assigned.

    Raises:
        DuplicateCardError: If the number is already stored.
    """
    card = Card.from_plaintext(card_number, cipher)
    card = await CardRepository(db).save(card)
    logger.info("Stored card %s", card.card_number_identifier)
    return card


async def ingest_cards(
    db: AsyncSession,
    card_numbers: list[str],
    cipher: CardCipher,
) -> IngestResult:
    """
    Store the card numbers of one batch atomically.

    Candidates that are not exactly 16 digits are dropped. The rest are
    built into Cards and written with a single save_batch() call: a
    collision on any one number (with a stored card, or with another
    number in this batch) stores nothing.

    Args:
        db: Database session.
        card_numbers: Candidates in file order, as returned by CardFileParser.
        cipher: Configured CardCipher.

    Returns:
        IngestResult with the committed count, the number of dropped
        candidates and the new identifiers in input order.

    Raises:
        EmptyBatchError: If no candidate survives validation.
        DuplicateCardError: If any number is already stored or repeated.
    """
    valid = [number for number in card_numbers if is_valid_card_number(number)]
    rejected = len(card_numbers) - len(valid)

    if not valid:
        raise EmptyBatchError(
            f"None of the {len(card_numbers)} card number(s) in the file "
            f"has exactly 16 digits"
        )

    cards = [Card.from_plaintext(number, cipher) for number in valid]
    await CardRepository(db).save_batch(cards)

    logger.info(
        "Batch stored: %d card(s) committed, %d rejected as invalid",
        len(cards), rejected,
    )
    return IngestResult(
        committed=len(cards),
        rejected=rejected,
        identifiers=[card.card_number_identifier for card in cards],
    )


async def get_card_by_number(db: AsyncSession, card_number: str) -> Card:
    """
    Find a card by its plaintext number, via the search hash.

    Raises:
        CardNotFoundError: If no stored card has this number.
    """
    card = await CardRepository(db).find_by_hash(search_hash(card_number))
    if card is None:
        raise CardNotFoundError()
    return card


async def get_card_by_identifier(db: AsyncSession, identifier: str) -> Card:
    """
    Find a card by its external identifier.

    Raises:
        CardNotFoundError: If the identifier is unknown.
    """
    card = await CardRepository(db).find_by_identifier(identifier)
    if card is None:
        raise CardNotFoundError()
    return card


async def list_cards(
    db: AsyncSession,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Card], int]:
    """
    List stored cards in insertion order.

    Returns:
        Tuple of (cards on this page, total number of cards).
    """
    repository = CardRepository(db)
    return await repository.page(offset, limit), await repository.count()


def reveal_card_number(card: Card, cipher: CardCipher) -> str:
    """
    Decrypt a stored card's number on demand.

    Raises:
        CryptoError: If the envelope fails authentication.
    """
    return card.reveal(cipher)
