"""Data access layer for stored cards.

CardRepository is the only place that talks to the cards table. The services
hand it fully built Card instances and never see SQLAlchemy exceptions:
unique-constraint violations come back as DuplicateCardError.

Atomicity:
  save_batch() adds every card and flushes once inside the caller's
  transaction. If any row violates a unique constraint, the whole session
  is rolled back before DuplicateCardError is raised, so none of the batch
  is left pending. The final COMMIT belongs to the request (get_db).
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from card_vault.exceptions import DuplicateCardError
from card_vault.models.card import Card

logger = logging.getLogger(__name__)


class CardRepository:
    """Repository for card storage and exact-match retrieval."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(self, card: Card) -> Card:
        """
        Insert one card and return it with its primary key assigned.

        Raises:
            DuplicateCardError: If the card number (hash) is already stored.
        """
        return (await self.save_batch([card]))[0]

    async def save_batch(self, cards: list[Card]) -> list[Card]:
        """
        Insert all cards or none of them.

        Raises:
            DuplicateCardError: If any card collides with a stored card or
                with another card in the same batch.
        """
        self.session.add_all(cards)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning("Rejected batch of %d card(s): unique constraint violated", len(cards))
            if len(cards) == 1:
                raise DuplicateCardError() from e
            raise DuplicateCardError(
                "One or more card numbers are already registered; no cards were stored"
            ) from e

        logger.debug("Flushed %d card(s)", len(cards))
        return cards

    async def find_by_hash(self, card_number_hash: str) -> Card | None:
        result = await self.session.execute(
            select(Card).where(Card.card_number_hash == card_number_hash)
        )
        return result.scalar_one_or_none()

    async def find_by_identifier(self, identifier: str) -> Card | None:
        result = await self.session.execute(
            select(Card).where(Card.card_number_identifier == identifier)
        )
        return result.scalar_one_or_none()

    async def page(self, offset: int, limit: int) -> list[Card]:
        """Cards in insertion (primary key) order."""
        result = await self.session.execute(
            select(Card).order_by(Card.id).offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Card))
        return result.scalar_one()
