"""
Card model - one stored payment-card number.

The card number itself is never written to the database. Each row keeps
three derived values, all computed together from the same plaintext in
Card.from_plaintext():

  - card_number_encrypted: AES-256-GCM envelope, the only recoverable form
  - card_number_hash: SHA-256 digest, UNIQUE, used for exact-match search
  - card_number_identifier: ULID handed to API callers, UNIQUE

The unique index on card_number_hash is what rejects duplicate numbers:
concurrent inserts of the same number race at the database and exactly one
wins.

The integer primary key stays internal. Rows are never updated after
insert; there is no update path for cards.
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from card_vault.crypto import CardCipher, search_hash
from card_vault.database import Base
from card_vault.identifiers import IDENTIFIER_LENGTH, new_card_identifier

CARD_NUMBER_LENGTH = 16


def is_valid_card_number(value: str) -> bool:
    """A storable card number is exactly 16 ASCII digits."""
    return len(value) == CARD_NUMBER_LENGTH and value.isascii() and value.isdigit()


class Card(Base):
    __tablename__ = "cards"

    # Storage-assigned sequential key, never exposed as the public handle
    id: Mapped[int] = mapped_column(
        primary_key=True,
        autoincrement=True,
    )

    # base64(nonce || ciphertext || tag); 16 digits encrypt to 60 chars
    card_number_encrypted: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    card_number_hash: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
    )

    card_number_identifier: Mapped[str] = mapped_column(
        String(IDENTIFIER_LENGTH),
        unique=True,
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # In-memory only; not a mapped column. Set by from_plaintext() and reveal().
    plaintext_number = None

    @classmethod
    def from_plaintext(cls, card_number: str, cipher: CardCipher) -> "Card":
        """
        Build a new, unsaved Card from a plaintext card number.

        The envelope and the search hash are derived here and nowhere else,
        so they can never disagree about which number they represent.

        Args:
            card_number: A 16-digit card number (validated by the caller).
            cipher: The configured CardCipher.

        Returns:
            A transient Card with plaintext_number set.
        """
        card = cls(
            card_number_encrypted=cipher.encrypt(card_number),
            card_number_hash=search_hash(card_number),
            card_number_identifier=new_card_identifier(),
        )
        card.plaintext_number = card_number
        return card

    def reveal(self, cipher: CardCipher) -> str:
        """
        Decrypt the stored envelope and cache the plaintext on this instance.

        Raises:
            CryptoError: If the envelope fails authentication.
        """
        self.plaintext_number = cipher.decrypt(self.card_number_encrypted)
        return self.plaintext_number

    def __repr__(self) -> str:
        # Never include the plaintext or the envelope
        return f"<Card id={self.id} identifier={self.card_number_identifier}>"
