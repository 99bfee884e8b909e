"""
Pydantic schemas for Card endpoints.

Card numbers are accepted on the way in but NEVER returned: responses only
carry the internal id and the external identifier.
"""

from pydantic import BaseModel, Field


class CardCreateRequest(BaseModel):
    """Request body for POST /v1/cards."""
    card_number: str = Field(
        pattern=r"^[0-9]{16}$",
        description="Card number, exactly 16 digits",
        examples=["4456897922969999"],
    )


class CardResponse(BaseModel):
    """Public representation of a stored card."""
    id: int
    identifier: str = Field(validation_alias="card_number_identifier")

    model_config = {"from_attributes": True}


class CardPageResponse(BaseModel):
    """One page of GET /v1/cards."""
    items: list[CardResponse]
    total: int
    offset: int
    limit: int


class BatchUploadResponse(BaseModel):
    """Result of POST /v1/cards/upload."""
    committed: int
    rejected: int
    lines_read: int
    skipped_lines: int
    invalid_lines: int
