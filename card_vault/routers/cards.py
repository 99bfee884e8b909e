"""
Cards router - storing card numbers and looking them up.

Endpoints (all require a bearer token):
  POST /v1/cards                          - Store one card number
  POST /v1/cards/upload                   - Store every card in a batch file
  GET  /v1/cards                          - List stored cards (paginated)
  GET  /v1/cards/{card_number}            - Find a card by its number
  GET  /v1/cards/identifier/{identifier}  - Find a card by its identifier

Responses never contain the card number: only the internal id and the
external identifier.
"""

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from card_vault.crypto import CardCipher
from card_vault.database import get_db
from card_vault.dependencies import get_card_cipher, get_card_file_parser, get_current_user
from card_vault.parsing import CardFileParser
from card_vault.schemas.card import (
    BatchUploadResponse,
    CardCreateRequest,
    CardPageResponse,
    CardResponse,
)
from card_vault.services import card_service

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.post(
    "",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new card",
)
async def create_card(
    request: CardCreateRequest,
    db: AsyncSession = Depends(get_db),
    cipher: CardCipher = Depends(get_card_cipher),
):
    """
    Store a single card number, encrypted at rest.

    - 422 if the number is not exactly 16 digits
    - 409 if the number is already stored
    """
    return await card_service.create_card(
        db=db,
        card_number=request.card_number,
        cipher=cipher,
    )


@router.post(
    "/upload",
    response_model=BatchUploadResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Upload cards from file",
)
async def upload_cards(
    file: UploadFile = File(..., description="TXT file with card numbers in the batch format"),
    db: AsyncSession = Depends(get_db),
    cipher: CardCipher = Depends(get_card_cipher),
    parser: CardFileParser = Depends(get_card_file_parser),
):
    """
    Store every card number of a fixed-width batch file.

    The batch is all-or-nothing: if any number is already stored (or
    repeated in the file) the response is 409 and nothing is stored.
    Lines that are too short or blank are skipped and reported in the
    counts; they don't fail the upload.
    """
    parsed = await run_in_threadpool(
        parser.parse,
        file.file,
        size=file.size,
        filename=file.filename,
        content_type=file.content_type,
    )
    ingested = await card_service.ingest_cards(
        db=db,
        card_numbers=parsed.card_numbers,
        cipher=cipher,
    )
    return BatchUploadResponse(
        committed=ingested.committed,
        rejected=ingested.rejected,
        lines_read=parsed.lines_read,
        skipped_lines=parsed.skipped_lines,
        invalid_lines=parsed.invalid_lines,
    )


@router.get(
    "",
    response_model=CardPageResponse,
    summary="Get all cards",
)
async def list_cards(
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    """List stored cards in insertion order. Card numbers are not included."""
    cards, total = await card_service.list_cards(db=db, offset=offset, limit=limit)
    return CardPageResponse(
        items=[CardResponse.model_validate(card) for card in cards],
        total=total,
        offset=offset,
        limit=limit,
    )


@router.get(
    "/identifier/{identifier}",
    response_model=CardResponse,
    summary="Get card by identifier",
)
async def get_card_by_identifier(
    identifier: str,
    db: AsyncSession = Depends(get_db),
):
    """Find a card by the identifier returned when it was stored."""
    return await card_service.get_card_by_identifier(db=db, identifier=identifier)


@router.get(
    "/{card_number}",
    response_model=CardResponse,
    summary="Get card by number",
)
async def get_card_by_number(
    card_number: str,
    db: AsyncSession = Depends(get_db),
):
    """Find a card by its full number (matched through the search hash)."""
    return await card_service.get_card_by_number(db=db, card_number=card_number)
