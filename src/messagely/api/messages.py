"""Message API routes.

Learn: Every route here runs behind get_current_user (see api/__init__.py).
Routes that act on an existing message look up its two parties first and
ask the guard, so a stranger gets 403 before any message content is read.

- GET  /messages/{id}      → sender or recipient
- POST /messages           → any logged-in user, sends as themselves
- POST /messages/{id}/read → recipient only
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from messagely.auth import guard
from messagely.auth.dependencies import get_current_user
from messagely.db.engine import get_db
from messagely.schemas.message import (
    MessageCreate,
    MessageDetailResponse,
    MessageRecordResponse,
    ReadReceiptResponse,
)
from messagely.services.auth_service import CurrentIdentity
from messagely.services.message_service import MessageService

router = APIRouter(prefix="/messages")


def _msg_svc(db: AsyncSession = Depends(get_db)) -> MessageService:
    return MessageService(db)


@router.get("/{message_id}", response_model=MessageDetailResponse)
async def get_message(
    message_id: int,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: MessageService = Depends(_msg_svc),
):
    """Get a message with both parties' contact info."""
    parties = await svc.get_parties(message_id)
    guard.ensure_can_access_message(identity, parties)
    return {"message": await svc.get(message_id)}


@router.post("", response_model=MessageRecordResponse, status_code=201)
async def send_message(
    body: MessageCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: MessageService = Depends(_msg_svc),
):
    """Send a message from the logged-in user to any other user."""
    guard.ensure_can_send(identity)
    message = await svc.create(identity.username, body.to_username, body.body)
    return {"message": message}


@router.post("/{message_id}/read", response_model=ReadReceiptResponse)
async def mark_read(
    message_id: int,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: MessageService = Depends(_msg_svc),
):
    """Mark a message read. Only the recipient may do this."""
    parties = await svc.get_parties(message_id)
    guard.ensure_can_mark_read(identity, parties)
    return {"message": await svc.mark_read(message_id)}
