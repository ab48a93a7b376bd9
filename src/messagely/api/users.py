"""User API routes — directory, profile, and mailboxes.

- GET /users                  → any logged-in user
- GET /users/{username}       → that user only
- GET /users/{username}/to    → messages received by that user
- GET /users/{username}/from  → messages sent by that user
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from messagely.auth import guard
from messagely.auth.dependencies import get_current_user
from messagely.db.engine import get_db
from messagely.schemas.message import ReceivedMessageList, SentMessageList
from messagely.schemas.user import UserDetail, UserList
from messagely.services.auth_service import CurrentIdentity
from messagely.services.message_service import MessageService
from messagely.services.user_service import UserService

router = APIRouter(prefix="/users")


def _user_svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def _msg_svc(db: AsyncSession = Depends(get_db)) -> MessageService:
    return MessageService(db)


@router.get("", response_model=UserList)
async def list_users(svc: UserService = Depends(_user_svc)):
    """List every user's public contact info."""
    return {"users": await svc.list_all()}


@router.get("/{username}", response_model=UserDetail)
async def get_user(
    username: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_user_svc),
):
    guard.ensure_can_view_user(identity, username)
    return {"user": await svc.get_profile(username)}


@router.get("/{username}/to", response_model=ReceivedMessageList)
async def messages_to(
    username: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: MessageService = Depends(_msg_svc),
):
    """Messages received by the user."""
    guard.ensure_can_view_user(identity, username)
    return {"messages": await svc.list_received_by(username)}


@router.get("/{username}/from", response_model=SentMessageList)
async def messages_from(
    username: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: MessageService = Depends(_msg_svc),
):
    """Messages sent by the user."""
    guard.ensure_can_view_user(identity, username)
    return {"messages": await svc.list_sent_by(username)}
