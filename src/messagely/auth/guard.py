"""Authorization rules for messages and user resources.

Learn: Authentication answers "who are you?"; these functions answer
"may you do this?". They are pure predicates over the identity and the
message's two parties, so they're trivially testable. The ensure_*
variants raise ForbiddenError for use in route handlers.

Rules:
- view a message → sender or recipient
- send a message → any authenticated user
- mark read      → recipient only (not the sender)
- view a user's profile / mailbox → that user only
"""

from typing import Protocol

from messagely.errors import ForbiddenError
from messagely.services.auth_service import CurrentIdentity


class HasParties(Protocol):
    from_username: str
    to_username: str


def can_access_message(identity: CurrentIdentity, message: HasParties) -> bool:
    return identity.username in (message.from_username, message.to_username)


def can_send(identity: CurrentIdentity) -> bool:
    return True


def can_mark_read(identity: CurrentIdentity, message: HasParties) -> bool:
    return identity.username == message.to_username


def can_view_user(identity: CurrentIdentity, username: str) -> bool:
    return identity.username == username


def ensure_can_access_message(identity: CurrentIdentity, message: HasParties) -> None:
    if not can_access_message(identity, message):
        raise ForbiddenError("Only the sender or recipient may view this message")


def ensure_can_send(identity: CurrentIdentity) -> None:
    if not can_send(identity):
        raise ForbiddenError("Not allowed to send messages")


def ensure_can_mark_read(identity: CurrentIdentity, message: HasParties) -> None:
    if not can_mark_read(identity, message):
        raise ForbiddenError("Only the recipient may mark this message read")


def ensure_can_view_user(identity: CurrentIdentity, username: str) -> None:
    if not can_view_user(identity, username):
        raise ForbiddenError("Not allowed to view another user's account")
