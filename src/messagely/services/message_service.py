"""Message service — the message store for the messages table.

Learn: Messages are only ever shown with the other party's contact info
attached, so reads join messages against users (twice for the detail
view: once as sender, once as recipient). The joins select explicit
columns, never User entities, so password hashes are never loaded.

Authorization is NOT done here. Routes ask the guard first, using
get_parties() to learn who sent and who received a message.
"""

from typing import NamedTuple

import structlog
from sqlalchemy import DateTime, func, insert, literal, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from messagely.db.models import Message, User, utcnow
from messagely.errors import NotFoundError, ValidationError
from messagely.schemas.message import (
    Contact,
    MessageDetail,
    MessageRecord,
    ReadReceipt,
    ReceivedMessage,
    SentMessage,
)

logger = structlog.get_logger()

Sender = aliased(User, name="sender")
Recipient = aliased(User, name="recipient")

# messages.id is a 32-bit INTEGER column; larger ids can never exist.
MAX_MESSAGE_ID = 2**31 - 1


class MessageParties(NamedTuple):
    """Who sent and who received a message — all the guard needs."""

    id: int
    from_username: str
    to_username: str


def _contact_columns(user, prefix: str) -> list:
    return [
        user.username.label(f"{prefix}_username"),
        user.first_name.label(f"{prefix}_first_name"),
        user.last_name.label(f"{prefix}_last_name"),
        user.phone.label(f"{prefix}_phone"),
    ]


def _ensure_storable_id(message_id: int) -> None:
    if not 1 <= message_id <= MAX_MESSAGE_ID:
        raise NotFoundError(f"Message {message_id} not found")


def _contact(row, prefix: str) -> Contact:
    return Contact(
        username=row[f"{prefix}_username"],
        first_name=row[f"{prefix}_first_name"],
        last_name=row[f"{prefix}_last_name"],
        phone=row[f"{prefix}_phone"],
    )


class MessageService:
    """Business logic for sending and reading messages."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self, from_username: str, to_username: str, body: str
    ) -> MessageRecord:
        """Store a new unread message.

        Both users must exist. Self-messages are allowed.
        """
        if not body or not body.strip():
            raise ValidationError("Message body must not be empty")

        parties = {from_username, to_username}
        result = await self.db.execute(
            select(func.count())
            .select_from(User)
            .where(User.username.in_(parties))
        )
        if result.scalar_one() != len(parties):
            raise ValidationError("Sender and recipient must both be registered users")

        stmt = (
            insert(Message)
            .values(
                from_username=from_username,
                to_username=to_username,
                body=body,
                sent_at=utcnow(),
            )
            .returning(
                Message.id,
                Message.from_username,
                Message.to_username,
                Message.body,
                Message.sent_at,
            )
        )
        try:
            result = await self.db.execute(stmt)
            row = result.mappings().one()
            await self.db.commit()
        except IntegrityError:
            # A user vanished between the check and the insert.
            await self.db.rollback()
            raise ValidationError("Sender and recipient must both be registered users")

        logger.info(
            "message.created", message_id=row["id"], from_username=from_username,
            to_username=to_username,
        )
        return MessageRecord.model_validate(dict(row))

    async def get_parties(self, message_id: int) -> MessageParties:
        _ensure_storable_id(message_id)
        result = await self.db.execute(
            select(Message.id, Message.from_username, Message.to_username)
            .where(Message.id == message_id)
        )
        row = result.first()
        if row is None:
            raise NotFoundError(f"Message {message_id} not found")
        return MessageParties(*row)

    async def get(self, message_id: int) -> MessageDetail:
        """Get a message with sender and recipient contact info."""
        _ensure_storable_id(message_id)
        result = await self.db.execute(
            select(
                Message.id,
                Message.body,
                Message.sent_at,
                Message.read_at,
                *_contact_columns(Sender, "from"),
                *_contact_columns(Recipient, "to"),
            )
            .select_from(Message)
            .join(Sender, Message.from_username == Sender.username)
            .join(Recipient, Message.to_username == Recipient.username)
            .where(Message.id == message_id)
        )
        row = result.mappings().first()
        if row is None:
            raise NotFoundError(f"Message {message_id} not found")
        return MessageDetail(
            id=row["id"],
            body=row["body"],
            sent_at=row["sent_at"],
            read_at=row["read_at"],
            from_user=_contact(row, "from"),
            to_user=_contact(row, "to"),
        )

    async def mark_read(self, message_id: int) -> ReadReceipt:
        """Mark a message read.

        read_at only goes from NULL to set. Marking an already-read
        message again succeeds and returns the original timestamp.
        """
        _ensure_storable_id(message_id)
        now = literal(utcnow(), DateTime(timezone=True))
        result = await self.db.execute(
            update(Message)
            .where(Message.id == message_id)
            .values(read_at=func.coalesce(Message.read_at, now))
            .returning(Message.id, Message.read_at)
            .execution_options(synchronize_session=False)
        )
        row = result.first()
        if row is None:
            await self.db.rollback()
            raise NotFoundError(f"Message {message_id} not found")
        await self.db.commit()

        logger.info("message.read", message_id=message_id)
        return ReadReceipt(id=row.id, read_at=row.read_at)

    async def list_sent_by(self, username: str) -> list[SentMessage]:
        """Messages sent by a user, each with the recipient's contact info."""
        result = await self.db.execute(
            select(
                Message.id,
                Message.body,
                Message.sent_at,
                Message.read_at,
                *_contact_columns(Recipient, "to"),
            )
            .select_from(Message)
            .join(Recipient, Message.to_username == Recipient.username)
            .where(Message.from_username == username)
            .order_by(Message.id)
        )
        return [
            SentMessage(
                id=row["id"],
                to_user=_contact(row, "to"),
                body=row["body"],
                sent_at=row["sent_at"],
                read_at=row["read_at"],
            )
            for row in result.mappings()
        ]

    async def list_received_by(self, username: str) -> list[ReceivedMessage]:
        """Messages received by a user, each with the sender's contact info."""
        result = await self.db.execute(
            select(
                Message.id,
                Message.body,
                Message.sent_at,
                Message.read_at,
                *_contact_columns(Sender, "from"),
            )
            .select_from(Message)
            .join(Sender, Message.from_username == Sender.username)
            .where(Message.to_username == username)
            .order_by(Message.id)
        )
        return [
            ReceivedMessage(
                id=row["id"],
                from_user=_contact(row, "from"),
                body=row["body"],
                sent_at=row["sent_at"],
                read_at=row["read_at"],
            )
            for row in result.mappings()
        ]
