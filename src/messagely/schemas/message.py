"""Pydantic schemas for messages.

Learn: Separate schemas for create/read keep the API clean.
- MessageCreate: what you POST to send a message
- MessageRecord: what creation returns (flat usernames)
- MessageDetail: a message with both parties' contact info joined in
- SentMessage / ReceivedMessage: mailbox rows with the other party attached
- ReadReceipt: what mark-read returns
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from messagely.schemas.user import UserSummary


# Contact info is the same public projection listed at GET /users.
Contact = UserSummary


class MessageCreate(BaseModel):
    """Both fields are required strings. An empty or blank body is
    rejected by MessageService (400), not here."""
    to_username: str = Field(..., min_length=1, max_length=50)
    body: str


class MessageRecord(BaseModel):
    id: int
    from_username: str
    to_username: str
    body: str
    sent_at: datetime


class MessageDetail(BaseModel):
    id: int
    body: str
    sent_at: datetime
    read_at: Optional[datetime]
    from_user: Contact
    to_user: Contact


class SentMessage(BaseModel):
    id: int
    to_user: Contact
    body: str
    sent_at: datetime
    read_at: Optional[datetime]


class ReceivedMessage(BaseModel):
    id: int
    from_user: Contact
    body: str
    sent_at: datetime
    read_at: Optional[datetime]


class ReadReceipt(BaseModel):
    id: int
    read_at: datetime


# ─── Response envelopes ─────────────────────────────────

class MessageRecordResponse(BaseModel):
    message: MessageRecord


class MessageDetailResponse(BaseModel):
    message: MessageDetail


class ReadReceiptResponse(BaseModel):
    message: ReadReceipt


class SentMessageList(BaseModel):
    messages: list[SentMessage]


class ReceivedMessageList(BaseModel):
    messages: list[ReceivedMessage]
