"""Pydantic schemas for users.

Learn: None of these carry the password hash. UserService is the only
code that ever selects it, and it only returns these projections.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class UserSummary(BaseModel):
    username: str
    first_name: str
    last_name: str
    phone: str


class UserProfile(UserSummary):
    join_at: datetime
    last_login_at: Optional[datetime]


class UserList(BaseModel):
    users: list[UserSummary]


class UserDetail(BaseModel):
    user: UserProfile
