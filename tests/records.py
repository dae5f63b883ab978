"""Record types shared by the test suite."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel

from cacheaside.domain.capabilities import cacheable, persistable


@cacheable(path="user", expiry=600)
@persistable(name="users")
class User(BaseModel):
    id: str
    name: str
    tags: list[str] = []
    joined_at: datetime | None = None


@cacheable(expiry=None)
@persistable
@dataclass
class Note:
    id: str
    body: str
    pinned: bool = False


@cacheable(path="session", expiry=0, id_field="token")
@persistable(name="sessions", id_field="token")
class Session(BaseModel):
    token: str
    user_id: str


@cacheable(path="acct", expiry=0, id_field="email")
@persistable(name="accounts", id_field="uid")
class Account(BaseModel):
    uid: str
    email: str
    plan: str = "free"
