from __future__ import annotations

from datetime import date, datetime
from enum import Enum

import sqlalchemy as sa
from pydantic import StrictInt
from sqlmodel import Field, SQLModel


class Sex(str, Enum):
    male = "male"
    female = "female"


class User(SQLModel, table=True):
    __tablename__ = "user"
    __table_args__ = (sa.UniqueConstraint("email", name="uq_user_email"),)

    id: int | None = Field(default=None, primary_key=True)
    email: str | None = Field(default=None, max_length=255, nullable=False)
    name: str | None = Field(default=None, max_length=255, nullable=False)
    age: int | None = Field(default=None, nullable=False)
    sex: str | None = Field(default=None, max_length=10, nullable=False)
    birthday: date | None = Field(default=None, nullable=False)
    phone: str | None = Field(default=None, max_length=20, nullable=False)
    created_at: datetime | None = Field(
        default=None,
        sa_column=sa.Column(sa.DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime | None = Field(
        default=None,
        sa_column=sa.Column(sa.DateTime(timezone=True), nullable=False),
    )


class UserPayload(SQLModel):
    """Caller-editable fields; every one may be absent in an incoming body."""

    email: str | None = None
    name: str | None = None
    age: StrictInt | None = None
    sex: str | None = None
    birthday: date | None = None
    phone: str | None = None

    # id and timestamps are server-owned; unknown keys are dropped
    model_config = {"extra": "ignore"}


class UserRead(SQLModel):
    id: int
    email: str
    name: str
    age: int
    sex: str
    birthday: date
    phone: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
