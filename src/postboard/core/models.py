# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""SQLAlchemy models for accounts and posts."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship, validates

from postboard.core.errors import AccountValidationError, PostValidationError

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    username = Column(String(80), unique=True, nullable=False)
    email = Column(String(254), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    image_url = Column(String(512))
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    posts = relationship("Post", back_populates="owner")

    @validates("password_hash")
    def _validate_password_hash(self, key, value):
        if not value:
            raise AccountValidationError("Password is required.")
        return value

    def __repr__(self) -> str:
        return f"<Account {self.id} {self.username!r}>"


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True)
    content = Column(Text, nullable=False)
    owner_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    pic_path = Column(String(512))
    pic_name = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    owner = relationship("Account", back_populates="posts")

    @validates("content")
    def _validate_content(self, key, value):
        if not (value or "").strip():
            raise PostValidationError("Post content is required.")
        return value

    def __repr__(self) -> str:
        return f"<Post {self.id} owner={self.owner_id}>"


class UserSession(Base):
    """Server-side login session; the cookie only carries its signed id."""

    __tablename__ = "sessions"

    id = Column(String(64), primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    account = relationship("Account")

    def __repr__(self) -> str:
        return f"<UserSession account={self.account_id}>"
