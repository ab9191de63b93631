# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from postboard.core.models import Base


def make_engine(url: str) -> Engine:
    """Create an engine; SQLite connections are shared across the request threadpool."""
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(url, connect_args=connect_args, future=True)


def make_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(engine)


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the integrity error comes from a unique index."""
    orig = getattr(exc, "orig", None)
    # PostgreSQL reports SQLSTATE 23505 for unique_violation.
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == "23505":
        return True
    msg = str(orig or exc).upper()
    return "UNIQUE" in msg or "DUPLICATE" in msg
