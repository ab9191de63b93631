# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Server-side sessions keyed by a random id.

The cookie holds only the signed session id; the principal is read back from
the ``sessions`` table on every request, so deleting the row ends the session
even if a copy of the cookie survives.
"""

from __future__ import annotations

import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from postboard.auth.accounts import AccountRecord
from postboard.core.models import Account, UserSession

COOKIE_NAME = os.getenv("POSTBOARD_COOKIE_NAME", "postboard_session")
DEFAULT_MAX_AGE_SECONDS = int(os.getenv("POSTBOARD_SESSION_MAX_AGE", "28800"))  # 8 hours


def _serializer() -> URLSafeTimedSerializer:
    secret = os.getenv("POSTBOARD_SECRET_KEY") or os.getenv("SECRET_KEY")
    if not secret:
        raise RuntimeError("Missing POSTBOARD_SECRET_KEY (or SECRET_KEY) in environment")
    salt = os.getenv("POSTBOARD_SESSION_SALT", "postboard.session.v1")
    return URLSafeTimedSerializer(secret_key=secret, salt=salt)


def sign_session(session_id: str) -> str:
    s = _serializer()
    return s.dumps({"sid": session_id})


def verify_session(token: str, *, max_age: int = DEFAULT_MAX_AGE_SECONDS) -> Optional[str]:
    """Return the session id carried by a cookie, or None."""
    if not token:
        return None
    s = _serializer()
    try:
        data = s.loads(token, max_age=max_age)
    except (BadSignature, BadTimeSignature):
        return None
    if not isinstance(data, dict):
        return None
    sid = data.get("sid")
    if not isinstance(sid, str) or not sid:
        return None
    return sid


def open_session(db: Session, account_id: int, *, max_age: int = DEFAULT_MAX_AGE_SECONDS) -> str:
    now = datetime.now(timezone.utc)
    row = UserSession(
        id=secrets.token_urlsafe(32),
        account_id=account_id,
        created_at=now,
        expires_at=now + timedelta(seconds=max_age),
    )
    db.add(row)
    db.commit()
    return row.id


def load_session(db: Session, session_id: str) -> Optional[AccountRecord]:
    """Account behind a live session id; expired or destroyed sessions give None."""
    stmt = (
        select(Account)
        .join(UserSession, UserSession.account_id == Account.id)
        .where(UserSession.id == session_id)
        .where(UserSession.expires_at > datetime.now(timezone.utc))
    )
    a = db.execute(stmt).scalar_one_or_none()
    return AccountRecord.from_model(a) if a else None


def close_session(db: Session, session_id: str) -> None:
    db.execute(delete(UserSession).where(UserSession.id == session_id))
    db.commit()
