# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Session gate: logged-in / logged-out route dependencies."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from postboard.auth.session import COOKIE_NAME, load_session, verify_session

LOGIN_URL = "/login"
PROFILE_URL = "/user-profile"


@dataclass(frozen=True)
class CurrentUser:
    id: int
    username: str
    email: str
    session_id: str
    image_url: Optional[str] = None


def load_user_from_request(request: Request, db: Session) -> Optional[CurrentUser]:
    token = request.cookies.get(COOKIE_NAME, "")
    sid = verify_session(token)
    if not sid:
        return None
    account = load_session(db, sid)
    if not account:
        return None
    return CurrentUser(
        id=account.id,
        username=account.username,
        email=account.email,
        session_id=sid,
        image_url=account.image_url,
    )


def current_user_optional(request: Request) -> Optional[CurrentUser]:
    """Principal resolved by the auth middleware for this request."""
    return getattr(request.state, "user", None)


def require_user(request: Request) -> CurrentUser:
    u = current_user_optional(request)
    if u:
        return u
    next_url = str(request.url.path)
    if request.url.query:
        next_url += "?" + request.url.query
    loc = f"{LOGIN_URL}?next={quote(next_url, safe='/')}"
    raise HTTPException(status_code=303, headers={"Location": loc})


def require_anonymous(request: Request) -> None:
    if current_user_optional(request):
        raise HTTPException(status_code=303, headers={"Location": PROFILE_URL})


def cookie_settings() -> dict:
    secure = os.getenv("POSTBOARD_COOKIE_SECURE", "false").lower() in {"1", "true", "yes", "y"}
    return {"httponly": True, "samesite": "lax", "secure": secure}
