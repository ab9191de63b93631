# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from postboard.auth.passwords import hash_password, verify_password
from postboard.core.errors import (
    DuplicateAccountError,
    IncorrectPasswordError,
    MissingFieldsError,
    UnknownEmailError,
    WeakPasswordError,
)
from postboard.core.models import Account
from postboard.infra.db import is_unique_violation

logger = logging.getLogger(__name__)

# At least 6 chars with one digit, one lowercase and one uppercase letter.
PASSWORD_POLICY = re.compile(r"(?=.*\d)(?=.*[a-z])(?=.*[A-Z]).{6,}")

MISSING_FIELDS_MSG = "All fields are mandatory. Please provide your username, email and password."
WEAK_PASSWORD_MSG = (
    "Password needs to have at least 6 chars and must contain at least one number, "
    "one lowercase and one uppercase letter."
)
DUPLICATE_MSG = "Username and email need to be unique. Either username or email is already used."
MISSING_LOGIN_MSG = "Please enter both, email and password to login."
UNKNOWN_EMAIL_MSG = "Email is not registered. Try with other email."
INCORRECT_PASSWORD_MSG = "Incorrect password."


@dataclass(frozen=True)
class AccountRecord:
    """Account as seen outside the store: the password hash stays behind."""

    id: int
    username: str
    email: str
    image_url: Optional[str] = None

    @classmethod
    def from_model(cls, a: Account) -> "AccountRecord":
        return cls(id=a.id, username=a.username, email=a.email, image_url=a.image_url)


def password_meets_policy(password: str) -> bool:
    return bool(PASSWORD_POLICY.search(password or ""))


def check_signup_fields(username: str, email: str, password: str) -> None:
    """Validate signup input before touching the hasher or the store."""
    if not username or not email or not password:
        raise MissingFieldsError(MISSING_FIELDS_MSG)
    if not password_meets_policy(password):
        raise WeakPasswordError(WEAK_PASSWORD_MSG)


def create_account(
    db: Session,
    *,
    username: str,
    email: str,
    password: str,
    image_url: Optional[str] = None,
) -> AccountRecord:
    """Hash the password and insert one account.

    Duplicate username/email is left to the unique indexes and reported as
    DuplicateAccountError after the failed insert.
    """
    check_signup_fields(username, email, password)

    account = Account(
        username=username,
        email=email,
        password_hash=hash_password(password),
        image_url=image_url,
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if is_unique_violation(e):
            raise DuplicateAccountError(DUPLICATE_MSG) from e
        raise
    db.refresh(account)
    logger.info("Created account id=%s username=%s", account.id, account.username)
    return AccountRecord.from_model(account)


def get_account(db: Session, account_id: int) -> Optional[AccountRecord]:
    a = db.get(Account, account_id)
    return AccountRecord.from_model(a) if a else None


def find_account_by_email(db: Session, email: str) -> Optional[AccountRecord]:
    a = db.execute(select(Account).where(Account.email == email)).scalar_one_or_none()
    return AccountRecord.from_model(a) if a else None


def count_accounts(db: Session) -> int:
    return db.execute(select(func.count()).select_from(Account)).scalar_one()


def authenticate(db: Session, email: str, password: str) -> AccountRecord:
    """Check an email/password pair.

    Raises UnknownEmailError or IncorrectPasswordError; the empty-field check
    belongs to the caller.
    """
    a = db.execute(select(Account).where(Account.email == email)).scalar_one_or_none()
    if a is None:
        raise UnknownEmailError(UNKNOWN_EMAIL_MSG)
    if not verify_password(a.password_hash, password):
        raise IncorrectPasswordError(INCORRECT_PASSWORD_MSG)
    return AccountRecord.from_model(a)
