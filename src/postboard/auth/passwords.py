# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

# argon2 time_cost; changing it only affects hashes created afterwards.
WORK_FACTOR = int(os.getenv("POSTBOARD_HASH_TIME_COST", "3"))

_PH = PasswordHasher(time_cost=WORK_FACTOR)


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Password is required.")
    return _PH.hash(plain)


def verify_password(hash_value: str, plain: str) -> bool:
    if not hash_value or not plain:
        return False
    try:
        return _PH.verify(hash_value, plain)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False
