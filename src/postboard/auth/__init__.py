# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication helpers.

This package provides:
- Password hashing/verification (argon2, fixed work factor)
- Account creation and credential checks against the account store
- Server-side sessions behind a signed session-id cookie (itsdangerous)
"""
