# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Domain errors raised by the stores and mapped to views by the routes.

Errors a user can fix by editing the form also subclass ValueError.
"""

from __future__ import annotations


class PostboardError(Exception):
    """Base class for postboard domain errors."""


class MissingFieldsError(PostboardError, ValueError):
    pass


class WeakPasswordError(PostboardError, ValueError):
    pass


class AccountValidationError(PostboardError, ValueError):
    """The account record failed schema validation at the store layer."""


class DuplicateAccountError(PostboardError):
    """Username or email already taken (unique index violation)."""


class LoginError(PostboardError):
    pass


class UnknownEmailError(LoginError):
    pass


class IncorrectPasswordError(LoginError):
    pass


class PostValidationError(PostboardError, ValueError):
    pass


class PostNotFoundError(PostboardError, LookupError):
    def __init__(self, post_id: int):
        super().__init__(f"Post {post_id} not found.")
        self.post_id = post_id


class UploadError(PostboardError, ValueError):
    pass
