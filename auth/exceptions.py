"""
auth/exceptions.py -- Domain errors raised by the auth layer.

Route handlers translate these into HTTP responses; nothing in auth/ knows
about status codes.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for credential and account errors."""


class UserNotFoundError(AuthError):
    def __init__(self, username: str) -> None:
        super().__init__(f"User {username} does not exist.")
        self.username = username


class IncorrectPasswordError(AuthError):
    def __init__(self) -> None:
        super().__init__("Incorrect password")


class DuplicateUserError(AuthError):
    def __init__(self, username: str) -> None:
        super().__init__(f"User {username} already exists.")
        self.username = username


class PasswordTooLongError(AuthError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"Password must be at most {limit} bytes.")
        self.limit = limit
