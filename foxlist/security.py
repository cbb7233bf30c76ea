# PURPOSE: password hashing collaborators injected at the auth boundary.
# The credential store only compares through `verify`; it never knows which
# scheme produced the stored secret.

import logging
from typing import Protocol

import bcrypt

logger = logging.getLogger(__name__)


class PasswordHasher(Protocol):
    name: str

    def hash(self, password: str) -> str: ...

    def verify(self, password: str, stored: str) -> bool: ...


class PlainTextHasher:
    """Stores secrets as given. Compatible with existing registries; insecure."""

    name = "plain"

    def hash(self, password: str) -> str:
        return password

    def verify(self, password: str, stored: str) -> bool:
        return password == stored


# --- bcrypt, no passlib ---


class BcryptHasher:
    name = "bcrypt"

    def hash(self, password: str) -> str:
        """Return a bcrypt hash for the given plain password."""
        if not isinstance(password, str):
            raise TypeError("password must be a string")
        salt = bcrypt.gensalt()
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, stored: str) -> bool:
        """Verify a plain password against its bcrypt hash."""
        try:
            return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
        except ValueError:
            # stored value is not a bcrypt hash (e.g. a legacy plain entry)
            logger.warning("stored secret is not a bcrypt hash")
            return False


def get_hasher(name: str) -> PasswordHasher:
    if name == "bcrypt":
        return BcryptHasher()
    if name == "plain":
        return PlainTextHasher()
    raise ValueError(f"unknown password hashing scheme: {name}")
