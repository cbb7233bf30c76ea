# PURPOSE: user registry + current session on top of the key-value store.
# - Registry: list of user records including their secret.
# - Session: the signed-in user, never including the secret.
# - Updates merge fields into the existing record (unlike task updates).

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, List, Optional, Union

from pydantic import ValidationError

from .errors import (
    DuplicateEmailError,
    EmailInUseError,
    InvalidCredentialsError,
    StorageError,
    UserNotFoundError,
)
from .kv import JsonFileKeyValueStore
from .models import ProfileUpdate, SessionUser, UserRecord

logger = logging.getLogger(__name__)

SESSION_KEY = "@foxlist:user"
USERS_KEY = "@foxlist:users_db"

Verifier = Callable[[str, str], bool]


def _plain_equal(password: str, stored: str) -> bool:
    return password == stored


class CredentialStore:
    def __init__(self, kv: JsonFileKeyValueStore) -> None:
        self._kv = kv

    # --- Registry ----------------------------------------------------------------

    def get_all_users(self) -> List[UserRecord]:
        records = self._kv.get_item(USERS_KEY, [])
        try:
            return [UserRecord.model_validate(r) for r in records]
        except (TypeError, ValidationError) as exc:
            raise StorageError("user registry is corrupted") from exc

    def _save_users(self, users: List[UserRecord]) -> None:
        self._kv.set_item(USERS_KEY, [u.model_dump(by_alias=True) for u in users])

    def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        return next((u for u in self.get_all_users() if u.email == email), None)

    def register(self, user: UserRecord) -> None:
        users = self.get_all_users()
        if any(u.email == user.email for u in users):
            raise DuplicateEmailError()
        users.append(user)
        self._save_users(users)
        logger.info("user registered id=%s", user.id)

    def validate_credentials(
        self, email: str, password: str, verify: Optional[Verifier] = None
    ) -> SessionUser:
        """Return the matching user without its secret."""
        check = verify or _plain_equal
        for user in self.get_all_users():
            if user.email == email and check(password, user.password):
                return user.public()
        raise InvalidCredentialsError()

    def update_user(
        self, user_id: str, fields: Union[ProfileUpdate, Mapping[str, Any]]
    ) -> SessionUser:
        """Merge `fields` into the user, persist, and refresh the session."""
        if not isinstance(fields, ProfileUpdate):
            fields = ProfileUpdate.model_validate(dict(fields))
        changes = fields.model_dump(exclude_none=True)

        users = self.get_all_users()
        index = next((i for i, u in enumerate(users) if u.id == user_id), None)
        if index is None:
            raise UserNotFoundError()

        new_email = changes.get("email")
        if new_email and any(u.email == new_email and u.id != user_id for u in users):
            raise EmailInUseError()

        users[index] = users[index].model_copy(update=changes)
        self._save_users(users)

        public = users[index].public()
        self.set_session_user(public)
        logger.info("user updated id=%s fields=%s", user_id, sorted(changes))
        return public

    def delete_user(self, user_id: str) -> None:
        users = self.get_all_users()
        remaining = [u for u in users if u.id != user_id]
        if len(remaining) != len(users):
            self._save_users(remaining)
            logger.info("user deleted id=%s", user_id)
        self.clear_session_user()

    # --- Session -------------------------------------------------------------------

    def get_session_user(self) -> Optional[SessionUser]:
        record = self._kv.get_item(SESSION_KEY)
        if record is None:
            return None
        try:
            return SessionUser.model_validate(record)
        except ValidationError as exc:
            raise StorageError("session record is corrupted") from exc

    def set_session_user(self, user: SessionUser) -> None:
        if isinstance(user, UserRecord):
            user = user.public()
        self._kv.set_item(SESSION_KEY, user.to_record())

    def clear_session_user(self) -> None:
        self._kv.remove_item(SESSION_KEY)

    def clear_all_data(self) -> None:
        self._kv.multi_remove([SESSION_KEY, USERS_KEY])
