# PURPOSE: session/auth coordinator.
# - Owns `current_user` and `is_loading`; observers are notified on every change.
# - Orchestrates the credential store and the task store.
# - Never raises domain or storage errors to callers: every operation returns
#   an AuthResult and leaves prior state untouched on failure.

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Callable, List, Optional, Union

from pydantic import ValidationError

from .credentials import CredentialStore
from .errors import EmailInUseError, FoxlistError, InvalidInputError, NotAuthenticatedError
from .models import AuthResult, ProfileUpdate, SessionUser, UserRecord, now_utc, to_iso
from .security import PasswordHasher, PlainTextHasher
from .store import TaskStore

logger = logging.getLogger(__name__)

Listener = Callable[[Optional[SessionUser]], None]


def new_user_id() -> str:
    return uuid.uuid4().hex


def _invalid_input(exc: Exception) -> InvalidInputError:
    if isinstance(exc, ValidationError):
        return InvalidInputError(exc.errors()[0]["msg"])
    return InvalidInputError(str(exc))


class AuthCoordinator:
    def __init__(
        self,
        credentials: CredentialStore,
        tasks: TaskStore,
        *,
        hasher: Optional[PasswordHasher] = None,
        reconcile_on_sign_in: bool = True,
        clock: Callable[[], datetime] = now_utc,
        id_factory: Callable[[], str] = new_user_id,
    ) -> None:
        self._credentials = credentials
        self._tasks = tasks
        self._hasher = hasher or PlainTextHasher()
        self._reconcile = reconcile_on_sign_in
        self._clock = clock
        self._id_factory = id_factory
        self._current_user: Optional[SessionUser] = None
        self._listeners: List[Listener] = []
        self.is_loading = True

    # --- State -------------------------------------------------------------------

    @property
    def current_user(self) -> Optional[SessionUser]:
        return self._current_user

    def get_current_user(self) -> Optional[SessionUser]:
        return self._current_user

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(user)` on every change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_user(self, user: Optional[SessionUser]) -> None:
        self._current_user = user
        for listener in list(self._listeners):
            listener(user)

    def _require_user(self) -> SessionUser:
        if self._current_user is None:
            raise NotAuthenticatedError()
        return self._current_user

    @staticmethod
    def _failure(action: str, exc: FoxlistError) -> AuthResult:
        log = logger.error if exc.code == "storage" else logger.info
        log("auth %s failed code=%s reason=%s", action, exc.code, exc.message)
        return AuthResult(success=False, message=exc.message, error=exc.code)

    def load(self) -> AuthResult:
        """Restore the persisted session; is_loading turns False either way."""
        try:
            user = self._credentials.get_session_user()
        except FoxlistError as exc:
            return self._failure("load", exc)
        else:
            self._set_user(user)
            return AuthResult(success=True, user=user)
        finally:
            self.is_loading = False

    def _start_session(self, user: SessionUser) -> None:
        # state changes last, so a storage failure leaves the old user in place
        if self._reconcile:
            self._tasks.reconcile_orphans(user.email)
        self._credentials.set_session_user(user)
        self._set_user(user)

    # --- Operations --------------------------------------------------------------

    def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            user = self._credentials.validate_credentials(email, password, verify=self._hasher.verify)
            self._start_session(user)
        except FoxlistError as exc:
            return self._failure("sign_in", exc)
        logger.info("signed in user=%s", user.id)
        return AuthResult(success=True, user=user)

    def sign_up(self, name: str, email: str, password: str) -> AuthResult:
        try:
            record = UserRecord(
                id=self._id_factory(),
                name=name,
                email=email,
                password=self._hasher.hash(password),
                created_at=to_iso(self._clock()),
            )
        except (ValidationError, ValueError) as exc:
            return self._failure("sign_up", _invalid_input(exc))
        try:
            self._credentials.register(record)
        except FoxlistError as exc:
            return self._failure("sign_up", exc)
        try:
            # auto-login: no separate credential re-entry
            self._start_session(record.public())
        except FoxlistError as exc:
            self._forget_registration(record)
            return self._failure("sign_up", exc)
        logger.info("signed up user=%s", record.id)
        return AuthResult(success=True, user=record.public())

    def _forget_registration(self, record: UserRecord) -> None:
        """Undo a registration whose session could not be started."""
        try:
            self._credentials.delete_user(record.id)
        except FoxlistError as exc:
            logger.error("sign_up rollback failed user=%s reason=%s", record.id, exc.message)

    def sign_out(self) -> AuthResult:
        try:
            self._credentials.clear_session_user()
        except FoxlistError as exc:
            return self._failure("sign_out", exc)
        self._set_user(None)
        return AuthResult(success=True)

    def update_profile(self, fields: Union[ProfileUpdate, Mapping[str, Any]]) -> AuthResult:
        """Merge profile fields; an email change carries the user's tasks along."""
        try:
            if not isinstance(fields, ProfileUpdate):
                fields = ProfileUpdate.model_validate(dict(fields))
            if fields.password is not None:
                fields = fields.model_copy(update={"password": self._hasher.hash(fields.password)})
        except (ValidationError, ValueError) as exc:
            return self._failure("update_profile", _invalid_input(exc))
        try:
            user = self._require_user()
            updated = self._apply_profile(user, fields)
        except FoxlistError as exc:
            return self._failure("update_profile", exc)
        self._set_user(updated)
        return AuthResult(success=True, user=updated)

    def _apply_profile(self, user: SessionUser, fields: ProfileUpdate) -> SessionUser:
        new_email = fields.email if fields.email and fields.email != user.email else None
        if new_email is None:
            return self._credentials.update_user(user.id, fields)

        if self._credentials.find_user_by_email(new_email) is not None:
            raise EmailInUseError()
        # tasks move before the registry so delete_account still finds them
        self._tasks.reassign_owner(user.email, new_email)
        try:
            return self._credentials.update_user(user.id, fields)
        except FoxlistError:
            self._tasks.reassign_owner(new_email, user.email)
            raise

    def delete_account(self) -> AuthResult:
        """Delete the user's tasks (and orphans) first, then the user, then the session."""
        try:
            user = self._require_user()
            removed = self._tasks.delete_tasks_by_owner(user.email)
            self._credentials.delete_user(user.id)
        except FoxlistError as exc:
            return self._failure("delete_account", exc)
        self._set_user(None)
        logger.info("account deleted user=%s tasks_removed=%s", user.id, removed)
        return AuthResult(success=True)
