# PURPOSE: bootstrap and wire the core for UI collaborators.
# - Settings -> logging -> task backend (initialized; failures are fatal)
#   -> credential store -> auth coordinator (session restored).
# - Thin helpers the screens call: add/edit tasks with input checks, and
#   list the signed-in user's tasks with their deadline alerts.

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import ValidationError

from .auth import AuthCoordinator
from .backends import build_task_store
from .config import Settings
from .config import settings as default_settings
from .credentials import CredentialStore
from .deadlines import classify_deadline
from .errors import InvalidInputError, NotAuthenticatedError
from .kv import JsonFileKeyValueStore
from .logging_utils import setup_logging
from .models import AuthResult, Priority, SignUpForm, Task, TaskCreate, TaskUpdate, TaskView
from .query import TaskQuery, apply_query
from .security import get_hasher
from .store import TaskStore

logger = logging.getLogger(__name__)


def _require_title(title: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise InvalidInputError("Please enter a title for the task")
    return cleaned


class Foxlist:
    """Application container handed to UI collaborators."""

    def __init__(self, settings: Settings, tasks: TaskStore, auth: AuthCoordinator) -> None:
        self.settings = settings
        self.tasks = tasks
        self.auth = auth

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Foxlist":
        """Build and start everything; a StorageError here aborts startup."""
        settings = settings or default_settings
        setup_logging(settings.LOG_LEVEL)

        tasks = build_task_store(settings)
        tasks.initialize()

        credentials = CredentialStore(JsonFileKeyValueStore(settings.CREDENTIALS_FILE))
        auth = AuthCoordinator(
            credentials,
            tasks,
            hasher=get_hasher(settings.PASSWORD_HASHING),
            reconcile_on_sign_in=settings.RECONCILE_ON_SIGN_IN,
        )
        auth.load()
        logger.info(
            "foxlist started backend=%s signed_in=%s",
            tasks.backend,
            auth.current_user is not None,
        )
        return cls(settings, tasks, auth)

    def close(self) -> None:
        self.tasks.close()

    # --- Accounts ------------------------------------------------------------------

    def register(self, form: Union[SignUpForm, Mapping[str, Any]]) -> AuthResult:
        """Validate a sign-up form, then sign the new user up (and in)."""
        try:
            if not isinstance(form, SignUpForm):
                form = SignUpForm.model_validate(dict(form))
        except ValidationError as exc:
            message = exc.errors()[0]["msg"]
            return AuthResult(success=False, message=message, error=InvalidInputError.code)
        return self.auth.sign_up(form.name, str(form.email), form.password)

    # --- Tasks ---------------------------------------------------------------------

    def _owner_email(self) -> str:
        user = self.auth.current_user
        if user is None:
            raise NotAuthenticatedError()
        return user.email

    def add_task(
        self,
        title: str,
        priority: Priority,
        description: str = "",
        deadline: Union[str, datetime, None] = None,
    ) -> Task:
        """Create a task owned by the signed-in user."""
        item = TaskCreate(
            title=_require_title(title),
            description=(description or "").strip(),
            priority=priority,
            deadline=deadline,
            owner_email=self._owner_email(),
        )
        return self.tasks.create_task(item)

    def edit_task(self, task_id: int, **fields: Any) -> Optional[Task]:
        if "title" in fields:
            fields["title"] = _require_title(fields["title"])
        if fields.get("description") is not None:
            fields["description"] = fields["description"].strip()
        return self.tasks.update_task(task_id, TaskUpdate.model_validate(fields))

    def list_tasks(
        self,
        query: Union[TaskQuery, Mapping[str, Any], None] = None,
        now: Optional[datetime] = None,
    ) -> List[TaskView]:
        """The signed-in user's tasks, filtered/sorted, each with its deadline alert."""
        if query is None:
            query = TaskQuery()
        elif not isinstance(query, TaskQuery):
            query = TaskQuery.model_validate(dict(query))
        tasks = self.tasks.get_all_tasks(self._owner_email())
        return [
            TaskView(task=task, alert=classify_deadline(task.deadline, now=now))
            for task in apply_query(tasks, query)
        ]
