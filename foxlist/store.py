# PURPOSE: the task store contract shared by both backends.
# - DatabaseTaskStore (store_db.py): embedded SQL database via SQLAlchemy.
# - FileTaskStore (store_file.py): in-memory list mirrored to a JSON file.
# The policies that must behave identically on both sides live here.

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Callable, List, Literal, Optional, Union

from .errors import InvalidInputError
from .models import NO_DEADLINE, Task, TaskCreate, TaskUpdate, now_utc

UpdatePolicy = Literal["replace", "merge"]

TaskInput = Union[TaskCreate, Mapping[str, Any]]
UpdateInput = Union[TaskUpdate, Mapping[str, Any]]


def owned_by_or_orphan(owner: Optional[str], email: str) -> bool:
    """Legacy inclusion policy: rows without an owner belong to everyone."""
    return owner is None or owner == email


def coerce_create(data: TaskInput) -> TaskCreate:
    if isinstance(data, TaskCreate):
        return data
    return TaskCreate.model_validate(dict(data))


def coerce_update(data: UpdateInput) -> TaskUpdate:
    if isinstance(data, TaskUpdate):
        return data
    return TaskUpdate.model_validate(dict(data))


def resolve_update(current: Task, data: TaskUpdate, policy: UpdatePolicy) -> dict[str, Any]:
    """Return the fields an update writes.

    replace: omitted description/deadline/completed fall back to the create
    defaults ("", "Sem prazo", False); title and priority must be given.
    merge: omitted fields keep their current values.
    """
    if policy == "merge":
        return {
            "title": current.title if data.title is None else data.title,
            "description": current.description if data.description is None else data.description,
            "priority": current.priority if data.priority is None else data.priority,
            "deadline": current.deadline if data.deadline is None else data.deadline,
            "completed": current.completed if data.completed is None else data.completed,
        }
    if data.title is None or data.priority is None:
        raise InvalidInputError("title and priority are required to replace a task")
    return {
        "title": data.title,
        "description": data.description or "",
        "priority": data.priority,
        "deadline": data.deadline or NO_DEADLINE,
        "completed": bool(data.completed),
    }


class TaskStore(ABC):
    """Durable task CRUD with per-user scoping.

    Missing ids are never errors: reads return None, updates return None and
    deletes return False. Backend failures raise StorageError.
    """

    backend: str = "abstract"

    def __init__(
        self,
        *,
        update_policy: UpdatePolicy = "replace",
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.update_policy = update_policy
        self._clock = clock
        self._initialized = False

    def _ensure_initialized(self) -> None:
        # Operations called before initialize() prepare storage on first use
        if not self._initialized:
            self.initialize()

    @abstractmethod
    def initialize(self) -> None:
        """Prepare storage; idempotent."""

    @abstractmethod
    def create_task(self, data: TaskInput) -> Task: ...

    @abstractmethod
    def get_all_tasks(self, owner_email: Optional[str] = None) -> List[Task]:
        """Owner's tasks plus orphans (or all tasks), newest first."""

    @abstractmethod
    def get_task_by_id(self, task_id: int) -> Optional[Task]: ...

    @abstractmethod
    def update_task(self, task_id: int, data: UpdateInput) -> Optional[Task]: ...

    @abstractmethod
    def toggle_completion(self, task_id: int, completed: bool) -> Optional[Task]: ...

    @abstractmethod
    def delete_task(self, task_id: int) -> bool: ...

    @abstractmethod
    def delete_tasks_by_owner(self, owner_email: str) -> int:
        """Delete the owner's tasks and every orphan; returns the count."""

    @abstractmethod
    def reconcile_orphans(self, owner_email: str) -> int:
        """Assign `owner_email` to every orphaned task; returns the count."""

    @abstractmethod
    def reassign_owner(self, old_email: str, new_email: str) -> int:
        """Move tasks owned by `old_email` to `new_email`; orphans stay orphans."""

    @abstractmethod
    def search_tasks(self, text: str, owner_email: Optional[str] = None) -> List[Task]: ...

    @abstractmethod
    def get_tasks_by_completion(
        self, completed: bool, owner_email: Optional[str] = None
    ) -> List[Task]: ...

    @abstractmethod
    def count_tasks(self, owner_email: Optional[str] = None) -> int: ...

    @abstractmethod
    def clear_all_tasks(self) -> int: ...

    def close(self) -> None:
        """Release resources; backends without any keep this no-op."""
        return
