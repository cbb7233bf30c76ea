# PURPOSE: Backend B - tasks kept in memory and mirrored to one JSON file.
# - Every mutation rewrites the whole file (no append log); last write wins.
# - The new list is persisted first and only then swapped in, so a failed
#   write leaves memory and disk in agreement.

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Callable, List, Optional, Union

from pydantic import ValidationError

from .errors import StorageError
from .models import NO_DEADLINE, Task, now_utc, to_iso
from .query import matches_text
from .store import (
    TaskInput,
    TaskStore,
    UpdateInput,
    UpdatePolicy,
    coerce_create,
    coerce_update,
    owned_by_or_orphan,
    resolve_update,
)

logger = logging.getLogger(__name__)


def _newest_first(tasks: List[Task]) -> List[Task]:
    return sorted(tasks, key=lambda t: (t.created_at, t.id), reverse=True)


class FileTaskStore(TaskStore):
    backend = "file"

    def __init__(
        self,
        path: Union[str, Path],
        *,
        update_policy: UpdatePolicy = "replace",
        clock=now_utc,
    ) -> None:
        super().__init__(update_policy=update_policy, clock=clock)
        self._path = Path(path)
        self._tasks: List[Task] = []

    @property
    def path(self) -> Path:
        return self._path

    # --- Persistence -----------------------------------------------------------

    def _load(self) -> List[Task]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageError(f"could not read {self._path}") from exc
        try:
            records = json.loads(raw) if raw.strip() else []
            if not isinstance(records, list):
                raise StorageError(f"{self._path} does not hold a task list")
            return [Task.model_validate(record) for record in records]
        except (ValueError, ValidationError) as exc:
            # json.JSONDecodeError is a ValueError
            raise StorageError(f"could not parse {self._path}") from exc

    def _commit(self, tasks: List[Task]) -> None:
        """Rewrite the whole blob, then make `tasks` the in-memory state."""
        payload = json.dumps([t.to_record() for t in tasks], ensure_ascii=False, indent=2)
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            logger.error("task store failed backend=file path=%s error=%s", self._path, exc)
            raise StorageError(f"could not write {self._path}") from exc
        self._tasks = tasks

    def _next_id(self) -> int:
        if not self._tasks:
            return 1
        return max(t.id for t in self._tasks) + 1

    def _find(self, task_id: int) -> Optional[Task]:
        return next((t for t in self._tasks if t.id == task_id), None)

    def _replace(self, updated: Task) -> None:
        self._commit([updated if t.id == updated.id else t for t in self._tasks])

    def _select(
        self,
        owner_email: Optional[str] = None,
        predicate: Optional[Callable[[Task], bool]] = None,
    ) -> List[Task]:
        self._ensure_initialized()
        items = self._tasks
        if owner_email is not None:
            items = [t for t in items if owned_by_or_orphan(t.owner_email, owner_email)]
        if predicate is not None:
            items = [t for t in items if predicate(t)]
        return _newest_first(items)

    # --- Lifecycle -------------------------------------------------------------

    def initialize(self) -> None:
        """Load the persisted blob, or start empty when there is none."""
        self._tasks = self._load()
        self._initialized = True
        logger.info("task store ready backend=file path=%s total=%s", self._path, len(self._tasks))

    # --- CRUD --------------------------------------------------------------------

    def create_task(self, data: TaskInput) -> Task:
        item = coerce_create(data)
        self._ensure_initialized()
        now = to_iso(self._clock())
        task = Task(
            id=self._next_id(),
            title=item.title,
            description=item.description or "",
            priority=item.priority,
            deadline=item.deadline or NO_DEADLINE,
            completed=False,
            owner_email=item.owner_email,
            created_at=now,
            updated_at=now,
        )
        self._commit([*self._tasks, task])
        return task

    def get_all_tasks(self, owner_email: Optional[str] = None) -> List[Task]:
        return self._select(owner_email)

    def get_task_by_id(self, task_id: int) -> Optional[Task]:
        self._ensure_initialized()
        return self._find(task_id)

    def update_task(self, task_id: int, data: UpdateInput) -> Optional[Task]:
        item = coerce_update(data)
        self._ensure_initialized()
        task = self._find(task_id)
        if task is None:
            return None
        fields = resolve_update(task, item, self.update_policy)
        updated = task.model_copy(update={**fields, "updated_at": to_iso(self._clock())})
        self._replace(updated)
        return updated

    def toggle_completion(self, task_id: int, completed: bool) -> Optional[Task]:
        self._ensure_initialized()
        task = self._find(task_id)
        if task is None:
            return None
        updated = task.model_copy(
            update={"completed": bool(completed), "updated_at": to_iso(self._clock())}
        )
        self._replace(updated)
        return updated

    def delete_task(self, task_id: int) -> bool:
        self._ensure_initialized()
        remaining = [t for t in self._tasks if t.id != task_id]
        deleted = len(remaining) != len(self._tasks)
        self._commit(remaining)
        return deleted

    # --- Ownership -----------------------------------------------------------------

    def delete_tasks_by_owner(self, owner_email: str) -> int:
        self._ensure_initialized()
        remaining = [t for t in self._tasks if not owned_by_or_orphan(t.owner_email, owner_email)]
        deleted = len(self._tasks) - len(remaining)
        self._commit(remaining)
        logger.info("owner tasks deleted backend=file owner=%s count=%s", owner_email, deleted)
        return deleted

    def reconcile_orphans(self, owner_email: str) -> int:
        self._ensure_initialized()
        claimed = sum(1 for t in self._tasks if t.owner_email is None)
        if not claimed:
            return 0
        self._commit(
            [
                t if t.owner_email is not None else t.model_copy(update={"owner_email": owner_email})
                for t in self._tasks
            ]
        )
        logger.info("orphans reconciled backend=file owner=%s count=%s", owner_email, claimed)
        return claimed

    def reassign_owner(self, old_email: str, new_email: str) -> int:
        self._ensure_initialized()
        moved = sum(1 for t in self._tasks if t.owner_email == old_email)
        if not moved:
            return 0
        self._commit(
            [
                t.model_copy(update={"owner_email": new_email}) if t.owner_email == old_email else t
                for t in self._tasks
            ]
        )
        logger.info("owner reassigned backend=file old=%s new=%s count=%s", old_email, new_email, moved)
        return moved

    # --- Derived reads ---------------------------------------------------------------

    def search_tasks(self, text: str, owner_email: Optional[str] = None) -> List[Task]:
        return self._select(owner_email, lambda t: matches_text(t, text))

    def get_tasks_by_completion(
        self, completed: bool, owner_email: Optional[str] = None
    ) -> List[Task]:
        return self._select(owner_email, lambda t: t.completed == completed)

    def count_tasks(self, owner_email: Optional[str] = None) -> int:
        return len(self._select(owner_email))

    def clear_all_tasks(self) -> int:
        self._ensure_initialized()
        deleted = len(self._tasks)
        self._commit([])
        logger.warning("all tasks cleared backend=file count=%s", deleted)
        return deleted
