# PURPOSE: Backend A - tasks in an embedded SQL database (SQLAlchemy).
# - initialize(): create missing tables, then run versioned migrations.
# - completed is stored as 0/1 and converted back to bool on every read.
# - Every SQLAlchemy failure surfaces as StorageError.

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db import SQLITE_LOWER, Base, install_sqlite_functions, make_engine, make_session_factory
from .db_models import TaskDB
from .errors import StorageError
from .migrations import run_startup_migrations
from .models import NO_DEADLINE, Task, now_utc, to_iso
from .store import (
    TaskInput,
    TaskStore,
    UpdateInput,
    UpdatePolicy,
    coerce_create,
    coerce_update,
    resolve_update,
)

logger = logging.getLogger(__name__)


# --- Helpers ---------------------------------------------------------------


def _to_task(row: TaskDB) -> Task:
    """Map an ORM row to the shared Task schema (0/1 -> bool)."""
    return Task.model_validate(
        {
            "id": row.id,
            "title": row.title,
            "description": row.description or "",
            "status": row.status,
            "time": row.time or NO_DEADLINE,
            "completed": bool(row.completed),
            "user_email": row.user_email,
            "created_at": row.created_at or "",
            "updated_at": row.updated_at or "",
        }
    )


def _like_pattern(text: str) -> str:
    """Substring pattern with LIKE wildcards in `text` taken literally."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _apply_common_filters(
    query,
    *,
    owner_email: Optional[str] = None,
    completed: Optional[bool] = None,
    q: Optional[str] = None,
    lower=func.lower,
):
    """Apply shared filters to a TaskDB query.

    `lower` is the SQL function used to fold case before matching `q`.
    """
    if owner_email is not None:
        # Orphans (NULL owner) are visible to every user until reconciled
        query = query.filter(or_(TaskDB.user_email == owner_email, TaskDB.user_email.is_(None)))
    if completed is not None:
        query = query.filter(TaskDB.completed == (1 if completed else 0))
    if q is not None:
        like = _like_pattern(q)
        query = query.filter(
            or_(
                lower(TaskDB.title).like(lower(like), escape="\\"),
                lower(TaskDB.description).like(lower(like), escape="\\"),
            )
        )
    return query


def _apply_ordering(query):
    # newest first, id as a stable tie-breaker
    return query.order_by(TaskDB.created_at.desc(), TaskDB.id.desc())


# --- Store -----------------------------------------------------------------


class DatabaseTaskStore(TaskStore):
    backend = "database"

    def __init__(
        self,
        db_url: Optional[str] = None,
        *,
        engine: Optional[Engine] = None,
        update_policy: UpdatePolicy = "replace",
        clock=now_utc,
    ) -> None:
        super().__init__(update_policy=update_policy, clock=clock)
        if engine is None:
            if db_url is None:
                raise ValueError("db_url or engine is required")
            engine = make_engine(db_url)
        install_sqlite_functions(engine)
        self._engine = engine
        self._lower = getattr(func, SQLITE_LOWER) if engine.dialect.name == "sqlite" else func.lower
        self._SessionLocal = make_session_factory(engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        """Yield a Session; roll back and wrap SQLAlchemy failures."""
        db = self._SessionLocal()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("task store failed backend=database action=%s error=%s", action, exc)
            raise StorageError(f"could not {action}") from exc
        finally:
            db.close()

    def _query(self, action: str, **filters) -> List[Task]:
        self._ensure_initialized()
        with self._session(action) as db:
            query = _apply_common_filters(db.query(TaskDB), lower=self._lower, **filters)
            return [_to_task(row) for row in _apply_ordering(query).all()]

    # --- Lifecycle ---------------------------------------------------------

    def initialize(self) -> None:
        """Create the tasks table if absent and migrate older layouts."""
        try:
            Base.metadata.create_all(bind=self._engine)
            changed = run_startup_migrations(self._engine)
        except SQLAlchemyError as exc:
            logger.error("task store init failed backend=database error=%s", exc)
            raise StorageError("could not initialize task database") from exc
        self._initialized = True
        logger.info(
            "task store ready backend=database url=%s migrated=%s",
            self._engine.url,
            changed or "-",
        )

    def close(self) -> None:
        self._engine.dispose()

    # --- CRUD ----------------------------------------------------------------

    def create_task(self, data: TaskInput) -> Task:
        item = coerce_create(data)
        self._ensure_initialized()
        now = to_iso(self._clock())
        with self._session("create task") as db:
            row = TaskDB(
                title=item.title,
                description=item.description or "",
                status=item.priority,
                time=item.deadline or NO_DEADLINE,
                completed=0,
                user_email=item.owner_email,
                created_at=now,
                updated_at=now,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return _to_task(row)

    def get_all_tasks(self, owner_email: Optional[str] = None) -> List[Task]:
        return self._query("list tasks", owner_email=owner_email)

    def get_task_by_id(self, task_id: int) -> Optional[Task]:
        self._ensure_initialized()
        with self._session("get task") as db:
            row = db.get(TaskDB, task_id)
            return _to_task(row) if row is not None else None

    def update_task(self, task_id: int, data: UpdateInput) -> Optional[Task]:
        item = coerce_update(data)
        self._ensure_initialized()
        with self._session("update task") as db:
            row = db.get(TaskDB, task_id)
            if row is None:
                return None
            fields = resolve_update(_to_task(row), item, self.update_policy)
            row.title = fields["title"]
            row.description = fields["description"]
            row.status = fields["priority"]
            row.time = fields["deadline"]
            row.completed = 1 if fields["completed"] else 0
            row.updated_at = to_iso(self._clock())
            db.commit()
            db.refresh(row)
            return _to_task(row)

    def toggle_completion(self, task_id: int, completed: bool) -> Optional[Task]:
        self._ensure_initialized()
        with self._session("toggle task") as db:
            row = db.get(TaskDB, task_id)
            if row is None:
                return None
            row.completed = 1 if completed else 0
            row.updated_at = to_iso(self._clock())
            db.commit()
            db.refresh(row)
            return _to_task(row)

    def delete_task(self, task_id: int) -> bool:
        self._ensure_initialized()
        with self._session("delete task") as db:
            deleted = db.query(TaskDB).filter(TaskDB.id == task_id).delete(synchronize_session=False)
            db.commit()
            return deleted > 0

    # --- Ownership -------------------------------------------------------------

    def delete_tasks_by_owner(self, owner_email: str) -> int:
        self._ensure_initialized()
        with self._session("delete owner tasks") as db:
            deleted = (
                db.query(TaskDB)
                .filter(or_(TaskDB.user_email == owner_email, TaskDB.user_email.is_(None)))
                .delete(synchronize_session=False)
            )
            db.commit()
        logger.info("owner tasks deleted backend=database owner=%s count=%s", owner_email, deleted)
        return deleted

    def reconcile_orphans(self, owner_email: str) -> int:
        self._ensure_initialized()
        with self._session("reconcile orphans") as db:
            claimed = (
                db.query(TaskDB)
                .filter(TaskDB.user_email.is_(None))
                .update({TaskDB.user_email: owner_email}, synchronize_session=False)
            )
            db.commit()
        if claimed:
            logger.info("orphans reconciled backend=database owner=%s count=%s", owner_email, claimed)
        return claimed

    def reassign_owner(self, old_email: str, new_email: str) -> int:
        self._ensure_initialized()
        with self._session("reassign owner") as db:
            moved = (
                db.query(TaskDB)
                .filter(TaskDB.user_email == old_email)
                .update({TaskDB.user_email: new_email}, synchronize_session=False)
            )
            db.commit()
        logger.info(
            "owner reassigned backend=database old=%s new=%s count=%s", old_email, new_email, moved
        )
        return moved

    # --- Derived reads -----------------------------------------------------------

    def search_tasks(self, text: str, owner_email: Optional[str] = None) -> List[Task]:
        return self._query("search tasks", owner_email=owner_email, q=text)

    def get_tasks_by_completion(
        self, completed: bool, owner_email: Optional[str] = None
    ) -> List[Task]:
        return self._query("filter tasks", owner_email=owner_email, completed=completed)

    def count_tasks(self, owner_email: Optional[str] = None) -> int:
        self._ensure_initialized()
        with self._session("count tasks") as db:
            query = _apply_common_filters(db.query(func.count(TaskDB.id)), owner_email=owner_email)
            return int(query.scalar() or 0)

    def clear_all_tasks(self) -> int:
        self._ensure_initialized()
        with self._session("clear tasks") as db:
            deleted = db.query(TaskDB).delete(synchronize_session=False)
            db.commit()
        logger.warning("all tasks cleared backend=database count=%s", deleted)
        return deleted
