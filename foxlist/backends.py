# PURPOSE: pick the task backend once, at construction time.
# "auto" probes the embedded database and falls back to the JSON file store
# on hosts where it cannot be opened.

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings
from .db import make_engine
from .store import TaskStore
from .store_db import DatabaseTaskStore
from .store_file import FileTaskStore

logger = logging.getLogger(__name__)


def database_available(db_url: str) -> bool:
    """Return True if an engine for `db_url` can be created and answers SELECT 1."""
    try:
        engine = make_engine(db_url)
    except (ImportError, SQLAlchemyError) as exc:
        # e.g. missing DB driver or sqlite3 module on this host
        logger.warning("database unavailable url=%s error=%s", db_url, exc)
        return False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        logger.warning("database unavailable url=%s error=%s", engine.url, exc)
        return False
    finally:
        engine.dispose()


def build_task_store(settings: Settings) -> TaskStore:
    """Construct (but do not initialize) the configured task store."""
    choice = settings.STORAGE_BACKEND
    if choice == "auto":
        choice = "database" if database_available(settings.DATABASE_URL) else "file"

    if choice == "database":
        store: TaskStore = DatabaseTaskStore(
            settings.DATABASE_URL, update_policy=settings.TASK_UPDATE_POLICY
        )
    else:
        store = FileTaskStore(settings.TASKS_FILE, update_policy=settings.TASK_UPDATE_POLICY)
    logger.info("task backend selected backend=%s requested=%s", store.backend, settings.STORAGE_BACKEND)
    return store
