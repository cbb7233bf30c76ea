# PURPOSE: build SQLAlchemy engines and Session factories for Backend A.

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Base: parent class for all ORM models (tables)
Base = declarative_base()

# SQL name of the Unicode-aware lower() registered on SQLite connections
SQLITE_LOWER = "py_lower"


def _unicode_lower(value):
    return value.lower() if value is not None else None


def _register_sqlite_functions(dbapi_conn, connection_record) -> None:
    # SQLite's built-in lower() only folds ASCII letters
    dbapi_conn.create_function(SQLITE_LOWER, 1, _unicode_lower, deterministic=True)


def install_sqlite_functions(engine: Engine) -> None:
    """Register `py_lower` on every connection of a SQLite engine; idempotent."""
    if engine.dialect.name != "sqlite":
        return
    if event.contains(engine, "connect", _register_sqlite_functions):
        return
    event.listen(engine, "connect", _register_sqlite_functions)
    # pooled connections opened before the listener existed lack the function
    engine.dispose()


def make_engine(db_url: str) -> Engine:
    """Create an engine; SQLite-specific connect_args only when needed."""
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    engine = create_engine(db_url, connect_args=connect_args)
    install_sqlite_functions(engine)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    # Sessions are opened/closed per store operation
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
