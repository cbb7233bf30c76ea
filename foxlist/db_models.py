# PURPOSE: define how task rows look in the embedded database.
# Column names are the persisted wire names shared with the JSON backend.

from sqlalchemy import Column, Index, Integer, Text

from .db import Base


class TaskDB(Base):
    __tablename__ = "tasks"
    # AUTOINCREMENT: ids are never reused after a delete
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    title = Column(Text, nullable=False)
    description = Column(Text, default="")
    status = Column(Text, nullable=False)  # alta | media | baixa
    time = Column(Text)  # ISO instant or "Sem prazo"
    completed = Column(Integer, default=0)  # 0/1
    user_email = Column(Text, nullable=True)  # NULL = orphaned legacy row
    created_at = Column(Text)
    updated_at = Column(Text)


class SchemaMigrationDB(Base):
    __tablename__ = "schema_migrations"

    version = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    applied_at = Column(Text)


# Owner-scoped reads and deletes filter on this column
ix_tasks_user_email = Index("ix_tasks_user_email", TaskDB.user_email)
