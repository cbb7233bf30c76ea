# PURPOSE: runtime settings for the task core.
# - Pydantic v2 settings via pydantic-settings; env vars map by field name:
#     DATABASE_URL, STORAGE_BACKEND, TASKS_FILE, ...
# - .env is supported.

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Backend A (embedded database). Default stays on a local SQLite file.
    # Examples:
    #   sqlite:///./foxlist.db
    #   sqlite:///:memory:
    DATABASE_URL: str = "sqlite:///./foxlist.db"

    # Which task backend to use:
    #   auto     -> probe the database, fall back to the JSON file
    #   database -> always Backend A
    #   file     -> always Backend B (in-memory + JSON mirror)
    STORAGE_BACKEND: Literal["auto", "database", "file"] = "auto"

    # Backend B blob and the key-value credential store
    TASKS_FILE: str = "./foxlist_tasks.json"
    CREDENTIALS_FILE: str = "./foxlist_credentials.json"

    # Task update policy: "replace" resets omitted fields, "merge" keeps them
    TASK_UPDATE_POLICY: Literal["replace", "merge"] = "replace"

    # Password handling at the auth boundary ("plain" keeps stored data compatible)
    PASSWORD_HASHING: Literal["plain", "bcrypt"] = "plain"

    # Claim orphaned (owner-less) tasks for the user signing in
    RECONCILE_ON_SIGN_IN: bool = True

    # Logging / diagnostics
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
