# PURPOSE: pydantic schemas shared by both task backends, the credential store
# and the auth coordinator.
# - Field names are the domain names (priority, deadline, owner_email);
#   aliases carry the persisted wire names (status, time, user_email, createdAt).
# - Inputs accept either spelling.

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

Priority = Literal["alta", "media", "baixa"]

# Wire tokens ranked for sorting: high(3) > medium(2) > low(1)
PRIORITY_RANK: dict[str, int] = {"alta": 3, "media": 2, "baixa": 1}

# Sentinel stored in `time` when a task has no deadline
NO_DEADLINE = "Sem prazo"


def now_utc() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


def to_iso(value: datetime) -> str:
    """ISO-8601 text with a fixed precision so stored values sort lexically."""
    return value.isoformat(timespec="microseconds")


def _deadline_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_iso(value)
    return value


# --- Tasks -----------------------------------------------------------------


class TaskCreate(BaseModel):
    title: str
    description: str | None = None
    priority: Priority = Field(validation_alias=AliasChoices("priority", "status"))
    deadline: str | None = Field(
        default=None, validation_alias=AliasChoices("deadline", "time")
    )
    owner_email: str | None = Field(
        default=None, validation_alias=AliasChoices("owner_email", "user_email")
    )
    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "examples": [
                {"title": "Buy milk", "priority": "baixa"},
                {"title": "Plan trip", "priority": "alta", "deadline": "2025-12-31T18:00:00Z"},
            ]
        },
    )

    @field_validator("deadline", mode="before")
    @classmethod
    def _normalize_deadline(cls, value: Any) -> str | None:
        return _deadline_text(value)

    @field_validator("owner_email", mode="before")
    @classmethod
    def _blank_owner_is_orphan(cls, value: Any) -> str | None:
        return value or None


class TaskUpdate(BaseModel):
    """Fields for update_task(); `None` means "not provided"."""

    title: str | None = None
    description: str | None = None
    priority: Priority | None = Field(
        default=None, validation_alias=AliasChoices("priority", "status")
    )
    deadline: str | None = Field(
        default=None, validation_alias=AliasChoices("deadline", "time")
    )
    completed: bool | None = None
    model_config = ConfigDict(extra="ignore")

    @field_validator("deadline", mode="before")
    @classmethod
    def _normalize_deadline(cls, value: Any) -> str | None:
        return _deadline_text(value)


class Task(BaseModel):
    id: int
    title: str
    description: str = ""
    priority: Priority = Field(alias="status")
    deadline: str = Field(default=NO_DEADLINE, alias="time")
    completed: bool = False
    owner_email: str | None = Field(default=None, alias="user_email")
    created_at: str
    updated_at: str

    model_config = ConfigDict(populate_by_name=True)

    def to_record(self) -> dict[str, Any]:
        """Persisted wire shape shared by both backends."""
        return self.model_dump(by_alias=True)


# --- Users / sessions --------------------------------------------------------


class SessionUser(BaseModel):
    """Current-session user: a registry record without its secret."""

    id: str
    name: str
    email: str
    created_at: str = Field(alias="createdAt")
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class UserRecord(SessionUser):
    password: str

    def public(self) -> SessionUser:
        return SessionUser.model_validate(self.model_dump(exclude={"password"}))


class ProfileUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    model_config = ConfigDict(extra="ignore")


class SignUpForm(BaseModel):
    """Registration form as collected by the UI."""

    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    confirm_password: str
    model_config = ConfigDict(str_strip_whitespace=True)

    @model_validator(mode="after")
    def _passwords_match(self) -> "SignUpForm":
        if self.password != self.confirm_password:
            raise ValueError("passwords do not match")
        return self


class AuthResult(BaseModel):
    success: bool
    message: str | None = None
    error: str | None = None
    user: SessionUser | None = None


# --- Deadline alerts / views -------------------------------------------------

DeadlineStatus = Literal["no-deadline", "error", "overdue", "today", "warning", "ok"]


class DeadlineAlert(BaseModel):
    status: DeadlineStatus
    message: str
    severity_rank: int
    icon: str | None = None
    color: str
    background_color: str


class TaskView(BaseModel):
    """A task ready for display: the record plus its urgency classification."""

    task: Task
    alert: DeadlineAlert
