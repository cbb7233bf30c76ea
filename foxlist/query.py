# PURPOSE: in-memory search/filter/sort over a user's task list.
# Recomputed from scratch on every call; no incremental state.

from typing import Iterable, List, Literal

from pydantic import BaseModel, ConfigDict

from .models import PRIORITY_RANK, Task

CompletionFilter = Literal["all", "pending", "completed"]
SortKey = Literal["recency", "priority"]


class TaskQuery(BaseModel):
    search_text: str = ""
    completion_filter: CompletionFilter = "all"
    sort_key: SortKey = "recency"
    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "examples": [
                {"search_text": "milk"},
                {"completion_filter": "pending", "sort_key": "priority"},
            ]
        },
    )


def matches_text(task: Task, text: str) -> bool:
    """Case-insensitive substring match on title or description."""
    needle = text.lower()
    return needle in task.title.lower() or needle in task.description.lower()


def apply_query(tasks: Iterable[Task], query: TaskQuery) -> List[Task]:
    items = list(tasks)

    if query.search_text:
        items = [t for t in items if matches_text(t, query.search_text)]

    if query.completion_filter == "pending":
        items = [t for t in items if not t.completed]
    elif query.completion_filter == "completed":
        items = [t for t in items if t.completed]

    # sorted() is stable: equal keys keep their incoming order
    if query.sort_key == "priority":
        return sorted(items, key=lambda t: PRIORITY_RANK.get(t.priority, 0), reverse=True)
    return sorted(items, key=lambda t: t.created_at, reverse=True)
