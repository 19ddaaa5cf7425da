# taskflow/services/notifications.py
"""
Due-date alerts derived from the live task set.

Nothing here is persisted: ``derive`` is a pure function of (tasks, now) and
returns the same ordered list for the same input.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional

from taskflow.config.settings import Settings
from taskflow.models.task import TaskStatus

OVERDUE = "overdue"
TODAY = "today"
UPCOMING = "upcoming"

TYPE_RANK = {OVERDUE: 0, TODAY: 1, UPCOMING: 2}

TITLES = {
    OVERDUE: "Overdue task",
    TODAY: "Due today",
    UPCOMING: "Upcoming deadline",
}


@dataclass(frozen=True)
class Notification:
    id: str
    type: str
    title: str
    message: str
    date: datetime
    target_task_id: Any


def _field(task, *names):
    for name in names:
        if isinstance(task, dict):
            if name in task:
                return task[name]
        elif hasattr(task, name):
            return getattr(task, name)
    return None


def parse_due_date(value) -> Optional[datetime]:
    """Datetime, date or ISO-8601 string; anything else is None"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if hasattr(value, "year") and hasattr(value, "month") and hasattr(value, "day"):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def in_frame_of(value: datetime, now: datetime) -> datetime:
    # Naive timestamps are stored as UTC; compare in the caller's zone
    if now.tzinfo is None:
        if value.tzinfo is None:
            return value
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(now.tzinfo)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def classify(due_day: datetime, today: datetime, horizon_days: int) -> Optional[str]:
    tomorrow = today + timedelta(days=1)
    horizon = today + timedelta(days=horizon_days)
    if due_day < today:
        return OVERDUE
    if due_day < tomorrow:
        return TODAY
    if due_day < horizon:
        return UPCOMING
    return None


def derive(
    tasks: Iterable,
    now: datetime,
    limit: int = None,
    horizon_days: int = None,
) -> List[Notification]:
    """Classify open tasks with a due date into overdue / today / upcoming.

    Sorted by bucket then due day, capped at ``limit`` (default 10). Tasks
    that are done, have no due date, or whose due date does not parse are
    skipped.
    """
    limit = Settings.NOTIFICATIONS["limit"] if limit is None else limit
    horizon_days = Settings.NOTIFICATIONS["horizon_days"] if horizon_days is None else horizon_days

    today = start_of_day(now)
    items = []

    for task in tasks:
        if task is None or _field(task, "status") == TaskStatus.DONE.value:
            continue

        due = parse_due_date(_field(task, "due_date", "dueDate"))
        if due is None:
            continue

        due_day = start_of_day(in_frame_of(due, now))
        kind = classify(due_day, today, horizon_days)
        if kind is None:
            continue

        task_id = _field(task, "id", "_id")
        items.append(Notification(
            id=f"{kind}-{task_id}",
            type=kind,
            title=TITLES[kind],
            message=_field(task, "title") or "",
            date=due_day,
            target_task_id=task_id,
        ))

    # Stable sort keeps input order for equal keys
    items.sort(key=lambda n: (TYPE_RANK[n.type], n.date))
    return items[:limit]
