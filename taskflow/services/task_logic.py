# taskflow/services/task_logic.py
"""
Pure status and progress rules over a task.

Any status may move to any other status directly; the board is a complete
graph on todo / in-progress / done, not a pipeline. Dependencies are never
consulted here: completing a task with open dependencies is allowed.
"""

from datetime import datetime
from typing import Dict, Iterable, List

from taskflow.exceptions import ValidationFailure
from taskflow.models.task import TaskStatus
from taskflow.services.notifications import in_frame_of

STATUSES = tuple(s.value for s in TaskStatus)


def set_status(task, new_status):
    value = new_status.value if isinstance(new_status, TaskStatus) else new_status
    if value not in STATUSES:
        raise ValidationFailure(f"Invalid status. Must be one of: {', '.join(STATUSES)}")
    task.status = value
    return task


def progress_ratio(task) -> float:
    """Completed subtasks over total subtasks, 0 when there are none"""
    subtasks = list(task.subtasks or [])
    if not subtasks:
        return 0.0
    completed = sum(1 for subtask in subtasks if subtask.completed)
    return completed / len(subtasks)


def progress_percent(task) -> int:
    return int(round(progress_ratio(task) * 100))


def is_overdue(task, now: datetime) -> bool:
    """Open, dated and past due; naive due dates are read as UTC"""
    if task.status == TaskStatus.DONE.value or task.due_date is None:
        return False
    return in_frame_of(task.due_date, now) < now


def board_columns(tasks: Iterable) -> Dict[str, List]:
    """Group tasks into the three workflow columns, keeping input order"""
    columns = {status: [] for status in STATUSES}
    for task in tasks:
        # Unknown legacy values land in the first column
        columns.get(task.status, columns[TaskStatus.TODO.value]).append(task)
    return columns
