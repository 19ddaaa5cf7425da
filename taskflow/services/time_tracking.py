# taskflow/services/time_tracking.py
"""
Time-tracking engine.

Per owner the engine is either idle or has exactly one active entry. Starting
a timer closes whatever entry is active first and creates the new one in the
same transaction; a partial unique index on (owner_id WHERE is_active) turns
a lost race into an IntegrityError, which is retried here rather than
surfaced. Interrupted entries get an end time but no duration, so they are
never credited to the task. Only ``stop_timer`` credits time.
"""

import logging
import math
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from taskflow.exceptions import ConflictFailure, NotFoundError, NotAuthorizedError, ValidationFailure
from taskflow.models import Task, TaskTimeEntry, TimeLog, TimeLogType
from taskflow.services.task_repository import TaskRepository

logger = logging.getLogger(__name__)

LOG_TYPES = tuple(t.value for t in TimeLogType)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes, half a minute and up rounds up"""
    seconds = (end - start).total_seconds()
    return max(0, int(math.floor(seconds / 60 + 0.5)))


class TimeTracker:
    MAX_START_ATTEMPTS = 3

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.utcnow):
        self.db = db
        self.clock = clock

    def get_active_log(self, owner_id: str) -> Optional[TimeLog]:
        return self.db.query(TimeLog).filter(
            TimeLog.owner_id == owner_id,
            TimeLog.is_active == True  # noqa: E712
        ).first()

    def _deactivate_active(self, owner_id: str, now: datetime) -> int:
        return self.db.query(TimeLog).filter(
            TimeLog.owner_id == owner_id,
            TimeLog.is_active == True  # noqa: E712
        ).update(
            {TimeLog.is_active: False, TimeLog.end_time: now},
            synchronize_session=False,
        )

    def start_timer(self, owner_id: str, task_id: int, log_type: str = "work", notes: str = None) -> TimeLog:
        if log_type not in LOG_TYPES:
            raise ValidationFailure(f"Invalid timer type. Must be one of: {', '.join(LOG_TYPES)}")

        # Raises NotFound / NotAuthorized for foreign or unknown tasks
        TaskRepository(self.db).get_task(owner_id, task_id)

        for attempt in range(1, self.MAX_START_ATTEMPTS + 1):
            now = self.clock()
            try:
                interrupted = self._deactivate_active(owner_id, now)
                entry = TimeLog(
                    owner_id=owner_id,
                    task_id=task_id,
                    start_time=now,
                    type=log_type,
                    is_active=True,
                    notes=notes,
                )
                self.db.add(entry)
                self.db.commit()
            except IntegrityError:
                # A concurrent start won the race; deactivate it and try again
                self.db.rollback()
                logger.warning(f"Timer start race for owner {owner_id} (attempt {attempt})")
                continue

            self.db.refresh(entry)
            if interrupted:
                logger.info(f"Interrupted {interrupted} active timer(s) for owner {owner_id} without credit")
            logger.info(f"Timer {entry.id} started for owner {owner_id} on task {task_id} ({log_type})")
            return entry

        raise ConflictFailure("Could not start timer: another timer kept becoming active")

    def stop_timer(self, owner_id: str, log_id: int) -> TimeLog:
        """Close an active entry and credit its duration to the task.

        Stopping an entry that is already closed returns it unchanged.
        """
        entry = self.db.query(TimeLog).filter(TimeLog.id == log_id).first()
        if not entry:
            raise NotFoundError("Time log not found")
        if entry.owner_id != owner_id:
            raise NotAuthorizedError("User not authorized")
        if not entry.is_active:
            logger.info(f"Timer {log_id} already stopped, nothing to credit")
            return entry

        end_time = self.clock()
        duration = minutes_between(entry.start_time, end_time)

        try:
            closed = self.db.query(TimeLog).filter(
                TimeLog.id == log_id,
                TimeLog.is_active == True  # noqa: E712
            ).update(
                {TimeLog.is_active: False, TimeLog.end_time: end_time, TimeLog.duration: duration},
                synchronize_session=False,
            )
            if not closed:
                # Closed concurrently by another stop or start
                self.db.rollback()
                self.db.refresh(entry)
                return entry

            credited = self.db.query(Task).filter(Task.id == entry.task_id).update(
                {Task.time_spent: Task.time_spent + duration},
                synchronize_session=False,
            )
            if credited:
                self.db.add(TaskTimeEntry(
                    task_id=entry.task_id,
                    start_time=entry.start_time,
                    end_time=end_time,
                    duration=duration,
                    notes=entry.notes,
                ))
            else:
                logger.warning(f"Task {entry.task_id} no longer exists; timer {log_id} closed without credit")

            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to stop timer {log_id}")
            raise

        self.db.refresh(entry)
        logger.info(f"Timer {log_id} stopped for owner {owner_id}: {duration} min")
        return entry

    def list_logs(self, owner_id: str) -> List[TimeLog]:
        return self.db.query(TimeLog).filter(
            TimeLog.owner_id == owner_id
        ).order_by(TimeLog.start_time.desc(), TimeLog.id.desc()).all()

    def task_logs(self, owner_id: str, task_id: int) -> List[TimeLog]:
        return self.db.query(TimeLog).filter(
            TimeLog.owner_id == owner_id,
            TimeLog.task_id == task_id
        ).order_by(TimeLog.start_time.desc(), TimeLog.id.desc()).all()
