# taskflow/services/pomodoro.py
"""
Pomodoro overlay: a tick-driven state machine over the timer start/stop calls.

    idle --start--> work --countdown--> break --countdown--> idle

The countdown is advanced by ``tick()`` (once per second on the client). The
underlying time log stays open across work and break and is stopped when the
break runs out or on a manual ``stop()``; the server never sees the ticks.
"""

import enum
import logging
from typing import Optional

from taskflow.config.settings import Settings
from taskflow.exceptions import ValidationFailure

logger = logging.getLogger(__name__)


class PomodoroPhase(str, enum.Enum):
    IDLE = "idle"
    WORK = "work"
    BREAK = "break"


class TrackerBackend:
    """Binds the start/stop primitives of a TimeTracker to one owner"""

    def __init__(self, tracker, owner_id: str):
        self.tracker = tracker
        self.owner_id = owner_id

    def start(self, task_id: int) -> int:
        return self.tracker.start_timer(self.owner_id, task_id, "pomodoro").id

    def stop(self, log_id: int) -> None:
        self.tracker.stop_timer(self.owner_id, log_id)


class PomodoroTimer:
    def __init__(self, backend, work_seconds: int = None, break_seconds: int = None):
        self.backend = backend
        self.work_seconds = Settings.POMODORO["work_seconds"] if work_seconds is None else work_seconds
        self.break_seconds = Settings.POMODORO["break_seconds"] if break_seconds is None else break_seconds
        if self.work_seconds < 0 or self.break_seconds < 0:
            raise ValidationFailure("Pomodoro phase lengths cannot be negative")
        self.phase = PomodoroPhase.IDLE
        self.remaining = self.work_seconds
        self.sessions_completed = 0
        self.task_id: Optional[int] = None
        self.log_id: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self.phase != PomodoroPhase.IDLE

    def start(self, task_id: int) -> PomodoroPhase:
        if self.is_running:
            self.stop()
        self.log_id = self.backend.start(task_id)
        self.task_id = task_id
        self.phase = PomodoroPhase.WORK
        self.remaining = self.work_seconds
        logger.debug(f"Pomodoro work started on task {task_id} (log {self.log_id})")
        return self.phase

    def tick(self, seconds: int = 1) -> PomodoroPhase:
        """Advance the countdown; at most one phase change per tick"""
        if not self.is_running:
            return self.phase

        self.remaining -= seconds
        if self.remaining > 0:
            return self.phase

        if self.phase == PomodoroPhase.WORK:
            self.sessions_completed += 1
            self.phase = PomodoroPhase.BREAK
            self.remaining = self.break_seconds
            logger.debug(f"Pomodoro session {self.sessions_completed} done, break started")
        else:
            self._finish()
        return self.phase

    def stop(self) -> PomodoroPhase:
        if self.is_running:
            self._finish()
        return self.phase

    def _finish(self) -> None:
        if self.log_id is not None:
            self.backend.stop(self.log_id)
        self.phase = PomodoroPhase.IDLE
        self.remaining = self.work_seconds
        self.task_id = None
        self.log_id = None

    def snapshot(self) -> dict:
        return {
            "phase": self.phase.value,
            "remaining": self.remaining,
            "sessions_completed": self.sessions_completed,
            "task_id": self.task_id,
            "log_id": self.log_id,
        }
