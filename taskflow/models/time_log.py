# taskflow/models/time_log.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Index, text
from datetime import datetime
import enum

from taskflow.database import Base


class TimeLogType(str, enum.Enum):
    WORK = "work"
    BREAK = "break"
    POMODORO = "pomodoro"


class TimeLog(Base):
    __tablename__ = "time_logs"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(64), nullable=False, index=True)
    # Weak reference: history survives task deletion
    task_id = Column(Integer, nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)
    duration = Column(Integer, default=0, nullable=False)  # minutes, set on stop
    type = Column(String(20), default=TimeLogType.WORK.value, nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # At most one active entry per owner
    __table_args__ = (
        Index(
            "uq_time_logs_active_owner",
            "owner_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    def __repr__(self):
        return f"<TimeLog(id={self.id}, owner_id='{self.owner_id}', task_id={self.task_id}, active={self.is_active})>"
