# taskflow/models/task.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Boolean, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from taskflow.database import Base


class TaskStatus(str, enum.Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(64), nullable=False, index=True)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Task properties
    status = Column(String(20), default=TaskStatus.TODO.value, nullable=False)
    priority = Column(String(20), default=TaskPriority.MEDIUM.value, nullable=False)
    due_date = Column(DateTime, nullable=True)
    tags = Column(JSON, default=list, nullable=False)

    # Weak references: plain ids resolved by lookup, never foreign keys
    dependencies = Column(JSON, default=list, nullable=False)
    parent_task_id = Column(Integer, nullable=True)
    project_id = Column(Integer, nullable=True)

    # Minutes
    estimated_time = Column(Integer, default=0, nullable=False)
    time_spent = Column(Integer, default=0, nullable=False)

    # Assistant breakdown, stored verbatim
    ai_meta = Column(JSON, nullable=True)

    # System dates
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    subtasks = relationship(
        "Subtask", back_populates="task", cascade="all, delete-orphan", order_by="Subtask.id"
    )
    time_logs = relationship(
        "TaskTimeEntry", back_populates="task", cascade="all, delete-orphan", order_by="TaskTimeEntry.id"
    )
    attachments = relationship(
        "TaskAttachment", back_populates="task", cascade="all, delete-orphan", order_by="TaskAttachment.id"
    )

    @property
    def progress(self) -> float:
        from taskflow.services.task_logic import progress_ratio
        return progress_ratio(self)

    @property
    def progress_percent(self) -> int:
        from taskflow.services.task_logic import progress_percent
        return progress_percent(self)

    def __repr__(self):
        return f"<Task(id={self.id}, owner_id='{self.owner_id}', title='{self.title}', status='{self.status}')>"


class Subtask(Base):
    __tablename__ = "subtasks"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    order = Column("sort_order", Integer, default=0, nullable=False)  # display hint only

    task = relationship("Task", back_populates="subtasks")


class TaskTimeEntry(Base):
    """Closed time-tracking session copied onto the task for fast history reads"""

    __tablename__ = "task_time_entries"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    duration = Column(Integer, default=0, nullable=False)  # minutes
    notes = Column(Text, nullable=True)

    task = relationship("Task", back_populates="time_logs")


class TaskAttachment(Base):
    __tablename__ = "task_attachments"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    filename = Column(String(255), nullable=False)  # Stored filename
    original_name = Column(String(255), nullable=True)  # Name as uploaded
    mime_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)  # bytes
    url = Column(String(500), nullable=False)
    uploaded_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    task = relationship("Task", back_populates="attachments")
