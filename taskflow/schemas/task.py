# taskflow/schemas/task.py
from pydantic import BaseModel, Field, field_validator, AliasChoices
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

StatusValue = Literal["todo", "in-progress", "done"]
PriorityValue = Literal["low", "medium", "high"]


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Timestamps are persisted as naive UTC
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class SubtaskIn(BaseModel):
    title: str = Field(min_length=1)
    completed: bool = False
    order: int = 0


class SubtaskOut(BaseModel):
    id: int
    title: str
    completed: bool
    order: int

    model_config = {
        "from_attributes": True
    }


class TaskTimeEntryOut(BaseModel):
    id: int
    start_time: datetime
    end_time: datetime
    duration: int
    notes: Optional[str] = None

    model_config = {
        "from_attributes": True
    }


# Attachment metadata only; bytes are stored by an external service
class AttachmentCreate(BaseModel):
    filename: str = Field(min_length=1, max_length=255)
    original_name: Optional[str] = None
    mime_type: str = "application/octet-stream"
    size: int
    url: str = Field(min_length=1)


class AttachmentOut(BaseModel):
    id: int
    task_id: int
    filename: str
    original_name: Optional[str] = None
    mime_type: str
    size: int
    url: str
    uploaded_at: datetime

    model_config = {
        "from_attributes": True
    }


class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    status: StatusValue = "todo"
    priority: PriorityValue = "medium"
    due_date: Optional[datetime] = None
    tags: List[str] = []
    subtasks: List[SubtaskIn] = []
    dependencies: List[int] = []
    parent_task_id: Optional[int] = None
    project_id: Optional[int] = None
    estimated_time: int = Field(default=0, ge=0)

    @field_validator("title")
    @classmethod
    def title_must_not_be_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Title is required")
        return v.strip()

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v):
        return _to_naive_utc(v)


class TaskUpdate(BaseModel):
    """Partial update: only fields present in the request are written"""

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[StatusValue] = None
    priority: Optional[PriorityValue] = None
    due_date: Optional[datetime] = None
    tags: Optional[List[str]] = None
    subtasks: Optional[List[SubtaskIn]] = None
    dependencies: Optional[List[int]] = None
    parent_task_id: Optional[int] = None
    project_id: Optional[int] = None
    estimated_time: Optional[int] = Field(default=None, ge=0)

    @field_validator("title")
    @classmethod
    def title_must_not_be_blank(cls, v):
        if v is None or not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v):
        return _to_naive_utc(v)


class TaskStatusUpdate(BaseModel):
    status: StatusValue


class TaskOut(BaseModel):
    id: int
    owner_id: str
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    due_date: Optional[datetime] = None
    tags: List[str] = []
    subtasks: List[SubtaskOut] = []
    dependencies: List[int] = []
    parent_task_id: Optional[int] = None
    project_id: Optional[int] = None
    estimated_time: int
    time_spent: int
    time_logs: List[TaskTimeEntryOut] = []
    attachments: List[AttachmentOut] = []
    ai_meta: Optional[Dict[str, Any]] = None
    progress: float
    progress_percent: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class TaskSummary(BaseModel):
    id: int
    title: str
    status: str

    model_config = {
        "from_attributes": True
    }


class TaskBoard(BaseModel):
    todo: List[TaskOut] = []
    in_progress: List[TaskOut] = Field(default=[], serialization_alias="in-progress")
    done: List[TaskOut] = []


class DependencyCreate(BaseModel):
    depends_on_id: int = Field(validation_alias=AliasChoices("depends_on_id", "dependsOnId"))


class TaskDependencyView(BaseModel):
    task: TaskSummary
    dependencies: List[TaskSummary] = []
    parent: Optional[TaskSummary] = None
    # Ids that no longer resolve (deleted or foreign)
    missing: List[int] = []
