from pydantic import BaseModel, Field, AliasChoices
from datetime import datetime
from typing import Literal, Optional


class TimerStart(BaseModel):
    task_id: int = Field(validation_alias=AliasChoices("task_id", "taskId"))
    type: Literal["work", "break", "pomodoro"] = "work"
    notes: Optional[str] = None


class TimeLogOut(BaseModel):
    id: int
    owner_id: str
    task_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: int
    type: str
    is_active: bool
    notes: Optional[str] = None

    model_config = {
        "from_attributes": True
    }
