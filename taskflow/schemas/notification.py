from pydantic import BaseModel
from datetime import datetime
from typing import Literal


class NotificationOut(BaseModel):
    id: str
    type: Literal["overdue", "today", "upcoming"]
    title: str
    message: str
    date: datetime
    target_task_id: int

    model_config = {
        "from_attributes": True
    }
