from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional


class BreakdownRequest(BaseModel):
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    tags: List[str] = []
