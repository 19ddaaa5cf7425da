# taskflow/routers/notifications.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional

from taskflow.database import get_db
from taskflow.schemas import NotificationOut
from taskflow.services.notifications import derive
from taskflow.services.task_repository import TaskRepository
from taskflow.utils.auth import get_current_owner

router = APIRouter(tags=["Notifications"])


@router.get("/notifications", response_model=List[NotificationOut])
def get_notifications(
    at: Optional[datetime] = None,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    """Due-date alerts recomputed from the caller's current tasks.

    ``at`` pins the reference time; pass it with the client's UTC offset to
    get day boundaries in the client's zone.
    """
    now = at or datetime.utcnow()
    return derive(TaskRepository(db).list_tasks(owner_id), now)
