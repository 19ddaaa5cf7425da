# taskflow/routers/time_log.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from taskflow.database import get_db
from taskflow.schemas import TimerStart, TimeLogOut
from taskflow.services.time_tracking import TimeTracker
from taskflow.utils.auth import get_current_owner

router = APIRouter(prefix="/timelogs", tags=["Time Logs"])


@router.post("/start", response_model=TimeLogOut, status_code=status.HTTP_201_CREATED)
def start_timer(
    timer: TimerStart,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    """Start a timer, closing any timer the caller already has running"""
    return TimeTracker(db).start_timer(owner_id, timer.task_id, timer.type, timer.notes)


@router.post("/stop/{log_id}", response_model=TimeLogOut)
def stop_timer(
    log_id: int,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    return TimeTracker(db).stop_timer(owner_id, log_id)


@router.get("/active", response_model=Optional[TimeLogOut])
def get_active_timer(
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    return TimeTracker(db).get_active_log(owner_id)


@router.get("/task/{task_id}", response_model=List[TimeLogOut])
def get_logs_for_task(
    task_id: int,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    return TimeTracker(db).task_logs(owner_id, task_id)


@router.get("", response_model=List[TimeLogOut])
def get_logs(
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    return TimeTracker(db).list_logs(owner_id)
