# taskflow/routers/tasks.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
import logging

from taskflow.database import get_db
from taskflow.schemas import (
    TaskCreate, TaskUpdate, TaskOut, TaskStatusUpdate, TaskBoard, TaskSummary,
    AttachmentCreate, AttachmentOut, DependencyCreate, TaskDependencyView,
)
from taskflow.services import task_logic
from taskflow.services.assistant import AssistantClient, get_assistant, request_breakdown
from taskflow.services.dependencies import DependencyRegistry, add_dependency, remove_dependency
from taskflow.services.task_repository import TaskRepository
from taskflow.utils.auth import get_current_owner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def _attach_breakdown(repo: TaskRepository, task, assistant: AssistantClient):
    # Never fails the surrounding task mutation
    try:
        breakdown = request_breakdown(
            assistant, task.title, description=task.description, due_date=task.due_date, tags=task.tags
        )
        return repo.set_ai_meta(task, breakdown)
    except Exception as e:
        logger.error(f"Could not store breakdown for task {task.id}: {e}")
        repo.db.rollback()
        return repo.get_task(task.owner_id, task.id)


@router.get("", response_model=List[TaskOut])
def list_tasks(
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    """All tasks of the caller, newest first"""
    return TaskRepository(db).list_tasks(owner_id)


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    breakdown: bool = False,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
    assistant: AssistantClient = Depends(get_assistant)
):
    repo = TaskRepository(db)
    db_task = repo.create_task(owner_id, task)
    if breakdown:
        db_task = _attach_breakdown(repo, db_task, assistant)
    return db_task


@router.get("/board", response_model=TaskBoard)
def get_board(
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    """Tasks grouped into the todo / in-progress / done columns"""
    columns = task_logic.board_columns(TaskRepository(db).list_tasks(owner_id))
    return TaskBoard(
        todo=[TaskOut.model_validate(t) for t in columns["todo"]],
        in_progress=[TaskOut.model_validate(t) for t in columns["in-progress"]],
        done=[TaskOut.model_validate(t) for t in columns["done"]],
    )


@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    return TaskRepository(db).get_task(owner_id, task_id)


@router.put("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: int,
    task_update: TaskUpdate,
    breakdown: bool = False,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
    assistant: AssistantClient = Depends(get_assistant)
):
    """Partial update; send only the fields that changed"""
    repo = TaskRepository(db)
    db_task = repo.update_task(owner_id, task_id, task_update)
    if breakdown:
        db_task = _attach_breakdown(repo, db_task, assistant)
    return db_task


@router.patch("/{task_id}/status", response_model=TaskOut)
def update_task_status(
    task_id: int,
    status_update: TaskStatusUpdate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    return TaskRepository(db).set_status(owner_id, task_id, status_update.status)


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    sweep_references: bool = False,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    TaskRepository(db).delete_task(owner_id, task_id, sweep_references=sweep_references)
    return {"message": "Task removed"}


@router.get("/{task_id}/dependencies", response_model=TaskDependencyView)
def get_task_dependencies(
    task_id: int,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    task = TaskRepository(db).get_task(owner_id, task_id)
    resolved = DependencyRegistry(db).resolve_dependencies(task)
    return TaskDependencyView(
        task=TaskSummary.model_validate(task),
        dependencies=[TaskSummary.model_validate(dep) for dep in resolved["dependencies"]],
        parent=TaskSummary.model_validate(resolved["parent"]) if resolved["parent"] else None,
        missing=resolved["missing"],
    )


@router.post("/{task_id}/dependencies", response_model=TaskOut)
def create_dependency(
    task_id: int,
    dependency: DependencyCreate,
    enforce_acyclic: bool = False,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    task = TaskRepository(db).get_task(owner_id, task_id)
    add_dependency(task, dependency.depends_on_id)
    if enforce_acyclic:
        try:
            DependencyRegistry(db).check_acyclic(owner_id, candidate=task)
        except Exception:
            db.rollback()
            raise
    db.commit()
    db.refresh(task)
    return task


@router.delete("/{task_id}/dependencies/{depends_on_id}", response_model=TaskOut)
def delete_dependency(
    task_id: int,
    depends_on_id: int,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    task = TaskRepository(db).get_task(owner_id, task_id)
    remove_dependency(task, depends_on_id)
    db.commit()
    db.refresh(task)
    return task


@router.post("/{task_id}/attachments", response_model=AttachmentOut, status_code=status.HTTP_201_CREATED)
def add_attachment(
    task_id: int,
    attachment: AttachmentCreate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    return TaskRepository(db).add_attachment(owner_id, task_id, attachment)


@router.delete("/{task_id}/attachments/{attachment_id}")
def delete_attachment(
    task_id: int,
    attachment_id: int,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner)
):
    TaskRepository(db).remove_attachment(owner_id, task_id, attachment_id)
    return {"message": "Attachment deleted"}


@router.post("/{task_id}/breakdown", response_model=TaskOut)
def breakdown_task(
    task_id: int,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
    assistant: AssistantClient = Depends(get_assistant)
):
    """Ask the assistant for a step breakdown and store it on the task"""
    repo = TaskRepository(db)
    return _attach_breakdown(repo, repo.get_task(owner_id, task_id), assistant)
