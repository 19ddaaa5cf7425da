# taskflow/services/task_repository.py
import logging
import os
from typing import List

from sqlalchemy.orm import Session, selectinload

from taskflow.config.settings import Settings
from taskflow.exceptions import NotFoundError, NotAuthorizedError, ValidationFailure
from taskflow.models import Task, Subtask, TaskAttachment
from taskflow.schemas import TaskCreate, TaskUpdate, AttachmentCreate
from taskflow.services import task_logic

logger = logging.getLogger(__name__)

# Columns that cannot hold NULL; an explicit null in an update is ignored
NON_NULLABLE_FIELDS = {
    "status", "priority", "tags", "dependencies", "estimated_time",
}


class TaskRepository:
    """Owner-scoped persistence for tasks and their embedded records"""

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Task).options(
            selectinload(Task.subtasks),
            selectinload(Task.time_logs),
            selectinload(Task.attachments),
        )

    def list_tasks(self, owner_id: str) -> List[Task]:
        """All tasks of an owner, newest first"""
        return (
            self._query()
            .filter(Task.owner_id == owner_id)
            .order_by(Task.created_at.desc(), Task.id.desc())
            .all()
        )

    def get_task(self, owner_id: str, task_id: int) -> Task:
        task = self._query().filter(Task.id == task_id).first()
        if not task:
            raise NotFoundError("Task not found")
        if task.owner_id != owner_id:
            raise NotAuthorizedError("User not authorized")
        return task

    def create_task(self, owner_id: str, data: TaskCreate) -> Task:
        db_task = Task(
            owner_id=owner_id,
            title=data.title,
            description=data.description,
            status=data.status,
            priority=data.priority,
            due_date=data.due_date,
            tags=list(data.tags),
            subtasks=[Subtask(**subtask.model_dump()) for subtask in data.subtasks],
            dependencies=list(dict.fromkeys(data.dependencies)),
            parent_task_id=data.parent_task_id,
            project_id=data.project_id,
            estimated_time=data.estimated_time,
            time_spent=0,
        )
        self.db.add(db_task)
        self.db.commit()
        self.db.refresh(db_task)

        logger.info(f"Task {db_task.id} created for owner {owner_id}")
        return db_task

    def update_task(self, owner_id: str, task_id: int, task_update: TaskUpdate) -> Task:
        """Field-level merge: fields missing from the request keep their stored value"""
        db_task = self.get_task(owner_id, task_id)

        update_data = task_update.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is None and field in NON_NULLABLE_FIELDS:
                continue
            if field == "status":
                task_logic.set_status(db_task, value)
            elif field == "subtasks":
                db_task.subtasks = [Subtask(**subtask) for subtask in value]
            elif field == "dependencies":
                # Set semantics, first occurrence wins
                db_task.dependencies = list(dict.fromkeys(value))
            elif field == "tags":
                db_task.tags = list(value)
            else:
                setattr(db_task, field, value)

        self.db.commit()
        self.db.refresh(db_task)

        logger.info(f"Task {db_task.id} updated fields: {sorted(update_data)}")
        return db_task

    def set_status(self, owner_id: str, task_id: int, new_status: str) -> Task:
        db_task = self.get_task(owner_id, task_id)
        task_logic.set_status(db_task, new_status)
        self.db.commit()
        self.db.refresh(db_task)
        return db_task

    def set_ai_meta(self, task: Task, ai_meta: dict) -> Task:
        task.ai_meta = ai_meta
        self.db.commit()
        self.db.refresh(task)
        return task

    def delete_task(self, owner_id: str, task_id: int, sweep_references: bool = False) -> None:
        db_task = self.get_task(owner_id, task_id)

        if sweep_references:
            # Imported here to keep the registry optional for plain deletes
            from taskflow.services.dependencies import DependencyRegistry
            DependencyRegistry(self.db).remove_references_to(owner_id, task_id, commit=False)

        self.db.delete(db_task)
        self.db.commit()
        logger.info(f"Task {task_id} deleted for owner {owner_id} (sweep={sweep_references})")

    def add_attachment(self, owner_id: str, task_id: int, data: AttachmentCreate) -> TaskAttachment:
        db_task = self.get_task(owner_id, task_id)

        if data.size < 0:
            raise ValidationFailure("Attachment size cannot be negative")
        if data.size > Settings.ATTACHMENTS["max_file_size"]:
            raise ValidationFailure(
                f"Attachment exceeds the maximum size of {Settings.ATTACHMENTS['max_file_size']} bytes"
            )
        extension = os.path.splitext(data.original_name or data.filename)[1]
        if extension and Settings.is_extension_blocked(extension):
            raise ValidationFailure(f"Attachments of type '{extension}' are not allowed")

        attachment = TaskAttachment(task_id=db_task.id, **data.model_dump())
        self.db.add(attachment)
        self.db.commit()
        self.db.refresh(attachment)
        return attachment

    def remove_attachment(self, owner_id: str, task_id: int, attachment_id: int) -> None:
        db_task = self.get_task(owner_id, task_id)
        attachment = next((a for a in db_task.attachments if a.id == attachment_id), None)
        if attachment is None:
            raise NotFoundError("Attachment not found")
        db_task.attachments.remove(attachment)
        self.db.commit()
