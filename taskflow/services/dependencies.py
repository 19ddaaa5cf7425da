# taskflow/services/dependencies.py
"""
Dependency registry: directed "A depends on B" edges stored as weak task ids.

Edges are deliberately unvalidated. A referenced task may not exist, may be
the task itself, or may close a cycle; readers resolve ids by lookup and
treat anything that does not resolve as missing. ``find_cycle`` and
``validate_acyclic`` are available for callers that want to enforce more.
"""

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from taskflow.exceptions import ValidationFailure
from taskflow.models import Task

logger = logging.getLogger(__name__)


def add_dependency(task, depends_on_id: int):
    """Append the edge if absent; no existence, self or cycle checks"""
    current = list(task.dependencies or [])
    if depends_on_id not in current:
        # Reassign so the JSON column is flagged dirty
        task.dependencies = current + [depends_on_id]
    return task


def remove_dependency(task, depends_on_id: int):
    current = list(task.dependencies or [])
    if depends_on_id in current:
        task.dependencies = [dep for dep in current if dep != depends_on_id]
    return task


def find_cycle(tasks: Iterable) -> Optional[List[int]]:
    """Return one dependency cycle as a list of ids, or None"""
    graph: Dict[int, List[int]] = {task.id: list(task.dependencies or []) for task in tasks}
    visiting, done = set(), set()
    path: List[int] = []

    def visit(node: int) -> Optional[List[int]]:
        visiting.add(node)
        path.append(node)
        for dep in graph.get(node, []):
            if dep in visiting:
                return path[path.index(dep):] + [dep]
            if dep not in done and dep in graph:
                cycle = visit(dep)
                if cycle:
                    return cycle
        visiting.discard(node)
        done.add(node)
        path.pop()
        return None

    for node in graph:
        if node not in done:
            cycle = visit(node)
            if cycle:
                return cycle
    return None


def validate_acyclic(tasks: Iterable) -> None:
    cycle = find_cycle(tasks)
    if cycle:
        raise ValidationFailure(f"Dependency cycle detected: {' -> '.join(str(i) for i in cycle)}")


class DependencyRegistry:
    """Lookups over the weak dependency and parent references of an owner's tasks"""

    def __init__(self, db: Session):
        self.db = db

    def _owned(self, owner_id: str, ids: List[int]) -> Dict[int, Task]:
        if not ids:
            return {}
        rows = self.db.query(Task).filter(Task.owner_id == owner_id, Task.id.in_(ids)).all()
        return {row.id: row for row in rows}

    def resolve_dependencies(self, task: Task) -> dict:
        """Resolve dependency and parent ids; dangling ids are reported, not raised"""
        dep_ids = list(task.dependencies or [])
        lookup_ids = dep_ids + ([task.parent_task_id] if task.parent_task_id is not None else [])
        found = self._owned(task.owner_id, lookup_ids)

        dependencies = [found[dep] for dep in dep_ids if dep in found]
        missing = [dep for dep in dep_ids if dep not in found]

        parent = None
        if task.parent_task_id is not None:
            parent = found.get(task.parent_task_id)
            if parent is None:
                missing.append(task.parent_task_id)

        if missing:
            logger.warning(f"Task {task.id} references missing tasks: {missing}")

        return {"task": task, "dependencies": dependencies, "parent": parent, "missing": missing}

    def remove_references_to(self, owner_id: str, task_id: int, commit: bool = True) -> int:
        """Clear every dependency edge and parent link pointing at task_id"""
        touched = 0
        for task in self.db.query(Task).filter(Task.owner_id == owner_id, Task.id != task_id).all():
            changed = False
            if task_id in (task.dependencies or []):
                remove_dependency(task, task_id)
                changed = True
            if task.parent_task_id == task_id:
                task.parent_task_id = None
                changed = True
            if changed:
                touched += 1

        if commit:
            self.db.commit()
        logger.info(f"Swept {touched} references to task {task_id}")
        return touched

    def check_acyclic(self, owner_id: str, candidate: Optional[Task] = None) -> None:
        tasks = self.db.query(Task).filter(Task.owner_id == owner_id).all()
        if candidate is not None:
            tasks = [t for t in tasks if t.id != candidate.id] + [candidate]
        validate_acyclic(tasks)
