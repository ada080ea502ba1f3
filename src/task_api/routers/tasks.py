from __future__ import annotations

from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ..errors import NotFoundError
from ..models import TaskEntity
from ..repositories import Repository, get_repository
from ..schemas import DeleteAck, TaskCreate, TaskOut, TaskUpdate

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
)


def _get_repo(repo: Repository = Depends(get_repository)) -> Repository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


def _to_out(entity: TaskEntity) -> TaskOut:
    return TaskOut(**asdict(entity))


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TaskOut],
    summary="List Tasks",
    description=(
        "List all tasks, or only the tasks of one user when the userId query "
        "parameter is given. Owner-filtered results are ordered newest first."
    ),
    responses={200: {"description": "List retrieved successfully"}},
)
def list_tasks(
    user_id: Optional[str] = Query(None, alias="userId", description="Filter tasks by owning user id"),
    repo: Repository = Depends(_get_repo),
) -> List[TaskOut]:
    """
    List tasks, optionally filtered by owner.
    """
    # An empty userId behaves like no filter at all.
    items = repo.list(user_id or None)
    return [_to_out(t) for t in items]


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Get Task",
    description="Get a single task by ID.",
    responses={
        200: {"description": "Task found"},
        404: {"description": "Task not found"},
    },
)
def get_task(task_id: int, repo: Repository = Depends(_get_repo)) -> TaskOut:
    """
    Retrieve a single task by its ID.
    """
    item = repo.get(task_id)
    if item is None:
        raise NotFoundError(task_id)
    return _to_out(item)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new task and return the created resource.",
    responses={
        201: {"description": "Task created successfully"},
        400: {"description": "Validation error"},
    },
)
def create_task(payload: TaskCreate, repo: Repository = Depends(_get_repo)) -> TaskOut:
    """
    Create a new task.
    """
    return _to_out(repo.create(payload))


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskOut,
    summary="Update Task",
    description="Partially update a task. Fields omitted from the body keep their current values.",
    responses={
        200: {"description": "Task updated"},
        400: {"description": "Validation error"},
        404: {"description": "Task not found"},
    },
)
def update_task(task_id: int, payload: TaskUpdate, repo: Repository = Depends(_get_repo)) -> TaskOut:
    """
    Partial update of a task. NotFoundError from the repository becomes a 404
    through the application's exception handler.
    """
    return _to_out(repo.update(task_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=DeleteAck,
    summary="Delete Task",
    description="Delete a task by ID. Succeeds whether or not the task existed.",
    responses={200: {"description": "Delete acknowledged"}},
)
def delete_task(task_id: int, repo: Repository = Depends(_get_repo)) -> DeleteAck:
    """
    Delete a task.
    """
    repo.delete(task_id)
    return DeleteAck(message="Task deleted", id=task_id)
