from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from threading import RLock
from typing import List, Optional

from .errors import NotFoundError
from .models import TaskEntity, merge_task
from .schemas import TaskCreate, TaskUpdate
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for task storage backends."""

    @abstractmethod
    def list(self, user_id: Optional[str] = None) -> List[TaskEntity]:
        """
        Return tasks, optionally restricted to one owner.
        - user_id is None: every task in store order (ascending id)
        - otherwise: tasks whose user_id matches, newest (highest id) first
        """

    @abstractmethod
    def get(self, task_id: int) -> Optional[TaskEntity]:
        """Return a TaskEntity by id, or None if not found."""

    @abstractmethod
    def create(self, data: TaskCreate) -> TaskEntity:
        """Persist a new task and return it with its assigned id."""

    @abstractmethod
    def update(self, task_id: int, data: TaskUpdate) -> TaskEntity:
        """
        Merge the fields present in ``data`` onto an existing task and return it.

        Raises:
            NotFoundError: if no task has ``task_id``.
        """

    @abstractmethod
    def delete(self, task_id: int) -> None:
        """Delete a task by id. Deleting a missing id is a no-op."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and throwaway runs.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TaskEntity] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def list(self, user_id: Optional[str] = None) -> List[TaskEntity]:
        with self._lock:
            items = sorted(self._items.values(), key=lambda t: t.id)
        if user_id is None:
            return items
        return [t for t in reversed(items) if t.user_id == user_id]

    def get(self, task_id: int) -> Optional[TaskEntity]:
        with self._lock:
            return self._items.get(task_id)

    def create(self, data: TaskCreate) -> TaskEntity:
        with self._lock:
            entity = TaskEntity(
                id=self._allocate_id(),
                title=data.title,
                description=data.description,
                completed=data.completed,
                user_id=data.user_id,
            )
            self._items[entity.id] = entity
        logger.info("Created task id=%s user_id=%s", entity.id, entity.user_id)
        return entity

    def update(self, task_id: int, data: TaskUpdate) -> TaskEntity:
        changes = data.changes()
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                raise NotFoundError(task_id)
            updated = merge_task(existing, changes)
            self._items[task_id] = updated
        logger.info("Updated task id=%s fields=%s", task_id, sorted(changes))
        return updated

    def delete(self, task_id: int) -> None:
        with self._lock:
            removed = self._items.pop(task_id, None)
        logger.info("Delete task id=%s existed=%s", task_id, removed is not None)


# PUBLIC_INTERFACE
def build_repository(settings: Settings) -> Repository:
    """
    Construct the repository selected by ``settings``.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository at settings.sqlite_db_path
    """
    if settings.persistence_backend == "memory":
        return InMemoryRepository()

    from .db import SQLiteRepository

    return SQLiteRepository(settings.sqlite_db_path, create_schema=settings.schema_sync)


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> Repository:
    """
    Return the process-wide repository, built from settings on first use.

    FastAPI handlers depend on this function, so tests can replace it through
    ``app.dependency_overrides``.
    """
    repo = build_repository(get_settings())
    logger.info("Using %s repository", type(repo).__name__)
    return repo
