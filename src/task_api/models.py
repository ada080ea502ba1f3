from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class TaskEntity:
    """
    Storage-independent representation of a single task row.

    Fields:
    - id: Unique integer identifier, assigned by the store
    - title: Short title (2..50 chars, enforced by schemas)
    - description: Detailed description, empty string when not given
    - completed: Boolean completion flag
    - user_id: Optional opaque owner tag (exposed as ``userId``)
    """

    id: int
    title: str
    description: str = ""
    completed: bool = False
    user_id: Optional[str] = None


_MERGEABLE = frozenset(f.name for f in fields(TaskEntity)) - {"id"}


# PUBLIC_INTERFACE
def merge_task(base: TaskEntity, changes: Mapping[str, Any]) -> TaskEntity:
    """
    Overlay a sparse set of field changes onto ``base`` and return the result.

    Only the keys present in ``changes`` are applied; every other field keeps
    its value from ``base``. ``base`` itself is left untouched.

    Raises:
        TypeError: if ``changes`` names a field that does not exist or ``id``.
    """
    unknown = set(changes) - _MERGEABLE
    if unknown:
        raise TypeError(f"cannot merge fields: {', '.join(sorted(unknown))}")
    if not changes:
        return base
    return replace(base, **changes)
