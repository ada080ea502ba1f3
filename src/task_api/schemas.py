from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator

TITLE_MIN_LENGTH = 2
TITLE_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 200


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task.

    Unknown fields are rejected and no type coercion is performed, so
    ``"completed": "true"`` or ``"title": 5`` fail validation.
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "title": "Buy milk",
                "description": "Pick up milk at the store near home",
                "completed": False,
                "userId": "1234567890abcdef",
            }
        },
    )

    title: StrictStr = Field(
        ...,
        description="Task title",
        min_length=TITLE_MIN_LENGTH,
        max_length=TITLE_MAX_LENGTH,
    )
    description: StrictStr = Field(
        default="",
        description="Detailed description of the task",
        max_length=DESCRIPTION_MAX_LENGTH,
    )
    completed: StrictBool = Field(default=False, description="Completion status flag")
    user_id: Optional[StrictStr] = Field(
        default=None,
        alias="userId",
        description="Identifier of the owning user; not checked against any user table",
    )


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for partially updating an existing task.
    All fields are optional; only provided fields will be updated.
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={"example": {"completed": True}},
    )

    title: Optional[StrictStr] = Field(
        default=None,
        description="Task title",
        min_length=TITLE_MIN_LENGTH,
        max_length=TITLE_MAX_LENGTH,
    )
    description: Optional[StrictStr] = Field(
        default=None,
        description="Detailed description of the task",
        max_length=DESCRIPTION_MAX_LENGTH,
    )
    completed: Optional[StrictBool] = Field(default=None, description="Completion status flag")
    user_id: Optional[StrictStr] = Field(
        default=None,
        alias="userId",
        description="Identifier of the owning user; null clears the owner",
    )

    @field_validator("title", "description", "completed")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        """
        Only runs for values the client actually sent, so an explicit null
        for a non-nullable column is rejected while omission is allowed.
        """
        if v is None:
            raise ValueError("value may be omitted but not null")
        return v

    # PUBLIC_INTERFACE
    def changes(self) -> Dict[str, Any]:
        """Return the sparse field set sent by the client, keyed by field name."""
        return self.model_dump(exclude_unset=True)


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Buy milk",
                "description": "",
                "completed": False,
                "userId": None,
            }
        },
    )

    id: int = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Task title")
    description: str = Field(..., description="Detailed description of the task")
    completed: bool = Field(..., description="Completion status flag")
    user_id: Optional[str] = Field(default=None, alias="userId", description="Owning user identifier")


# PUBLIC_INTERFACE
class DeleteAck(BaseModel):
    """
    Acknowledgment returned by the delete endpoint, whether or not a row existed.
    """

    message: str = Field(..., description="Human readable acknowledgment")
    id: int = Field(..., description="Identifier the delete was attempted for")
