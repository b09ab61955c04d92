from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


# PUBLIC_INTERFACE
def json_body(model: Type[BaseModel]) -> Dict[str, Any]:
    """
    Build an `openapi_extra` request body entry from a model.

    Bodies are read and validated by the rule-based validator rather than by
    pydantic, so the models here only describe the payload in the OpenAPI schema.
    """
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema(by_alias=True)}},
        }
    }


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Payload for creating a task.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "completed": False,
                "userId": "3f1c2a9e8b7d4c6f",
            }
        },
    )

    title: str = Field(..., description="Task title; must not be empty", min_length=1)
    description: Optional[str] = Field(default="", description="Optional detailed description")
    completed: Optional[bool] = Field(default=False, description="Completion status flag")
    user_id: str = Field(..., alias="userId", description="Id of the owning user")


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Payload for PUT and PATCH on a task. Only the listed fields are accepted;
    the generic PATCH rejects any other key with 400.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"title": "Buy groceries and supplies", "completed": True}},
    )

    title: Optional[str] = Field(default=None, description="Task title; must not be empty when given")
    description: Optional[str] = Field(default=None, description="Detailed description")
    completed: Optional[bool] = Field(default=None, description="Completion status flag")
    user_id: Optional[str] = Field(default=None, alias="userId", description="Id of the owning user")


# PUBLIC_INTERFACE
class CompletionUpdate(BaseModel):
    """Payload for PATCH /tasks/{taskId}/completion."""

    model_config = ConfigDict(json_schema_extra={"example": {"completed": True}})

    completed: bool = Field(..., description="New completion status")


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Task returned by the API.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "9b2f4c0a1e3d4b5a",
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "completed": False,
                "userId": "3f1c2a9e8b7d4c6f",
                "createdAt": "2025-01-25T10:15:30.123456+00:00",
                "updatedAt": None,
            }
        },
    )

    id: str = Field(..., description="Store-assigned identifier")
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(default="", description="Detailed description")
    completed: bool = Field(default=False, description="Completion status flag")
    user_id: str = Field(..., alias="userId", description="Id of the owning user")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt", description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt", description="Last update timestamp")


# PUBLIC_INTERFACE
class TaskStats(BaseModel):
    """Completion statistics for one user's tasks."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"total": 3, "completed": 2, "incomplete": 1, "completionRate": 66.67}},
    )

    total: int = Field(..., description="Number of tasks owned by the user")
    completed: int = Field(..., description="Number of completed tasks")
    incomplete: int = Field(..., description="Number of tasks not completed")
    completion_rate: float = Field(
        ...,
        alias="completionRate",
        description="completed / total * 100 rounded to 2 decimals; 0 when the user has no tasks",
    )


# PUBLIC_INTERFACE
class UserCreate(BaseModel):
    """Payload for creating (or fetching) a user by email."""

    model_config = ConfigDict(json_schema_extra={"example": {"email": "ada@example.com"}})

    email: str = Field(..., description="Email address; compared case-insensitively")


# PUBLIC_INTERFACE
class UserOut(BaseModel):
    """User returned by the API."""

    id: str = Field(..., description="Store-assigned identifier")
    email: str = Field(..., description="Lower-cased email address")


class MessageOut(BaseModel):
    message: str


class ErrorBody(BaseModel):
    message: str = Field(..., description="Human readable error message")
    details: Any = Field(default=None, description="Field errors or other structured detail, if any")
    status: int = Field(..., description="HTTP status code")


# PUBLIC_INTERFACE
class ErrorEnvelope(BaseModel):
    """Shape of every error response."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": {
                    "message": "Validation failed",
                    "details": [{"field": "title", "message": "title is required"}],
                    "status": 400,
                }
            }
        }
    )

    error: ErrorBody


ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"model": ErrorEnvelope, "description": "Validation error"},
    404: {"model": ErrorEnvelope, "description": "Resource not found"},
    500: {"model": ErrorEnvelope, "description": "Unexpected failure"},
}
