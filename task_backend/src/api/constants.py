"""
Shared names for collections, document fields and client-facing messages.
"""
from __future__ import annotations

# Collections
TASKS_COLLECTION = "tasks"
USERS_COLLECTION = "users"

# Document fields
FIELD_ID = "id"
FIELD_CREATED_AT = "createdAt"
FIELD_UPDATED_AT = "updatedAt"
FIELD_TITLE = "title"
FIELD_DESCRIPTION = "description"
FIELD_COMPLETED = "completed"
FIELD_USER_ID = "userId"
FIELD_EMAIL = "email"

# Fields a client may change through PUT / PATCH on a task
TASK_UPDATABLE_FIELDS = (FIELD_TITLE, FIELD_DESCRIPTION, FIELD_COMPLETED, FIELD_USER_ID)

# Not-found messages
TASK_NOT_FOUND = "Task not found"
USER_NOT_FOUND = "User not found"

# Per-operation failure messages (never include store details)
FAILED_GET_TASKS = "Failed to get tasks"
FAILED_GET_TASK_STATS = "Failed to get task statistics"
FAILED_GET_TASK = "Failed to get task"
FAILED_CREATE_TASK = "Failed to create task"
FAILED_UPDATE_TASK = "Failed to update task"
FAILED_UPDATE_COMPLETION = "Failed to update task completion status"
FAILED_DELETE_TASK = "Failed to delete task"
FAILED_GET_USER = "Failed to get user"
FAILED_CREATE_USER = "Failed to create user"

TASK_DELETED = "Task deleted successfully"
USER_ID_QUERY_REQUIRED = "userId is required in query parameters"
