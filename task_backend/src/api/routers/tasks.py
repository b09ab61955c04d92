from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from .. import constants as c
from ..dependencies import get_store
from ..errors import NotFoundError, ValidationError, store_errors
from ..models import TaskDocument, with_id
from ..schemas import (
    ERROR_RESPONSES,
    CompletionUpdate,
    MessageOut,
    TaskCreate,
    TaskOut,
    TaskStats,
    TaskUpdate,
    json_body,
)
from ..store import DocumentStore
from ..validation import (
    ValidationRule,
    ensure_allowed_fields,
    raise_for_errors,
    read_json_body,
    rules_for_present_fields,
    validate_fields,
    validate_request,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/tasks",
    tags=["tasks"],
    responses={500: ERROR_RESPONSES[500]},
)

TASK_RULES = [
    ValidationRule(c.FIELD_TITLE, required=True, type="string", min_length=1),
    ValidationRule(c.FIELD_USER_ID, required=True, type="string"),
    ValidationRule(c.FIELD_DESCRIPTION, type="string"),
    ValidationRule(c.FIELD_COMPLETED, type="boolean"),
]

# Applied through rules_for_present_fields once the task is known to exist:
# required only when the key is sent
TASK_UPDATE_RULES = [
    ValidationRule(c.FIELD_TITLE, required=True, type="string", min_length=1),
    ValidationRule(c.FIELD_USER_ID, required=True, type="string"),
    ValidationRule(c.FIELD_DESCRIPTION, type="string"),
    ValidationRule(c.FIELD_COMPLETED, required=True, type="boolean"),
]

COMPLETION_RULES = [
    ValidationRule(c.FIELD_COMPLETED, required=True, type="boolean"),
]


# PUBLIC_INTERFACE
def completion_rate(completed: int, total: int) -> float:
    """Percentage of completed tasks rounded to 2 decimals; 0 when there are no tasks."""
    if total <= 0:
        return 0.0
    return round(completed / total * 100, 2)


def _require_task(store: DocumentStore, task_id: str) -> Dict[str, Any]:
    data = store.get(c.TASKS_COLLECTION, task_id)
    if data is None:
        raise NotFoundError(c.TASK_NOT_FOUND)
    return data


def _update_and_reload(store: DocumentStore, task_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    store.update(c.TASKS_COLLECTION, task_id, {**changes, c.FIELD_UPDATED_AT: store.timestamp()})
    return with_id(task_id, store.get(c.TASKS_COLLECTION, task_id))


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TaskOut],
    summary="List Tasks",
    description=(
        "List tasks with optional filters.\n\n"
        "Query parameters:\n"
        "- userId: only tasks owned by this user\n"
        "- completed: 'true' for completed tasks, any other value for incomplete ones"
    ),
)
def list_tasks(
    user_id: Optional[str] = Query(None, alias="userId", description="Filter by owning user id"),
    completed: Optional[str] = Query(None, description="Filter by completion status ('true'/'false')"),
    store: DocumentStore = Depends(get_store),
) -> List[Dict[str, Any]]:
    """
    Return every task matching the filters.
    """
    filters: Dict[str, Any] = {}
    if user_id:
        filters[c.FIELD_USER_ID] = user_id
    if completed is not None:
        filters[c.FIELD_COMPLETED] = completed == "true"

    with store_errors(c.FAILED_GET_TASKS):
        docs = store.query(c.TASKS_COLLECTION, filters)
    return [with_id(doc.id, doc.data) for doc in docs]


# PUBLIC_INTERFACE
@router.get(
    "/stats",
    response_model=TaskStats,
    summary="Task Statistics",
    description="Completion statistics for the tasks of one user.",
    responses={400: ERROR_RESPONSES[400]},
)
def task_stats(
    user_id: Optional[str] = Query(None, alias="userId", description="User whose tasks are counted"),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    """
    Count total, completed and incomplete tasks for a user.
    """
    if not user_id:
        raise ValidationError(
            c.USER_ID_QUERY_REQUIRED,
            [{"field": c.FIELD_USER_ID, "message": f"{c.FIELD_USER_ID} is required"}],
        )

    with store_errors(c.FAILED_GET_TASK_STATS):
        docs = store.query(c.TASKS_COLLECTION, {c.FIELD_USER_ID: user_id})

    total = len(docs)
    done = sum(1 for doc in docs if doc.data.get(c.FIELD_COMPLETED))
    return {
        "total": total,
        "completed": done,
        "incomplete": total - done,
        "completionRate": completion_rate(done, total),
    }


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Get Task",
    description="Get a single task by id.",
    responses={404: ERROR_RESPONSES[404]},
)
def get_task(task_id: str, store: DocumentStore = Depends(get_store)) -> Dict[str, Any]:
    """
    Retrieve a single task by its id.
    """
    with store_errors(c.FAILED_GET_TASK):
        return with_id(task_id, _require_task(store, task_id))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a task. description defaults to '' and completed to false.",
    responses={400: ERROR_RESPONSES[400]},
    openapi_extra=json_body(TaskCreate),
)
def create_task(
    body: Dict[str, Any] = Depends(validate_request(TASK_RULES)),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    """
    Create a new task and return it with its store-assigned id.
    """
    with store_errors(c.FAILED_CREATE_TASK):
        document: TaskDocument = {
            c.FIELD_TITLE: body[c.FIELD_TITLE],
            c.FIELD_DESCRIPTION: body.get(c.FIELD_DESCRIPTION) or "",
            c.FIELD_COMPLETED: body.get(c.FIELD_COMPLETED) or False,
            c.FIELD_USER_ID: body[c.FIELD_USER_ID],
            c.FIELD_CREATED_AT: store.timestamp(),
        }
        task_id = store.add(c.TASKS_COLLECTION, document)
        created = store.get(c.TASKS_COLLECTION, task_id)
    logger.info("Created task %s for user %s", task_id, document[c.FIELD_USER_ID])
    return with_id(task_id, created)


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskOut,
    summary="Replace Task",
    description=(
        "Overwrite the given task fields (title, description, completed, userId). "
        "Other keys in the body are ignored."
    ),
    responses={400: ERROR_RESPONSES[400], 404: ERROR_RESPONSES[404]},
    openapi_extra=json_body(TaskUpdate),
)
def put_task(
    task_id: str,
    body: Dict[str, Any] = Depends(read_json_body),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    """
    Merge the task fields from the body into the stored task.
    """
    changes = {key: value for key, value in body.items() if key in c.TASK_UPDATABLE_FIELDS}

    with store_errors(c.FAILED_UPDATE_TASK):
        _require_task(store, task_id)
        raise_for_errors(validate_fields(rules_for_present_fields(TASK_UPDATE_RULES, changes), changes))
        updated = _update_and_reload(store, task_id, changes)
    logger.info("Replaced fields %s of task %s", sorted(changes), task_id)
    return updated


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=MessageOut,
    summary="Delete Task",
    description="Delete a task by id.",
    responses={404: ERROR_RESPONSES[404]},
)
def delete_task(task_id: str, store: DocumentStore = Depends(get_store)) -> Dict[str, str]:
    """
    Delete a task. Returns 404 if it does not exist.
    """
    with store_errors(c.FAILED_DELETE_TASK):
        _require_task(store, task_id)
        store.delete(c.TASKS_COLLECTION, task_id)
    logger.info("Deleted task %s", task_id)
    return {"message": c.TASK_DELETED}


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}/completion",
    response_model=TaskOut,
    summary="Set Task Completion",
    description="Update only the completion status of a task.",
    responses={400: ERROR_RESPONSES[400], 404: ERROR_RESPONSES[404]},
    openapi_extra=json_body(CompletionUpdate),
)
def patch_task_completion(
    task_id: str,
    body: Dict[str, Any] = Depends(validate_request(COMPLETION_RULES)),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    """
    Set the completed flag of a task.
    """
    with store_errors(c.FAILED_UPDATE_COMPLETION):
        _require_task(store, task_id)
        return _update_and_reload(store, task_id, {c.FIELD_COMPLETED: body[c.FIELD_COMPLETED]})


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    response_model=TaskOut,
    summary="Update Task",
    description=(
        "Partially update a task. Only title, description, completed and userId may be "
        "given; any other field rejects the whole request with 400."
    ),
    responses={400: ERROR_RESPONSES[400], 404: ERROR_RESPONSES[404]},
    openapi_extra=json_body(TaskUpdate),
)
def patch_task(
    task_id: str,
    body: Dict[str, Any] = Depends(read_json_body),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    """
    Partial update of a task.
    """
    ensure_allowed_fields(body, c.TASK_UPDATABLE_FIELDS)

    with store_errors(c.FAILED_UPDATE_TASK):
        _require_task(store, task_id)
        raise_for_errors(validate_fields(rules_for_present_fields(TASK_UPDATE_RULES, body), body))
        updated = _update_and_reload(store, task_id, body)
    logger.info("Updated fields %s of task %s", sorted(body), task_id)
    return updated
