from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Response, status

from .. import constants as c
from ..dependencies import get_store
from ..errors import NotFoundError, store_errors
from ..models import UserDocument
from ..schemas import ERROR_RESPONSES, UserCreate, UserOut, json_body
from ..store import DocumentStore
from ..validation import ValidationRule, validate_request

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/users",
    tags=["users"],
    responses={500: ERROR_RESPONSES[500]},
)

USER_RULES = [
    ValidationRule(c.FIELD_EMAIL, required=True, type="email"),
]


def _find_by_email(store: DocumentStore, email: str) -> Optional[Dict[str, Any]]:
    docs = store.query(c.USERS_COLLECTION, {c.FIELD_EMAIL: email}, limit=1)
    if not docs:
        return None
    return {c.FIELD_ID: docs[0].id, c.FIELD_EMAIL: docs[0].data.get(c.FIELD_EMAIL)}


# PUBLIC_INTERFACE
@router.get(
    "/{email}",
    response_model=UserOut,
    summary="Get User By Email",
    description="Look up a user by email address (case-insensitive).",
    responses={404: ERROR_RESPONSES[404]},
)
def get_user_by_email(email: str, store: DocumentStore = Depends(get_store)) -> Dict[str, Any]:
    """
    Return the user registered with this email.
    """
    with store_errors(c.FAILED_GET_USER):
        user = _find_by_email(store, email.lower())
    if user is None:
        raise NotFoundError(c.USER_NOT_FOUND)
    return user


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
    description=(
        "Create a user for an email address. If a user with the same email (ignoring case) "
        "already exists it is returned with status 200 instead."
    ),
    responses={
        200: {"model": UserOut, "description": "User already existed"},
        400: ERROR_RESPONSES[400],
    },
    openapi_extra=json_body(UserCreate),
)
def create_user(
    response: Response,
    body: Dict[str, Any] = Depends(validate_request(USER_RULES)),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    """
    Idempotent create: an existing email returns the stored user.

    The existence check and the insert are separate store calls, so two
    concurrent requests for a new email can both create a user.
    """
    email = body[c.FIELD_EMAIL].lower()

    with store_errors(c.FAILED_CREATE_USER):
        existing = _find_by_email(store, email)
        if existing is not None:
            response.status_code = status.HTTP_200_OK
            return existing

        document: UserDocument = {c.FIELD_EMAIL: email, c.FIELD_CREATED_AT: store.timestamp()}
        user_id = store.add(c.USERS_COLLECTION, document)

    logger.info("Created user %s", user_id)
    return {c.FIELD_ID: user_id, c.FIELD_EMAIL: email}
