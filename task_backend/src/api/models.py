from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, TypedDict

from .constants import FIELD_ID


# PUBLIC_INTERFACE
class TaskDocument(TypedDict, total=False):
    """
    Stored shape of a task document (the document id lives outside the data).

    Fields:
    - title: Non-empty title
    - description: Free text, '' when not supplied
    - completed: Completion flag, False when not supplied
    - userId: Id of the owning user (not checked against the users collection)
    - createdAt: Set once by the create handler
    - updatedAt: Set on every mutation
    """

    title: str
    description: Optional[str]
    completed: bool
    userId: str
    createdAt: datetime
    updatedAt: datetime


# PUBLIC_INTERFACE
class UserDocument(TypedDict, total=False):
    """Stored shape of a user document. Email is always lower-cased."""

    email: str
    createdAt: datetime


# PUBLIC_INTERFACE
def with_id(doc_id: str, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return the document data with its id merged in, id first."""
    return {FIELD_ID: doc_id, **(data or {})}
