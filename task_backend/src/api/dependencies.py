from __future__ import annotations

from fastapi import Request

from .store import DocumentStore


# PUBLIC_INTERFACE
def get_store(request: Request) -> DocumentStore:
    """Return the document store the application was built with."""
    return request.app.state.store
