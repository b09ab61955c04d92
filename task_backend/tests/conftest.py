import os

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid external dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from src.api.main import create_app  # noqa: E402
from src.api.store import InMemoryDocumentStore  # noqa: E402


@pytest.fixture()
def store():
    return InMemoryDocumentStore()


@pytest.fixture()
def client(store):
    return TestClient(create_app(store=store))


def error_of(res) -> dict:
    """Return the inner error object of the standard error envelope."""
    body = res.json()
    assert set(body) == {"error"}
    assert set(body["error"]) == {"message", "details", "status"}
    assert body["error"]["status"] == res.status_code
    return body["error"]


class ExplodingStore(InMemoryDocumentStore):
    """Store whose every operation fails like an unreachable database."""

    def _fail(self, *args, **kwargs):
        raise RuntimeError("connection refused by db-internal-host:5432")

    query = get = add = update = delete = _fail
