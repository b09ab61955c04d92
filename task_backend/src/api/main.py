import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .errors import register_exception_handlers
from .routers import tasks as tasks_router
from .routers import users as users_router
from .settings import Settings, get_settings
from .store import DocumentStore, build_store

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "CRUD operations for tasks, per-user filtering and completion statistics.",
    },
    {"name": "users", "description": "Look up or create users by email address."},
]

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    # The configured backend is only connected when the server starts
    if app.state.store is None:
        app.state.store = build_store(app.state.settings)
    try:
        yield
    finally:
        app.state.store.close()


# PUBLIC_INTERFACE
def create_app(store: Optional[DocumentStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        store: Document store used by every handler. When omitted, the store is
            built from settings at startup, so importing this module never
            connects to a database.
        settings: Application settings. Loaded from the environment when omitted.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Task Backend",
        description="Task tracking API backed by a document store.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=_lifespan,
    )
    app.state.settings = settings
    app.state.store = store

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health and the active store backend.
        """
        return {"message": "Healthy", "backend": app.state.store.name}

    app.include_router(tasks_router.router)
    app.include_router(users_router.router)
    return app


app = create_app()
