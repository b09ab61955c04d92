"""
Task Backend API package.

The ASGI application lives in `src.api.main` (`uvicorn src.api.main:app`);
`src.api.main.create_app` builds an instance around a given document store.
"""
