from __future__ import annotations

from fastapi import FastAPI

from .core.config import settings
from .storage.history import HistoryStore

from .api.routes import router as api_router
import urad_ingester.api.routes as routes_module


def create_app(history: HistoryStore) -> FastAPI:
    """Build the read-only HTTP app over ``history``.

    GET / is the only route; the generated docs and schema endpoints are off.
    """
    app = FastAPI(
        title=settings.app_name,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    # Make the dependency function in routes resolve to this store
    app.dependency_overrides[routes_module.get_history] = lambda: history

    app.include_router(api_router)
    return app
