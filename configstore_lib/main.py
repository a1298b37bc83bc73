"""Application factory for the configuration store HTTP surface.

This module exposes `create_app(settings) -> FastAPI` which composes the
store from settings and registers the API routes. Nothing is created at
import time so tests can construct isolated apps.

    from configstore_lib.main import create_app
    from configstore_lib.config import load_settings
    app = create_app(load_settings())
"""
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from configstore_lib.config import StoreSettings, build_store
from configstore_lib.errors import InvalidKeyError, LockTimeout, PersistenceError
from configstore_lib.logging_config import configure_logging
from configstore_lib.scoped import PerPluginConfig


def create_app(settings: StoreSettings, store: Optional[PerPluginConfig] = None) -> FastAPI:
    """Create and return a configured FastAPI application.

    A prebuilt `store` may be passed (tests); otherwise one is composed
    from `settings`.
    """
    logger = configure_logging(level=settings.log_level)

    if store is None:
        store = build_store(settings)

    app = FastAPI(title="Plugin Configuration Store")
    app.state.config_store = store

    @app.exception_handler(LockTimeout)
    async def lock_timeout_handler(request: Request, exc: LockTimeout):
        logger.warning("Lock timeout serving %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={'error': 'lock_timeout', 'message': str(exc)})

    @app.exception_handler(PersistenceError)
    async def persistence_handler(request: Request, exc: PersistenceError):
        logger.error("Persistence failure serving %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={'error': 'persistence', 'message': str(exc)})

    @app.exception_handler(InvalidKeyError)
    async def invalid_key_handler(request: Request, exc: InvalidKeyError):
        return JSONResponse(status_code=400, content={'error': 'invalid_key', 'message': str(exc)})

    from configstore_lib.server.api import router
    app.include_router(router)

    logger.info("Serving configuration for plugin %s", store.plugin_id)
    return app
