# weeclass/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from weeclass.api.v1 import api_router
from weeclass.core.config import Settings, get_settings
from weeclass.core.constants import MESSAGES
from weeclass.core.errors import (
    AuthError,
    DemoModeError,
    FormValidationError,
    RecordNotFound,
    StoreError,
    StorePermissionError,
)
from weeclass.core.security.session import SessionEvent, SessionState
from weeclass.core.workspace import WorkspaceRegistry
from weeclass.db.client import BackendClient
from weeclass.db.store import RecordStore

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(FormValidationError)
    async def _form_invalid(request: Request, exc: FormValidationError):
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "missing_fields": exc.missing_fields},
        )

    @app.exception_handler(DemoModeError)
    async def _demo_mode(request: Request, exc: DemoModeError):
        return JSONResponse(status_code=503, content={"detail": MESSAGES["DEMO_MODE"]})

    @app.exception_handler(AuthError)
    async def _auth(request: Request, exc: AuthError):
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(StoreError)
    async def _store(request: Request, exc: StoreError):
        if isinstance(exc, StorePermissionError):
            return JSONResponse(status_code=403, content={"detail": MESSAGES["PERMISSION_DENIED"]})
        if isinstance(exc, RecordNotFound):
            return JSONResponse(status_code=404, content={"detail": str(exc)})
        # list failures become workspace banners; anything reaching here is a write or lookup
        logger.error("store error on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": MESSAGES["STORE_FAILED"]})


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    create_tables: bool = False,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = BackendClient(settings, store=store).open(create_tables=create_tables)
        workspaces = WorkspaceRegistry(lambda: client.store, fetch_limit=settings.FETCH_LIMIT)

        def _drop_workspace(event: SessionEvent) -> None:
            if event.state == SessionState.ANONYMOUS and event.jti:
                workspaces.discard(event.jti)

        unsubscribe = client.auth.subscribe(_drop_workspace)
        app.state.client = client
        app.state.workspaces = workspaces
        try:
            yield
        finally:
            unsubscribe()
            client.close()

    app = FastAPI(
        title="Wee Class Counseling Intake API",
        version="0.1.0",
        lifespan=lifespan,
    )
    _register_error_handlers(app)

    app.include_router(api_router)

    @app.get("/")
    def root():
        return {"message": "Wee Class counseling intake API running"}

    return app


app = create_app()
