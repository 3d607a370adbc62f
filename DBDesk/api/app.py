# api/app.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from admin.records import RecordService
from admin.tables import TableAdmin
from api.routes import data_router, search_router, tables_router
from config.settings import Settings, settings as default_settings
from domain.errors import DBDeskError, error_message
from infra.database import Database
from infra.metadata_store import SearchMetadataStore
from retrieval.search_service import SearchService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the API around one database handle.

    The handle is created here (or passed in) and shared by every service
    for the life of the app.
    """
    settings = settings or default_settings
    db = database or Database(settings.DATABASE_URL)
    metadata = SearchMetadataStore(db, settings.METADATA_TABLE)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        pruned = app.state.tables.prune_metadata()
        logger.info("DBDesk ready on %s (%d stale metadata entries pruned)", db.url, pruned)
        yield
        if database is None:
            db.dispose()

    app = FastAPI(title="DBDesk", lifespan=lifespan)
    app.state.tables = TableAdmin(db, metadata)
    app.state.records = RecordService(db, reserved=(metadata.table,))
    app.state.search = SearchService(db, metadata, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DBDeskError)
    async def dbdesk_error(_request: Request, exc: DBDeskError):
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error(_request: Request, exc: RequestValidationError):
        errors = exc.errors()
        msg = "; ".join(f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg')}" for e in errors)
        return JSONResponse({"error": msg or "Invalid request"}, status_code=400)

    @app.exception_handler(SQLAlchemyError)
    async def store_error(_request: Request, exc: SQLAlchemyError):
        logger.error("Database error: %s", exc, exc_info=exc)
        return JSONResponse({"error": error_message(exc)}, status_code=500)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    for router in (tables_router, data_router, search_router):
        app.include_router(router, prefix=settings.API_PREFIX)

    return app


def main():
    import uvicorn

    logging.basicConfig(
        level=default_settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(), host=default_settings.HOST, port=default_settings.PORT)


if __name__ == "__main__":
    main()
