import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from stockbook.api.routes.auth import router as auth_router
from stockbook.api.routes.debts import router as debts_router
from stockbook.api.routes.inventory import router as inventory_router
from stockbook.core.config import settings
from stockbook.core.logging_config import configure_logging
from stockbook.db.database import Database
from stockbook.services.errors import ServiceError

logger = logging.getLogger(__name__)


async def service_error_handler(_: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


def create_app(database: Database | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        handle = database or Database()
        if settings.auto_create_tables:
            handle.create_all()
        app.state.database = handle
        logger.info("%s started", settings.app_name)
        try:
            yield
        finally:
            # A handle passed in by the caller is theirs to dispose.
            if database is None:
                handle.dispose()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(auth_router)
    app.include_router(inventory_router)
    app.include_router(debts_router)

    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "ok"}

    @app.get("/health/db", tags=["System"])
    def database_health_check(request: Request):
        try:
            request.app.state.database.ping()
        except SQLAlchemyError:
            logger.exception("database health check failed")
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "error", "database": "unreachable"},
            )
        return {"status": "ok", "database": "reachable"}

    return app


app = create_app()
