"""
Simple-FM - Main FastAPI Application
"""
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from simple_fm.api.v1 import router as api_v1_router
from simple_fm.core.settings import settings
from simple_fm.db.session import Database
from simple_fm.exceptions import SimpleFMException
from simple_fm.logging_config import setup_logging, get_logger
from simple_fm.web.routes import router as web_router
from simple_fm.web.templating import templates

setup_logging()
logger = get_logger(__name__)


def _wants_json(request: Request) -> bool:
    return request.url.path.startswith(settings.API_V1_STR) or request.url.path == "/health"


def _error_response(request: Request, status_code: int, error: str, message: str, details: Optional[dict] = None):
    """JSON for API clients, the error page for browsers"""
    if _wants_json(request):
        content = {"error": error, "message": message}
        if details:
            content["details"] = details
        return JSONResponse(status_code=status_code, content=content)
    return templates.TemplateResponse(
        request,
        "error.html",
        {"status_code": status_code, "error_code": error, "message": message},
        status_code=status_code,
    )


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(SimpleFMException)
    async def simple_fm_exception_handler(request: Request, exc: SimpleFMException):
        """Handle all inventory exceptions."""
        if exc.status_code >= 500:
            logger.error(
                f"{exc.error_code} on {request.url.path}: {exc.message}",
                exc_info=exc,
                extra={"error_code": exc.error_code, "path": request.url.path},
            )
        else:
            logger.warning(
                f"{exc.error_code} - {exc.message}",
                extra={"error_code": exc.error_code, "details": exc.details, "path": request.url.path},
            )
        return _error_response(request, exc.status_code, exc.error_code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed path or query parameters, e.g. /filaments/abc/edit"""
        errors = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
            errors.append({
                "field": field,
                "message": error["msg"],
                "type": error["type"],
            })

        logger.warning(
            f"Validation error on {request.url.path}",
            extra={"errors": errors}
        )
        message = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        status_code = 422 if _wants_json(request) else 400
        return _error_response(request, status_code, "VALIDATION_ERROR", message, {"errors": errors})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(request, exc.status_code, "HTTP_ERROR", str(exc.detail))

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
        """Database errors that escaped the inventory store."""
        logger.error(
            f"Database error on {request.url.path}: {str(exc)}",
            exc_info=True
        )
        return _error_response(
            request, 500, "DATABASE_ERROR", f"A database error occurred: {exc.__class__.__name__}"
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Catch-all handler for unexpected errors."""
        logger.error(
            f"Unexpected error on {request.url.path}: {str(exc)}",
            exc_info=True
        )
        return _error_response(
            request, 500, "INTERNAL_ERROR", "An unexpected error occurred. Please try again later."
        )


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the application.

    Args:
        database: Database to use instead of one built from settings
    """
    if database is None:
        database = Database(
            settings.database_url,
            echo=settings.DB_ECHO,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        logger.info(
            "Starting Simple-FM",
            extra={
                "version": settings.VERSION,
                "environment": settings.ENVIRONMENT,
                "debug": settings.DEBUG,
            }
        )
        database.connect(create_tables=settings.DB_CREATE_TABLES)
        try:
            yield
        finally:
            database.close()
            logger.info("Shutting down Simple-FM")

    app = FastAPI(
        title="Simple-FM",
        description="Filament spool inventory",
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.database = database

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log method, path, status and duration of every request."""
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={"duration_ms": round((time.perf_counter() - started) * 1000, 1)},
        )
        return response

    register_exception_handlers(app)

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)
    app.include_router(web_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "version": settings.VERSION}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "simple_fm.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
    )
