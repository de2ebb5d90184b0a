"""Main FastAPI application"""
import logging
import logging.config
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from config import Settings
from database import Database
from error_handlers import register_exception_handlers
from models.response import error_response
from routes import health_payload, router as expenses_router
from services.expense_store import ExpenseStore


def configure_logging(level: str = "INFO") -> None:
    """Routes our loggers and uvicorn's through a single RichHandler."""
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                # RichHandler renders time and level itself
                "format": "%(name)s - %(message)s",
            },
        },
        "handlers": {
            "default": {
                "class": "rich.logging.RichHandler",
                "formatter": "default",
                "level": "DEBUG",
                "rich_tracebacks": True,
                "show_time": True,
                "show_path": False,
                "log_time_format": "%Y-%m-%d %H:%M:%S",
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["default"], "level": "INFO", "propagate": False},
            "": {"handlers": ["default"], "level": level, "propagate": False},
        },
    })


logger = logging.getLogger(__name__)


# --- Middleware for JSON payload size limit ---
class LimitBodySizeMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, max_body_size: int):
        super().__init__(app)
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next):
        content_length_header = request.headers.get("content-length")
        if content_length_header:
            try:
                content_length = int(content_length_header)
            except ValueError:
                logger.warning("Request rejected: Invalid Content-Length header.")
                return error_response(400, "Invalid Content-Length header.")
            if content_length > self.max_body_size:
                logger.warning(f"Request rejected: body size {content_length} exceeds limit {self.max_body_size}.")
                return error_response(413, f"Request body exceeds the {self.max_body_size // 1024} KB limit.")
        return await call_next(request)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: connect to MongoDB; failing here aborts startup
    database: Database = app.state.database
    try:
        await database.connect()
        await ExpenseStore(database.expenses).ensure_indexes()
    except Exception as e:
        logger.error(f"Failed to connect to MongoDB: {e}")
        raise

    yield  # Application runs here

    # Shutdown: close MongoDB connection
    await database.close()


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    if not settings.mongodb_uri and database is None:
        logger.error("MONGODB_URI environment variable not set! Database connection will fail.")

    app = FastAPI(
        title="Expense Tracker API",
        description="API for recording, listing and summarizing personal expenses.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database or Database.from_settings(settings)

    # --- Rate Limiter ---
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit] if settings.rate_limit else [],
        enabled=bool(settings.rate_limit),
    )
    app.state.limiter = limiter

    register_exception_handlers(app, settings)

    # --- Middleware (last added runs first) ---
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(LimitBodySizeMiddleware, max_body_size=settings.max_body_size)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["system"], summary="Health Check")
    async def health():
        return health_payload()

    app.include_router(expenses_router, prefix="/api")
    return app


settings = Settings.from_env()
configure_logging(settings.log_level)
app = create_app(settings)


def run() -> None:
    """Entrypoint for running the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,  # keep the Rich configuration above
        timeout_graceful_shutdown=settings.shutdown_grace_period,
    )


if __name__ == "__main__":
    run()
