# server/main.py

import logging
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api import auth, news
from config import Settings, get_settings
from core.storage import DropboxImageStore
from database import create_db_engine, create_session_factory, init_db
from errors import InternalError, NewsApiError, Unauthenticated


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(message)s"
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


settings = get_settings()
configure_logging(settings)
logger = structlog.get_logger(__name__)


# -------------------------------
# Startup & Shutdown
# -------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    missing = settings.missing_required()
    if missing:
        logger.error("startup_failed", reason="missing configuration", missing=missing)
        raise SystemExit(1)

    try:
        engine = create_db_engine(settings.database_url)
        init_db(engine)
    except SQLAlchemyError as e:
        logger.error("database_connection_failed", error=str(e))
        raise SystemExit(1)
    logger.info("database_connected", dialect=engine.dialect.name)

    app.state.session_factory = create_session_factory(engine)
    if settings.dropbox_access_token:
        app.state.image_store = DropboxImageStore.from_token(settings.dropbox_access_token)
    else:
        app.state.image_store = None
        logger.warning("image_store_disabled", reason="DROPBOX_ACCESS_TOKEN is not set")

    yield

    if app.state.image_store is not None:
        app.state.image_store.close()
    engine.dispose()
    logger.info("shutdown_complete")


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(news.router)


# -------------------------------
# Error Responses
# -------------------------------

@app.exception_handler(NewsApiError)
async def news_api_error_handler(request: Request, exc: NewsApiError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Invalid request", "errors": errors})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path, method=request.method)
    return JSONResponse(status_code=500, content=InternalError().to_dict())


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port)
