"""
FastAPI application entry point.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import get_query_service
from api.exception_handlers import register_exception_handlers
from api.middleware import RequestLoggingMiddleware
from api.models.responses import HealthResponse
from api.routers import execute_query
from config.logging_config import configure_logging
from config.settings import Config

config = Config.load()
configure_logging(config.app.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release pooled database connections on shutdown."""
    yield
    get_query_service().db.close()


app = FastAPI(
    title=config.app.title,
    version=config.app.version,
    description=config.app.description,
    openapi_tags=[{"name": "execute-query", "description": config.app.description}],
    lifespan=lifespan,
)

if config.app.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.app.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

app.include_router(execute_query.router)


@app.get("/health", response_model=HealthResponse)
def health():
    return {"status": "healthy"}
