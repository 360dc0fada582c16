"""
Provider API - Provider records CRUD with JWT authentication
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.httpsredirect import HTTPSRedirectMiddleware

from .config import settings
from .db import init_db
from .routes import health, providers, users
from .utils.event_logger import configure_logging
from .validation import request_validation_exception_handler

configure_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Create tables on startup"""
    init_db()
    yield


# API docs are only exposed in development
docs_enabled = settings.is_development

app = FastAPI(
    title="Minimal API Sample",
    description="Provider records API with JWT bearer authentication",
    version="1.0.0",
    contact={"name": "Provider Platform"},
    license_info={"name": "MIT", "url": "https://opensource.org/licenses/MIT"},
    docs_url="/docs" if docs_enabled else None,
    redoc_url="/redoc" if docs_enabled else None,
    openapi_url="/openapi.json" if docs_enabled else None,
    lifespan=lifespan
)

app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

if settings.HTTPS_REDIRECT:
    app.add_middleware(HTTPSRedirectMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users.router)
app.include_router(providers.router)
app.include_router(health.router)
