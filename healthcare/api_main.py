from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import get_settings
from .db import db_session
from .errors import HealthcareError
from .logging_setup import configure_logging
from .models import User
from .routes import all_routers
from .seed import init_db, seed_base

logger = logging.getLogger(__name__)
settings = get_settings()

ENDPOINTS = {
    "auth": "/api/auth",
    "users": "/api/users",
    "appointments": "/api/appointments",
    "documents": "/api/documents",
    "reviews": "/api/reviews",
    "specializations": "/api/specializations",
    "messages": "/api/messages",
    "health": "/api/health",
    "info": "/api/info",
}

app = FastAPI(title="Healthcare Platform API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

for router in all_routers:
    app.include_router(router)


# Startup

@app.on_event("startup")
def startup() -> None:
    # Logging, tables and base seed (idempotent)
    configure_logging()
    init_db()
    seed_base()
    logger.info("API started (%s)", settings.environment)


# Error handling

@app.exception_handler(HealthcareError)
async def healthcare_error_handler(request: Request, exc: HealthcareError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message, **exc.extra})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    detail = str(exc.orig).lower()
    code = getattr(exc.orig, "pgcode", None)
    logger.warning("integrity error on %s %s: %s", request.method, request.url.path, detail)

    if code == "23505" or "unique" in detail:
        return JSONResponse(status_code=409, content={"message": "Resource already exists or duplicate entry."})
    if code == "23503" or "foreign key" in detail:
        return JSONResponse(status_code=400, content={"message": "Invalid reference to related resource."})
    return JSONResponse(status_code=400, content={"message": "Database constraint violated."})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Database error"})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "form")),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(
            status_code=404,
            content={
                "message": "Endpoint not found",
                "requested_path": request.url.path,
                "available_endpoints": ENDPOINTS,
            },
        )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


# System endpoints

@app.get("/")
def root() -> dict[str, Any]:
    return {
        "message": "Healthcare Platform API",
        "version": __version__,
        "docs": "/docs",
        "endpoints": ENDPOINTS,
    }


@app.get("/api/health")
def health() -> dict[str, Any]:
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "version": __version__,
    }


@app.get("/api/info")
def info() -> dict[str, Any]:
    return {
        "name": "Healthcare Platform API",
        "version": __version__,
        "features": [
            "JWT authentication",
            "Role-based access (patient, doctor, admin)",
            "Appointment booking and scheduling",
            "Medical document upload and sharing",
            "Doctor reviews and responses",
            "Specializations catalogue",
            "Messaging",
            "Admin moderation",
        ],
        "endpoints": ENDPOINTS,
        "upload": {
            "max_size_mb": settings.max_upload_bytes // (1024 * 1024),
            "allowed_extensions": list(settings.allowed_extensions),
        },
    }


@app.get("/api/db-test")
def db_test() -> dict[str, Any]:
    with db_session() as s:
        s.execute(text("SELECT 1"))
        users = s.scalar(select(func.count(User.id))) or 0
    return {"message": "Database connection successful", "users": int(users)}
