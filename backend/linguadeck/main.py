from __future__ import annotations

import logging
import time

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlmodel import Session, func, select

from .api.content_routes import create_content_router
from .api.flashcard_routes import create_flashcard_router
from .api.session_routes import create_session_router
from .core.config import get_config
from .core.db import get_session, init_db
from .core.exceptions import LinguaDeckError
from .core.logger import setup_logging
from .models.flashcard import Flashcard
from .services.review_session import ReviewSessionRegistry

logger = logging.getLogger(__name__)

VERSION = "1.2.0"

setup_logging()
config = get_config()
review_sessions = ReviewSessionRegistry()

_start_time = time.time()

limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="LinguaDeck API",
    version=VERSION,
    description="Spaced-repetition review for vocabulary and verb conjugation.",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=429, content={"error": "rate_limited", "detail": "Too many requests, please try again later"})


@app.exception_handler(LinguaDeckError)
async def domain_error_handler(request: Request, exc: LinguaDeckError):
    if exc.status_code >= 500:
        logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code, "detail": str(exc)})


@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def storage_error_handler(request: Request, exc: Exception):
    logger.error("Storage unavailable on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"error": "storage_unavailable", "detail": "Storage unavailable"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "internal_error", "detail": "An unexpected error occurred"})


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "SAMEORIGIN"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(create_flashcard_router())
app.include_router(create_session_router(review_sessions))
app.include_router(create_content_router())


@app.get("/health")
async def healthcheck(session: Session = Depends(get_session)) -> dict:
    uptime = int(time.time() - _start_time)
    total_cards = session.exec(select(func.count(Flashcard.id))).one()
    return {
        "status": "ok",
        "version": VERSION,
        "uptime_seconds": uptime,
        "total_cards": total_cards,
        "active_sessions": len(review_sessions),
    }


@app.on_event("startup")
async def on_startup() -> None:
    init_db()
    logger.info("LinguaDeck %s ready (database: %s)", VERSION, config.database.url)
