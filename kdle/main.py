from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from kdle.db.base import get_db
from kdle.core.config import settings
from kdle.core.logging import setup_logging
from kdle.schemas.common import ErrorResponse
from kdle.routers import admin as admin_router
from kdle.routers import game as game_router
from kdle.routers import leaderboard as leaderboard_router
from kdle.routers import search as search_router
from kdle.routers import user as user_router
from kdle.core.errors import (
    KdleException,
    kdle_exception_handler,
    validation_exception_handler,
    database_exception_handler,
    unhandled_exception_handler,
)

setup_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.APP_NAME,
    description=(
        "**Daily K-pop song guessing game**\n\n"
        "One song per Pacific calendar day. Players hear a short preview, "
        "guess the title and unlock hints with each miss.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid payload."},
        500: {"model": ErrorResponse, "description": "Internal or upstream failure."},
    },
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(KdleException, kdle_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(game_router.router)
app.include_router(user_router.router)
app.include_router(leaderboard_router.router)
app.include_router(search_router.router)
app.include_router(admin_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable. Returns HTTP 503 if the DB is down.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError:
        db_status = "unreachable"

    if db_status != "ok":
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": db_status},
        )
    return {"status": "ok", "db": "ok", "env": settings.APP_ENV}
