"""FastAPI application entrypoint. No business logic; only wiring, middleware and error rendering."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import router as v1_router
from app.core.config import settings
from app.core.database import SessionLocal
from app.core.exceptions import WardenError
from app.core.i18n import resolve_locale, translate
from app.services.catalog import seed_admin, seed_catalog

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    if settings.SEED_ON_STARTUP:
        db = SessionLocal()
        try:
            seed_catalog(db)
            seed_admin(db, settings)
        finally:
            db.close()
    yield


app = FastAPI(
    title="Warden API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WardenError)
async def warden_error_handler(request: Request, exc: WardenError) -> JSONResponse:
    """Render a domain error as {"detail": <localized message>} with the error's status."""
    locale = getattr(request.state, "locale", None) or resolve_locale(
        query_lang=request.query_params.get("lang"),
        accept_language=request.headers.get("accept-language"),
    )
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "error": type(exc).__name__, "reason": exc.message[:500]},
        )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": translate(locale, exc.message_key, exc.params)},
        headers=headers,
    )


app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Warden API"}
