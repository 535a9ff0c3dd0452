"""
Main FastAPI application for the docsight backend.
Handles CORS, request logging middleware, lifespan events, and router registration.
"""
import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import httpx
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docsight.config import settings
from docsight.database import close_db, init_db
from docsight.routers import analysis, data_files, documents, health, templates

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Startup / shutdown
# ---------------------------------------------------------------------------

async def _embed_model_available() -> Optional[bool]:
    """
    Whether Ollama lists OLLAMA_EMBED_MODEL; None when Ollama cannot be reached.

    "nomic-embed-text" matches "nomic-embed-text:latest".
    """
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.get(f"{settings.OLLAMA_BASE_URL}/api/tags")
        resp.raise_for_status()
        names = [m.get("name", "") for m in resp.json().get("models", [])]
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Ollama at %s unavailable: %s", settings.OLLAMA_BASE_URL, exc)
        return None

    wanted = settings.OLLAMA_EMBED_MODEL.split(":")[0]
    return any(name.split(":")[0] == wanted for name in names)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and the upload directory, then report embedding readiness."""
    await init_db()
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)

    embed_ready = await _embed_model_available()
    if embed_ready is None:
        logger.warning("Embeddings disabled until Ollama is up; uploads are still profiled")
    elif not embed_ready:
        logger.warning(
            "Embedding model %r missing; run `ollama pull %s`",
            settings.OLLAMA_EMBED_MODEL,
            settings.OLLAMA_EMBED_MODEL,
        )
    logger.info(
        "docsight %s serving on %s:%d (uploads in %s)",
        VERSION,
        settings.HOST,
        settings.PORT,
        os.path.abspath(settings.UPLOAD_DIR),
    )

    yield

    await close_db()
    logger.info("docsight stopped")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="docsight API",
    description=(
        "**docsight**: dataset profiling and document structure analysis.\n\n"
        "Upload CSV/TSV/XLSX files to get per-column types, statistics, "
        "correlations and a data quality score; upload PDF/DOCX/TXT/MD "
        "documents to get headings, sections and template suggestions.\n\n"
        "Key endpoints:\n"
        "- `POST /api/analysis/profile` — profile an in-memory table\n"
        "- `POST /api/analysis/structure` — extract document structure from text\n"
        "- `POST /api/data-files/upload` — upload and profile a data file\n"
        "- `POST /api/documents/upload` — upload and analyse a document\n"
        "- `POST /api/documents/{id}/match-templates` — rank templates for a document\n"
        "- `POST /api/templates` — add a template to your library\n"
    ),
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every request with method, path, status code, and elapsed time.
    Attaches an ``X-Process-Time`` header (milliseconds) to every response.
    """
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - t0) * 1000, 2)

    # Skip noisy health-check polling from the frontend
    if request.url.path not in ("/api/health", "/api/health/", "/"):
        logger.info(
            "%s %s → %d  (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


# ---------------------------------------------------------------------------
# Global exception handler
# ---------------------------------------------------------------------------

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a structured JSON error for any unhandled exception."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc),
            "path": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(health.router,      prefix="/api/health",     tags=["Health"])
app.include_router(analysis.router,    prefix="/api/analysis",   tags=["Analysis"])
app.include_router(data_files.router,  prefix="/api/data-files", tags=["Data Files"])
app.include_router(documents.router,   prefix="/api/documents",  tags=["Documents"])
app.include_router(templates.router,   prefix="/api/templates",  tags=["Templates"])


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

@app.get("/", tags=["Root"], include_in_schema=False)
async def root():
    """API root — returns basic service info."""
    return {
        "name": "docsight API",
        "version": VERSION,
        "description": "Dataset profiling and document structure analysis",
        "docs": "/docs",
        "health": "/api/health",
        "endpoints": {
            "analysis": "/api/analysis",
            "data_files": "/api/data-files",
            "documents": "/api/documents",
            "templates": "/api/templates",
        },
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "docsight.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level=settings.LOG_LEVEL.lower(),
    )
