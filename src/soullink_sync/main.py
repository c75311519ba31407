"""Reference document server: FastAPI app exposing get / subscribe / set."""

import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from . import __version__
from .api import documents
from .api.schemas import HealthResponse
from .config import get_config
from .db.database import SessionLocal, init_db
from .events.websocket_manager import websocket_manager
from .utils.logging_config import get_logger

logger = get_logger('main')

config = get_config()

app = FastAPI(
    title=config.app.app_name,
    description=config.app.description,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

allowed_origins = [
    "http://127.0.0.1:8000",
    "http://localhost:8000",
]

# In development mode, allow local frontends
if config.server.debug:
    allowed_origins.extend([
        "http://127.0.0.1:3000",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://localhost:5173",
    ])

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin"],
)

app.include_router(documents.router)


@app.on_event("startup")
async def startup_event():
    """Create tables on startup."""
    init_db()
    logger.info(f"{config.app.app_name} {__version__} started")


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        service="soullink-sync",
        version=__version__,
        websocket_connections=websocket_manager.get_total_connections(),
    )


@app.get("/ready")
async def readiness_check():
    """Readiness check that validates database connectivity."""
    start_time = time.time()
    errors = []

    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        database_ok = True
    except Exception as e:
        database_ok = False
        errors.append(f"Database check failed: {e}")
    finally:
        db.close()

    response = {
        "status": "ready" if database_ok else "not_ready",
        "service": "soullink-sync",
        "version": __version__,
        "checks": {"database": database_ok},
        "response_time_ms": round((time.time() - start_time) * 1000, 2),
    }
    if errors:
        response["errors"] = errors

    return JSONResponse(content=response, status_code=200 if database_ok else 503)


def run() -> None:
    """Console entry point: serve the reference document server with uvicorn."""
    import uvicorn

    uvicorn.run(
        "soullink_sync.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.debug,
        log_level="debug" if config.server.debug else "info",
    )


if __name__ == "__main__":
    run()
