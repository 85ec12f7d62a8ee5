"""Main FastAPI application for CardLink."""

import time
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .api import analytics, dashboard, orders, profiles, social_links
from .api.middleware import (
    ErrorEnvelopeMiddleware,
    RequestSizeLimitMiddleware,
    install_error_handlers,
)
from .config import get_config, validate_startup_security
from .db.database import check_database
from .utils.logging_config import get_log_directory, get_logger, initialize_logging

config = get_config()
initialize_logging(debug=config.server.debug)
logger = get_logger("main")

# Create FastAPI app
app = FastAPI(
    title=config.app.app_name,
    description=config.app.description,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

install_error_handlers(app)

# Add custom middleware in correct order (innermost first)
app.add_middleware(ErrorEnvelopeMiddleware)
app.add_middleware(RequestSizeLimitMiddleware, max_request_bytes=config.server.max_request_bytes)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.server.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"],
)

# Locally stored assets (QR codes and uploads) are served from here
app.mount(
    "/assets",
    StaticFiles(directory=config.assets.directory, check_dir=False),
    name="assets",
)

# Register API routers
app.include_router(profiles.router)
app.include_router(social_links.router)
app.include_router(analytics.router)
app.include_router(dashboard.router)
app.include_router(orders.router)


@app.on_event("startup")
async def startup_event():
    """Validate security settings and prepare the asset directory."""
    validate_startup_security()
    Path(config.assets.directory).mkdir(parents=True, exist_ok=True)
    logger.info(f"{config.app.app_name} {__version__} started, public URLs at {config.app.public_base_url}")
    logger.info(f"Log directory: {get_log_directory() or 'console only'}")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "cardlink", "version": __version__}


@app.get("/ready")
async def readiness_check():
    """Readiness check endpoint that validates database connectivity and the asset store."""
    start_time = time.time()
    checks = {"database": False, "assets": False}
    errors = []

    database_error = check_database()
    if database_error is None:
        checks["database"] = True
    else:
        errors.append(database_error)

    asset_dir = Path(config.assets.directory)
    if asset_dir.is_dir():
        checks["assets"] = True
    else:
        errors.append(f"Asset directory {asset_dir} does not exist")

    response_time_ms = round((time.time() - start_time) * 1000, 2)
    all_ready = all(checks.values())

    response = {
        "status": "ready" if all_ready else "not_ready",
        "service": "cardlink",
        "version": __version__,
        "checks": checks,
        "response_time_ms": response_time_ms,
    }

    if errors:
        response["errors"] = errors
        logger.warning(f"Readiness check failed: {errors}")

    # Return appropriate status code
    status_code = 200 if all_ready else 503
    return JSONResponse(content=response, status_code=status_code)


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "cardlink.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.auto_reload,
        log_level="debug" if config.server.debug else "info",
    )
