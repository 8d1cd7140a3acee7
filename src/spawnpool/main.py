"""
SpawnPool Service - warm pools of pre-launched processes
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
import uvicorn

from .core.config import get_settings
from .core.service_setup import setup_service, cleanup_service, get_service
from .api import pools, spawn

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Get settings
settings = get_settings()

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""

    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    await setup_service(settings)

    yield

    # Shutdown: unclaimed warm processes are killed
    logger.info("Shutting down spawnpool service")
    await cleanup_service()

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

# Mount Prometheus metrics
if settings.enable_metrics:
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)

# Include routers
app.include_router(spawn.router, prefix="/api/v1")
app.include_router(pools.router)

# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "type": type(exc).__name__,
        }
    )

# Root endpoint
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "SpawnPool Service",
        "version": settings.app_version,
        "status": "running",
        "endpoints": {
            "spawn": "/api/v1/spawn",
            "ready": "/api/v1/resources/ready",
            "resources": "/api/v1/resources",
            "pools": "/api/v1/pools",
            "health": "/health",
            "metrics": "/metrics" if settings.enable_metrics else None,
            "docs": "/docs" if settings.debug else None,
        }
    }

# Health check
@app.get("/health")
async def health():
    """Health check endpoint"""

    service = get_service()
    pool_status = {}

    if service is not None:
        pool_status = {
            status.command: status.to_dict()
            for status in service.get_status()
        }

    return {
        "status": "healthy" if service is not None else "degraded",
        "service": "spawnpool",
        "version": settings.app_version,
        "checks": {
            "service": service is not None,
            "reconciler": service.reconciler.enabled if service is not None else None,
        },
        "pools": pool_status,
    }

def main():
    """Main entry point"""
    uvicorn.run(
        "spawnpool.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=settings.workers,
        log_level="info" if not settings.debug else "debug",
    )

if __name__ == "__main__":
    main()
