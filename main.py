import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from leave_lottery.core.config import settings
from leave_lottery.core.logging_config import setup_logging
from leave_lottery.api.v1.api import api_router
from leave_lottery.middleware.logging import LoggingMiddleware
from leave_lottery.utils.date_utils import local_now

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Leave lottery service starting ({settings.ENVIRONMENT}, timezone {settings.TIMEZONE})")
    yield
    logger.info("Leave lottery service stopped")

# Create FastAPI app
app_config = {
    "title": "Leave Lottery Service",
    "description": "Leave applications decided by lottery, with points, cancellations and priority exchange",
    "version": "1.0.0",
    "docs_url": "/api/docs",
    "redoc_url": "/api/redoc",
    "openapi_url": "/api/openapi.json",
    "lifespan": lifespan,
}

app = FastAPI(**app_config)

# Add middleware
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS
)

# Include routers
app.include_router(api_router, prefix="/api/v1")

@app.get("/")
async def root():
    return {
        "message": "Leave Lottery Service",
        "status": "active",
        "version": "1.0.0",
        "docs": "/api/docs"
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": local_now().isoformat(),
        "environment": settings.ENVIRONMENT,
    }

def run_http(port: int = 8000):
    """Run the HTTP server"""
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=settings.DEBUG
    )

if __name__ == "__main__":
    run_http()
