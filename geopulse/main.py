# geopulse/main.py
from fastapi import FastAPI, HTTPException, Depends, status
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.orm import Session
import logging

from geopulse.core.config import get_settings
from geopulse.core.middleware import LoggingMiddleware, register_exception_handlers
from geopulse.api.v1.api import api_router
from geopulse.db.database import engine, get_db, Base
from geopulse.models import models  # noqa: F401  registers tables with Base

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# --- Lifespan Events ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events: startup and shutdown."""
    logger.info("Starting GeoPulse backend...")

    masked_url = settings.DATABASE_URL.replace(
        settings.DATABASE_URL.split("@")[0].split("//")[1] + "@",
        "***@"
    ) if "@" in settings.DATABASE_URL else settings.DATABASE_URL
    logger.info(f"Creating tables for database: {masked_url}")

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables created/verified ({len(Base.metadata.tables)} registered)")

    yield
    logger.info("Shutting down GeoPulse backend...")


# --- Create FastAPI App ---
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Environmental monitoring: weather ingestion, hazard thresholds and AI-assisted analysis",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# --- Middleware ---
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

# --- Include API Routes ---
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    """Root endpoint providing basic API information."""
    return {
        "message": "GeoPulse Backend API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "api_endpoints": f"{settings.API_V1_STR}/",
        "status": "running"
    }


@app.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Health check endpoint that verifies database connectivity."""
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Service unhealthy: Database connection failed - {str(e)}"
        )

    return {
        "status": "healthy",
        "database": "connected",
        "app_name": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "ai_enabled": settings.ai_enabled,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "geopulse.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info" if settings.DEBUG else "warning"
    )
