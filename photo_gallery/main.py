import logging
import platform
import time
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import __version__
from .core.logging_config import setup_logging
from .core.db import engine, get_db
from .core.config import settings

# Import the Base object and all models to ensure they are registered with SQLAlchemy's metadata
from .models import Base, Photo
from .routers import photos


# Set up logging as the first step
setup_logging()
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


def create_tables():
    """
    Creates all database tables based on the current models.
    This is a non-destructive operation: it only creates tables that do not already exist.
    """
    logger.info("Ensuring all database tables exist...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables checked.")


app = FastAPI(
    title="Photo Gallery API",
    description="Stores photographs as binary blobs in a relational database.",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
    max_age=86400,
)


@app.on_event("startup")
def on_startup():
    """
    Actions to perform on application startup.
    """
    logger.info("Application is starting up...")
    try:
        create_tables()
    except SQLAlchemyError as e:
        # The API still starts; /api/debug/db reports the failure.
        logger.error(f"Could not create database tables on startup: {e}")
    logger.info("Startup actions finished.")


@app.get("/", tags=["Root"], include_in_schema=False)
def read_root():
    return RedirectResponse(url="/api/info")


@app.get("/api/health", tags=["Root"])
def health():
    """
    A simple health check endpoint.
    """
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "Photo Gallery API",
        "python_version": platform.python_version(),
        "uptime": time.monotonic() - STARTED_AT,
    }


@app.get("/api/info", tags=["Root"])
def info():
    return {
        "name": "Photo Gallery API",
        "version": __version__,
        "endpoints": [
            {"method": "GET", "path": "/api/health", "description": "Health check"},
            {"method": "GET", "path": "/api/info", "description": "API information"},
            {"method": "GET", "path": "/api/debug/db", "description": "Database diagnostics"},
            {"method": "GET", "path": "/api/photos", "description": "List photos"},
            {"method": "GET", "path": "/api/photos/search", "description": "Search photos by tags"},
            {"method": "POST", "path": "/api/photos/upload", "description": "Upload a photo"},
            {"method": "GET", "path": "/api/photos/{id}", "description": "Get photo metadata"},
            {"method": "GET", "path": "/api/photos/{id}/image", "description": "Get the image"},
            {"method": "PUT", "path": "/api/photos/{id}", "description": "Update description and tags"},
            {"method": "DELETE", "path": "/api/photos/{id}", "description": "Delete a photo"},
            {"method": "POST", "path": "/api/photos/bulk-upload", "description": "Ingest a server folder"},
        ],
        "limits": {
            "max_file_size": f"{settings.UPLOAD_MAX_FILE_SIZE_MB}MB",
            "supported_formats": [e.lstrip(".") for e in settings.UPLOAD_ALLOWED_EXTENSIONS],
        },
    }


@app.get("/api/debug/db", tags=["Root"])
def debug_db(db: Session = Depends(get_db)):
    try:
        photo_count = db.query(func.count(Photo.id)).scalar()
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database debug error: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return {
        "success": True,
        "database": {
            "time": datetime.now(timezone.utc).isoformat(),
            "photo_count": photo_count,
            "dialect": db.get_bind().dialect.name,
            "connection": "OK",
        },
    }


app.include_router(photos.router, prefix="/api/photos", tags=["Photos"])
