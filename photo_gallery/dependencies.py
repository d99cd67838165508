from fastapi import Depends
from sqlalchemy.orm import Session

from .core.db import get_db
from .core.config import settings
from .services.ingestion.normalizer import ImageNormalizer
from .services.photo_service import PhotoService

# --- Service Dependencies ---

def get_upload_normalizer() -> ImageNormalizer:
    """Normalizer bounds used by the interactive upload endpoint."""
    return ImageNormalizer(
        max_width=settings.UPLOAD_MAX_DIMENSION,
        max_height=settings.UPLOAD_MAX_DIMENSION,
        quality=settings.JPEG_QUALITY,
    )

def get_photo_service(
    db: Session = Depends(get_db),
    normalizer: ImageNormalizer = Depends(get_upload_normalizer),
) -> PhotoService:
    """Dependency to get an instance of PhotoService."""
    return PhotoService(db=db, normalizer=normalizer, max_file_size=settings.UPLOAD_MAX_FILE_SIZE)
