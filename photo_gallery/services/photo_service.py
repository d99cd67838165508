import logging
import math
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import String, cast, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, defer

from ..models import Photo
from ..utils.file_utils import parse_tags
from .exceptions import OversizeError, PersistenceError
from .ingestion.normalizer import ImageNormalizer
from .store import PhotoStore

logger = logging.getLogger(__name__)


def _tag_clause(tag: str):
    # Tags are a JSON array; match the quoted element in its text form so the
    # same filter works on SQLite and PostgreSQL.
    return cast(Photo.tags, String).like(f'%"{tag}"%')


class PhotoService:
    """Handles the business logic behind the photo endpoints."""

    def __init__(self, db: Session, normalizer: ImageNormalizer, max_file_size: int):
        self.db = db
        self.normalizer = normalizer
        self.max_file_size = max_file_size

    def _metadata_query(self):
        return self.db.query(Photo).options(defer(Photo.content))

    def upload_photo(
        self,
        filename: str,
        data: bytes,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Photo:
        """
        Validates and stores a single uploaded image. Oversize or undecodable
        files raise OversizeError / ImageDecodeError before anything is written.
        """
        if len(data) > self.max_file_size:
            raise OversizeError(len(data), self.max_file_size)

        image = self.normalizer.normalize(data)
        if image.resized:
            reduction = (len(data) - image.byte_size) / len(data) * 100
            logger.info(f"Image optimized: {len(data)} -> {image.byte_size} bytes ({reduction:.1f}% smaller)")

        store = PhotoStore(self.db, name="database")
        photo_id = store.insert(
            filename=filename,
            content=image.content,
            mime_type=image.mime_type,
            byte_size=image.byte_size,
            width=image.width,
            height=image.height,
            description=description,
            tags=tags,
        )
        logger.info(f"Photo saved, ID: {photo_id}")
        return self.get_photo(photo_id)

    def list_photos(self, page: int = 1, limit: int = 20, tag: Optional[str] = None) -> Tuple[List[Photo], int]:
        query = self._metadata_query()
        if tag and tag.strip():
            query = query.filter(_tag_clause(tag.strip()))

        total = query.count()
        photos = (
            query.order_by(Photo.created_at.desc(), Photo.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return photos, total

    @staticmethod
    def total_pages(total: int, limit: int) -> int:
        return math.ceil(total / limit) if limit else 0

    def search_by_tags(self, tags: List[str]) -> List[Photo]:
        """Returns photos carrying at least one of `tags`, newest first."""
        return (
            self._metadata_query()
            .filter(or_(*[_tag_clause(t) for t in tags]))
            .order_by(Photo.created_at.desc(), Photo.id.desc())
            .all()
        )

    def get_photo(self, photo_id: int) -> Photo:
        photo = self._metadata_query().filter(Photo.id == photo_id).first()
        if not photo:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found")
        return photo

    def get_image(self, photo_id: int) -> Tuple[bytes, str]:
        row = self.db.query(Photo.content, Photo.mime_type).filter(Photo.id == photo_id).first()
        if not row:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
        return row.content, row.mime_type or "image/jpeg"

    def update_photo(self, photo_id: int, description: Optional[str], tags: Optional[str]) -> Photo:
        """Updates description and/or tags; None leaves the current value."""
        photo = self.get_photo(photo_id)
        if description:
            photo.description = description
        new_tags = parse_tags(tags)
        if new_tags is not None:
            photo.tags = new_tags
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not update photo {photo_id}: {e}") from e
        return photo

    def delete_photo(self, photo_id: int) -> None:
        deleted = self.db.query(Photo).filter(Photo.id == photo_id).delete(synchronize_session=False)
        if deleted == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found")
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not delete photo {photo_id}: {e}") from e
