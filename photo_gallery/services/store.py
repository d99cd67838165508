import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..core.engine import create_engine_for_url
from ..models import Base, Photo
from .exceptions import PersistenceError, StoreConnectionError

logger = logging.getLogger(__name__)


def mask_database_url(database_url: str) -> str:
    """Hides the password of a database URL so it can be logged."""
    try:
        return make_url(database_url).render_as_string(hide_password=True)
    except ArgumentError:
        # Not a parseable URL, so there is no password part to hide.
        return database_url


class PhotoStore:
    """
    Handle on one photo store: a session bound to a single database.

    The ingestion and synchronization pipelines receive a store explicitly
    instead of reaching for the application-wide session factory, so a run
    can target any database (or two at once) and tests can use a scratch one.
    """

    def __init__(self, db: Session, name: str = "store", engine: Optional[Engine] = None):
        self.db = db
        self.name = name
        # Only set when the store created the engine itself; close() disposes it.
        self._engine = engine

    @classmethod
    def connect(cls, database_url: str, name: str = "store", create_schema: bool = False) -> "PhotoStore":
        """
        Opens a dedicated engine and session for `database_url` and verifies the
        connection. Raises StoreConnectionError if the database is unreachable.
        """
        masked = mask_database_url(database_url)
        try:
            engine = create_engine_for_url(database_url)
        except (SQLAlchemyError, ValueError, ImportError) as e:
            raise StoreConnectionError(f"Invalid database URL for {name} ({masked}): {e}") from e

        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            if create_schema:
                Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as e:
            engine.dispose()
            raise StoreConnectionError(f"Could not connect to {name} ({masked}): {e}") from e

        logger.info(f"Connected to {name} at {masked}")
        session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
        return cls(session, name=name, engine=engine)

    @property
    def dialect_name(self) -> str:
        return self.db.get_bind().dialect.name

    def exists(self, filename: str, byte_size: int, match_source_size: bool = False) -> bool:
        """
        Checks whether at least one photo with this filename and size exists.
        With `match_source_size`, the on-disk size recorded at ingestion time
        is accepted as well as the stored size.
        """
        if match_source_size:
            size_clause = or_(Photo.byte_size == byte_size, Photo.source_size == byte_size)
        else:
            size_clause = Photo.byte_size == byte_size
        try:
            row = (
                self.db.query(Photo.id)
                .filter(Photo.filename == filename, size_clause)
                .limit(1)
                .first()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Duplicate check failed for '{filename}' in {self.name}: {e}") from e
        return row is not None

    def insert(
        self,
        filename: str,
        content: bytes,
        mime_type: Optional[str],
        byte_size: Optional[int] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        source_size: Optional[int] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> int:
        """Inserts one photo and commits it. Returns the id assigned by the store."""
        photo = Photo(
            filename=filename,
            content=content,
            mime_type=mime_type,
            byte_size=len(content) if byte_size is None else byte_size,
            source_size=source_size,
            width=width,
            height=height,
            description=description,
            tags=tags,
        )
        if created_at is not None:
            photo.created_at = created_at
            photo.updated_at = updated_at or created_at
        elif updated_at is not None:
            photo.updated_at = updated_at

        try:
            self.db.add(photo)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Insert of '{filename}' into {self.name} failed: {e}") from e
        return photo.id

    def fetch_all(self, after_id: Optional[int] = None) -> List[Photo]:
        """Returns every photo (content included) in ascending id order."""
        query = self.db.query(Photo)
        if after_id is not None:
            query = query.filter(Photo.id > after_id)
        try:
            return query.order_by(Photo.id.asc()).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not read photos from {self.name}: {e}") from e

    def count(self) -> int:
        try:
            return self.db.query(func.count(Photo.id)).scalar() or 0
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not count photos in {self.name}: {e}") from e

    def clear(self) -> None:
        """
        Removes every photo and resets the id sequence, so the next insert
        gets id 1 again.
        """
        try:
            if self.dialect_name == "postgresql":
                self.db.execute(text("TRUNCATE photos RESTART IDENTITY CASCADE"))
            else:
                self.db.query(Photo).delete(synchronize_session=False)
                if self.dialect_name == "sqlite":
                    has_sequence = self.db.execute(
                        text("SELECT name FROM sqlite_master WHERE type='table' AND name='sqlite_sequence'")
                    ).first()
                    if has_sequence:
                        self.db.execute(text("DELETE FROM sqlite_sequence WHERE name = 'photos'"))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not clear photos in {self.name}: {e}") from e
        logger.info(f"Cleared all photos in {self.name}")

    def close(self) -> None:
        self.db.close()
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
