from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, LargeBinary, DateTime, JSON, Index
from ..models.base import Base


class Photo(Base):
    __tablename__ = "photos"
    __table_args__ = (
        Index("idx_photos_created_at", "created_at"),
        Index("idx_photos_filename", "filename"),
        # AUTOINCREMENT keeps SQLite from reusing the ids of deleted rows.
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    filename = Column(String(255), nullable=False)
    content = Column(LargeBinary, nullable=False)
    mime_type = Column(String(50), nullable=True)
    byte_size = Column(Integer, nullable=True)
    # Size of the file on disk before normalization, only set by ingestion.
    source_size = Column(Integer, nullable=True)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    description = Column(Text, nullable=True)
    tags = Column(JSON, nullable=True, comment="Ordered list of short strings, e.g. ['beach', 'family']")

    def __repr__(self):
        return f"<Photo id={self.id} filename={self.filename!r} byte_size={self.byte_size}>"
