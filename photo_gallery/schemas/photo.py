from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class PhotoRead(BaseModel):
    """Photo metadata; the blob is served by the /image endpoint."""
    id: int
    filename: str
    mime_type: Optional[str] = None
    byte_size: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    tags: Optional[List[str]] = None

    class Config:
        from_attributes = True


class PhotoUpdate(BaseModel):
    """Fields left as None keep their current value."""
    description: Optional[str] = None
    tags: Optional[str] = Field(None, description="Comma-separated list of tags.")


class PhotoUploadResponse(BaseModel):
    success: bool = True
    data: PhotoRead
    message: str = "Photo uploaded successfully"


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PaginatedPhotoResponse(BaseModel):
    success: bool = True
    data: List[PhotoRead]
    pagination: Pagination


class PhotoSearchResponse(BaseModel):
    success: bool = True
    data: List[PhotoRead]
    count: int
