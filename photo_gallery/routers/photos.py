import logging
import os
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import Response

from ..core.config import settings
from ..core.db import SessionLocal
from ..dependencies import get_photo_service
from ..schemas.ingestion import BulkUploadAccepted, BulkUploadRequest
from ..schemas.photo import (
    Pagination, PaginatedPhotoResponse, PhotoRead, PhotoSearchResponse, PhotoUpdate, PhotoUploadResponse,
)
from ..services.exceptions import ImageDecodeError, OversizeError, PersistenceError, ScanRootError
from ..services.ingestion.service import ingest_folder
from ..services.photo_service import PhotoService
from ..services.store import PhotoStore
from ..utils.file_utils import has_allowed_extension, parse_tags

logger = logging.getLogger(__name__)

router = APIRouter()

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
    "Expires": "0",
    "Access-Control-Allow-Origin": "*",
    "Cross-Origin-Resource-Policy": "cross-origin",
    "Access-Control-Expose-Headers": "Content-Length,Content-Disposition",
}


def run_bulk_upload(folder_path: str) -> None:
    """Background job behind POST /bulk-upload. Owns its own session."""
    store = PhotoStore(SessionLocal(), name="database")
    try:
        summary = ingest_folder(
            store,
            folder_path,
            extensions=settings.BULK_API_ALLOWED_EXTENSIONS,
            max_file_size=settings.BULK_MAX_FILE_SIZE,
            max_width=settings.BULK_MAX_WIDTH,
            max_height=settings.BULK_MAX_HEIGHT,
            quality=settings.JPEG_QUALITY,
            batch_size=settings.BULK_PROGRESS_BATCH_SIZE,
        )
        logger.info(f"Bulk upload completed: {summary.model_dump_json()}")
    except ScanRootError as e:
        logger.error(f"Bulk upload failed: {e}")
    finally:
        store.close()


@router.post(
    "/upload",
    response_model=PhotoUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a single photo"
)
async def upload_photo(
    image: Optional[UploadFile] = File(None, description="The image file."),
    file: Optional[UploadFile] = File(None, description="Alternative field name for the image file."),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None, description="Comma-separated list of tags."),
    photo_service: PhotoService = Depends(get_photo_service),
):
    """
    Stores one image, sent as the multipart field `image` (or `file`).
    Images larger than the upload bounds are resized and re-encoded as JPEG
    before they are saved.
    """
    file = image or file
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded. Please select an image file.")

    filename = file.filename or "photo.jpg"
    if not has_allowed_extension(filename, settings.UPLOAD_ALLOWED_EXTENSIONS):
        allowed = ", ".join(e.lstrip(".") for e in settings.UPLOAD_ALLOWED_EXTENSIONS)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Only image files are allowed ({allowed})")

    data = await file.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded. Please select an image file.")

    logger.info(f"Upload request: {filename}, {len(data)} bytes")
    try:
        photo = photo_service.upload_photo(
            filename=filename,
            data=data,
            description=description or None,
            tags=parse_tags(tags),
        )
    except OversizeError as e:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {settings.UPLOAD_MAX_FILE_SIZE_MB}MB",
        ) from e
    except ImageDecodeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except PersistenceError as e:
        logger.error(f"Error uploading photo: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error uploading photo") from e

    return PhotoUploadResponse(data=PhotoRead.model_validate(photo))


@router.post(
    "/bulk-upload",
    response_model=BulkUploadAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Ingest a server-side folder in the background"
)
def bulk_upload(payload: BulkUploadRequest, background_tasks: BackgroundTasks):
    if not os.path.isdir(payload.folder_path):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Folder {payload.folder_path} does not exist",
        )

    background_tasks.add_task(run_bulk_upload, payload.folder_path)
    return BulkUploadAccepted(message="Bulk upload started in background", folder=payload.folder_path)


@router.get(
    "/",
    response_model=PaginatedPhotoResponse,
    summary="List photos"
)
def list_photos(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    tag: Optional[str] = Query(None, description="Only return photos carrying this tag."),
    photo_service: PhotoService = Depends(get_photo_service),
):
    photos, total = photo_service.list_photos(page=page, limit=limit, tag=tag)
    return PaginatedPhotoResponse(
        data=[PhotoRead.model_validate(p) for p in photos],
        pagination=Pagination(page=page, limit=limit, total=total, total_pages=PhotoService.total_pages(total, limit)),
    )


@router.get(
    "/search",
    response_model=PhotoSearchResponse,
    summary="Find photos carrying any of the given tags"
)
def search_by_tags(
    tags: str = Query(..., description="Comma-separated list of tags."),
    photo_service: PhotoService = Depends(get_photo_service),
):
    tag_list = parse_tags(tags)
    if not tag_list:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tags parameter is required")

    photos = photo_service.search_by_tags(tag_list)
    return PhotoSearchResponse(data=[PhotoRead.model_validate(p) for p in photos], count=len(photos))


@router.get("/{photo_id}", response_model=PhotoRead, summary="Get photo metadata")
def get_photo(photo_id: int, photo_service: PhotoService = Depends(get_photo_service)):
    return PhotoRead.model_validate(photo_service.get_photo(photo_id))


@router.get("/{photo_id}/image", response_class=Response, summary="Get the stored image bytes")
def get_image(photo_id: int, photo_service: PhotoService = Depends(get_photo_service)):
    content, mime_type = photo_service.get_image(photo_id)
    headers = dict(NO_CACHE_HEADERS)
    headers["Content-Disposition"] = f'inline; filename="photo_{photo_id}"'
    return Response(content=content, media_type=mime_type, headers=headers)


@router.put("/{photo_id}", response_model=PhotoRead, summary="Update description and tags")
def update_photo(
    photo_id: int,
    payload: PhotoUpdate,
    photo_service: PhotoService = Depends(get_photo_service),
):
    try:
        photo = photo_service.update_photo(photo_id, description=payload.description, tags=payload.tags)
    except PersistenceError as e:
        logger.error(str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error updating photo") from e
    return PhotoRead.model_validate(photo)


@router.delete("/{photo_id}", summary="Delete a photo")
def delete_photo(photo_id: int, photo_service: PhotoService = Depends(get_photo_service)):
    try:
        photo_service.delete_photo(photo_id)
    except PersistenceError as e:
        logger.error(str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error deleting photo") from e
    return {"success": True, "message": "Photo deleted successfully"}
