"""Services: photo CRUD, the photo store handle, ingestion and store synchronization."""
from .exceptions import (
    PhotoGalleryError,
    FileSystemError,
    ScanRootError,
    OversizeError,
    ImageDecodeError,
    PersistenceError,
    StoreConnectionError,
)
from .store import PhotoStore

__all__ = [
    "PhotoGalleryError",
    "FileSystemError",
    "ScanRootError",
    "OversizeError",
    "ImageDecodeError",
    "PersistenceError",
    "StoreConnectionError",
    "PhotoStore",
]
