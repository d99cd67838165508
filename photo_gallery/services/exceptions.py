# photo_gallery/services/exceptions.py

class PhotoGalleryError(Exception):
    """Base exception for ingestion, normalization and store errors."""
    kind = "error"


class FileSystemError(PhotoGalleryError):
    """Raised when a directory or file cannot be read."""
    kind = "filesystem"

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class ScanRootError(FileSystemError):
    """Raised before scanning when the root path is missing or not a directory."""
    kind = "scan_root"


class OversizeError(PhotoGalleryError):
    """Raised when a candidate exceeds the configured size ceiling."""
    kind = "oversize"

    def __init__(self, size: int, limit: int):
        super().__init__(f"File is {size / 1024 / 1024:.1f} MB, the limit is {limit / 1024 / 1024:.1f} MB")
        self.size = size
        self.limit = limit


class ImageDecodeError(PhotoGalleryError):
    """Raised when the bytes are not a valid, decodable image."""
    kind = "decode"


class PersistenceError(PhotoGalleryError):
    """Raised when a store query or insert fails for one item or row."""
    kind = "persist"


class StoreConnectionError(PhotoGalleryError):
    """Raised when the initial connection to a store cannot be established."""
    kind = "connection"
