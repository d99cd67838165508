"""
This file makes the 'schemas' directory a Python package and exposes key schemas
for easier importing.
"""
from .photo import (
    PhotoRead, PhotoUpdate, PhotoUploadResponse, Pagination,
    PaginatedPhotoResponse, PhotoSearchResponse,
)
from .ingestion import IngestionSummary, BulkUploadRequest, BulkUploadAccepted
from .sync import SyncMode, SyncReport
