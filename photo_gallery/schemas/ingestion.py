from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class IngestionSummary(BaseModel):
    """Statistics of one ingestion run. uploaded + skipped + errors == total."""
    total: int = 0
    uploaded: int = 0
    skipped: int = 0
    skipped_duplicate: int = 0
    skipped_oversize: int = 0
    errors: int = 0
    started_at: datetime
    finished_at: Optional[datetime] = None
    duration_seconds: float = 0.0
    last_path: Optional[str] = Field(None, description="Last path processed, usable to resume an interrupted run.")


class BulkUploadRequest(BaseModel):
    folder_path: str = Field(..., min_length=1, description="Folder on the server to ingest recursively.")


class BulkUploadAccepted(BaseModel):
    success: bool = True
    message: str
    folder: str
    note: str = "Check server logs for progress"
