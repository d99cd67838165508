import enum
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class SyncMode(str, enum.Enum):
    replace = "replace"
    merge = "merge"


class SyncReport(BaseModel):
    """Result of one synchronization run between two stores."""
    mode: SyncMode
    source_count: int = 0
    transferred: int = 0
    skipped_duplicates: int = 0
    errors: int = 0
    prior_destination_count: Optional[int] = None
    final_destination_count: Optional[int] = None
    last_processed_id: Optional[int] = None
    started_at: datetime
    finished_at: Optional[datetime] = None
    duration_seconds: float = 0.0
