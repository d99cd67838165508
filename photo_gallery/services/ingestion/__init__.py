from .scanner import scan_directory
from .normalizer import ImageNormalizer, NormalizedImage
from .service import BatchIngestor, DuplicateFilter, ItemOutcome, OutcomeStatus, ingest_folder

__all__ = [
    "scan_directory",
    "ImageNormalizer",
    "NormalizedImage",
    "BatchIngestor",
    "DuplicateFilter",
    "ItemOutcome",
    "OutcomeStatus",
    "ingest_folder",
]
