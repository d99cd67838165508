"""Photo Gallery API: blob-backed photo storage, bulk ingestion and store synchronization."""

__version__ = "1.0.0"
