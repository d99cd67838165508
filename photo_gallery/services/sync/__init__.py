from .service import DatabaseSynchronizer, transfer_photos

__all__ = ["DatabaseSynchronizer", "transfer_photos"]
