import logging
import time
from datetime import datetime
from typing import Callable, List, Optional, Union

from ...models import Photo
from ...schemas.sync import SyncMode, SyncReport
from ..exceptions import PersistenceError, PhotoGalleryError
from ..store import PhotoStore

logger = logging.getLogger(__name__)

SyncProgressCallback = Callable[[int, int, str], None]


def transfer_photos(
    rows: List[Photo],
    destination: PhotoStore,
    mode: SyncMode,
    report: SyncReport,
    progress_every: int = 10,
    on_progress: Optional[SyncProgressCallback] = None,
) -> SyncReport:
    """
    Replays `rows` into `destination` in ascending id order.

    In MERGE mode rows whose (filename, byte_size) already exist are skipped.
    A row that fails is logged and counted; the loop always continues.
    """
    rows = sorted(rows, key=lambda p: p.id)
    total = len(rows)

    for index, photo in enumerate(rows, start=1):
        byte_size = photo.byte_size if photo.byte_size is not None else len(photo.content)
        status = "transferred"
        try:
            if mode == SyncMode.merge and destination.exists(photo.filename, byte_size):
                report.skipped_duplicates += 1
                status = "skipped"
            else:
                destination.insert(
                    filename=photo.filename,
                    content=photo.content,
                    mime_type=photo.mime_type or "image/jpeg",
                    byte_size=byte_size,
                    source_size=photo.source_size,
                    width=photo.width,
                    height=photo.height,
                    description=photo.description,
                    tags=photo.tags,
                    created_at=photo.created_at,
                    updated_at=photo.updated_at or photo.created_at,
                )
                report.transferred += 1
        except PhotoGalleryError as e:
            logger.error(f"Error with \"{photo.filename}\" (id {photo.id}): {e}")
            report.errors += 1
            status = "error"

        report.last_processed_id = photo.id
        if on_progress:
            on_progress(index, total, status)
        if index % progress_every == 0 or index == total:
            logger.info(f"Progress: {index}/{total} ({index / total * 100:.1f}%)")

    return report


class DatabaseSynchronizer:
    """
    Copies every photo from a source database into a destination database.

    The run goes through: connect source, connect destination, fetch source
    rows, (REPLACE only) clear destination, transfer, report, close. Any
    failure before the transfer aborts the run and releases the connections;
    failures during the transfer only cost the affected row.
    """

    def __init__(
        self,
        source_url: str,
        destination_url: str,
        progress_every: int = 10,
        on_progress: Optional[SyncProgressCallback] = None,
        connect: Callable[..., PhotoStore] = PhotoStore.connect,
    ):
        self.source_url = source_url
        self.destination_url = destination_url
        self.progress_every = max(1, progress_every)
        self.on_progress = on_progress
        self._connect = connect

    def run(self, mode: Union[SyncMode, str], resume_after_id: Optional[int] = None) -> SyncReport:
        mode = SyncMode(mode)
        report = SyncReport(mode=mode, started_at=datetime.utcnow())
        start = time.monotonic()

        source: Optional[PhotoStore] = None
        destination: Optional[PhotoStore] = None
        try:
            source = self._connect(self.source_url, name="source")
            destination = self._connect(self.destination_url, name="destination")

            rows = source.fetch_all(after_id=resume_after_id)
            report.source_count = len(rows)
            logger.info(f"Found {report.source_count} photos in source")

            report.prior_destination_count = self._safe_count(destination)
            logger.info(f"Destination currently holds {report.prior_destination_count} photos")

            if mode == SyncMode.replace:
                destination.clear()
                # Everything that was there is gone; MERGE-style accounting starts from zero.
                report.prior_destination_count = 0

            logger.info(f"Transferring photos ({mode.value} mode)...")
            transfer_photos(
                rows,
                destination,
                mode,
                report,
                progress_every=self.progress_every,
                on_progress=self.on_progress,
            )

            report.final_destination_count = self._safe_count(destination)
        finally:
            for store in (destination, source):
                if store is not None:
                    store.close()

        report.finished_at = datetime.utcnow()
        report.duration_seconds = time.monotonic() - start
        logger.info(
            f"Sync finished: source={report.source_count} transferred={report.transferred} "
            f"skipped_duplicates={report.skipped_duplicates} errors={report.errors} "
            f"destination_total={report.final_destination_count}"
        )
        return report

    @staticmethod
    def _safe_count(store: PhotoStore) -> Optional[int]:
        try:
            return store.count()
        except PersistenceError as e:
            logger.warning(f"Could not count photos in {store.name}: {e}")
            return None
