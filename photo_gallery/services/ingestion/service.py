import enum
import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from ...schemas.ingestion import IngestionSummary
from ...utils.file_utils import detect_mime_type
from ..exceptions import (
    FileSystemError,
    ImageDecodeError,
    OversizeError,
    PersistenceError,
    PhotoGalleryError,
)
from ..store import PhotoStore
from .normalizer import ImageNormalizer
from .scanner import scan_directory

logger = logging.getLogger(__name__)


class OutcomeStatus(str, enum.Enum):
    UPLOADED = "uploaded"
    SKIPPED_OVERSIZE = "skipped:oversize"
    SKIPPED_DUPLICATE = "skipped:duplicate"
    ERROR_DECODE = "error:decode"
    ERROR_PERSIST = "error:persist"
    ERROR_FILESYSTEM = "error:filesystem"

    @property
    def is_skip(self) -> bool:
        return self.value.startswith("skipped:")

    @property
    def is_error(self) -> bool:
        return self.value.startswith("error:")


@dataclass
class ItemOutcome:
    """What happened to one candidate file."""
    path: str
    status: OutcomeStatus
    photo_id: Optional[int] = None
    message: str = ""

    @property
    def filename(self) -> str:
        return os.path.basename(self.path)


ProgressCallback = Callable[[int, Optional[int], ItemOutcome], None]


class DuplicateFilter:
    """
    Asks a store whether a (filename, size) pair has already been ingested.

    Query errors propagate as PersistenceError. With `fail_open=True` they
    are logged and the candidate is treated as new, which can insert
    duplicates while the store misbehaves.
    """

    def __init__(self, store: PhotoStore, fail_open: bool = False):
        self.store = store
        self.fail_open = fail_open

    def exists(self, filename: str, byte_size: int) -> bool:
        try:
            return self.store.exists(filename, byte_size, match_source_size=True)
        except PersistenceError as e:
            if not self.fail_open:
                raise
            logger.warning(f"Duplicate check failed, treating '{filename}' as new: {e}")
            return False


class BatchIngestor:
    """
    Pushes image files into a store one at a time.

    Each candidate goes through the size ceiling, the duplicate check, the
    normalizer and finally the insert. A failure only affects its own item;
    the run always reaches the end of the sequence and returns a summary.
    """

    def __init__(
        self,
        store: PhotoStore,
        normalizer: ImageNormalizer,
        max_file_size: int,
        duplicate_filter: Optional[DuplicateFilter] = None,
        batch_size: int = 5,
        on_progress: Optional[ProgressCallback] = None,
        describe_source: bool = True,
    ):
        self.store = store
        self.normalizer = normalizer
        self.max_file_size = max_file_size
        self.duplicate_filter = duplicate_filter or DuplicateFilter(store)
        self.batch_size = max(1, batch_size)
        self.on_progress = on_progress
        self.describe_source = describe_source
        self.outcomes: List[ItemOutcome] = []

    def run(self, paths: Iterable[str], total: Optional[int] = None) -> IngestionSummary:
        """
        Processes every path and returns the run statistics.

        `total` is only used for progress reporting when the caller already
        knows how many candidates there are.
        """
        started_at = datetime.utcnow()
        start = time.monotonic()
        self.outcomes = []

        logger.info(f"Starting ingestion into {self.store.name}")
        for index, path in enumerate(paths, start=1):
            outcome = self.process_file(path)
            self.outcomes.append(outcome)
            self._log_outcome(outcome)

            if self.on_progress:
                self.on_progress(index, total, outcome)
            if index % self.batch_size == 0:
                progress = f"{index}/{total}" if total else str(index)
                logger.info(f"Processed {progress} files")

        summary = self.summarize(self.outcomes, started_at, time.monotonic() - start)
        logger.info(
            f"Ingestion finished: total={summary.total} uploaded={summary.uploaded} "
            f"skipped={summary.skipped} (duplicates={summary.skipped_duplicate}, "
            f"oversize={summary.skipped_oversize}) errors={summary.errors} "
            f"duration={summary.duration_seconds:.2f}s"
        )
        return summary

    def process_file(self, path: str) -> ItemOutcome:
        """Runs one candidate through the pipeline and reports what happened."""
        filename = os.path.basename(path)

        try:
            size = os.stat(path).st_size
        except OSError as e:
            return ItemOutcome(path, OutcomeStatus.ERROR_FILESYSTEM, message=str(FileSystemError(path, e.strerror or str(e))))

        if size > self.max_file_size:
            return ItemOutcome(path, OutcomeStatus.SKIPPED_OVERSIZE, message=str(OversizeError(size, self.max_file_size)))

        try:
            if self.duplicate_filter.exists(filename, size):
                return ItemOutcome(path, OutcomeStatus.SKIPPED_DUPLICATE, message="Already exists")
        except PersistenceError as e:
            return ItemOutcome(path, OutcomeStatus.ERROR_PERSIST, message=str(e))

        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            return ItemOutcome(path, OutcomeStatus.ERROR_FILESYSTEM, message=str(FileSystemError(path, e.strerror or str(e))))

        try:
            image = self.normalizer.normalize(data)
        except ImageDecodeError as e:
            return ItemOutcome(path, OutcomeStatus.ERROR_DECODE, message=str(e))

        mime_type = image.mime_type or detect_mime_type(filename)
        try:
            photo_id = self.store.insert(
                filename=filename,
                content=image.content,
                mime_type=mime_type,
                byte_size=image.byte_size,
                source_size=size,
                width=image.width,
                height=image.height,
                description=f"Uploaded from {path}" if self.describe_source else None,
            )
        except PhotoGalleryError as e:
            return ItemOutcome(path, OutcomeStatus.ERROR_PERSIST, message=str(e))

        return ItemOutcome(path, OutcomeStatus.UPLOADED, photo_id=photo_id)

    @staticmethod
    def summarize(outcomes: List[ItemOutcome], started_at: datetime, duration: float) -> IngestionSummary:
        summary = IngestionSummary(started_at=started_at)
        for outcome in outcomes:
            summary.total += 1
            if outcome.status == OutcomeStatus.UPLOADED:
                summary.uploaded += 1
            elif outcome.status == OutcomeStatus.SKIPPED_DUPLICATE:
                summary.skipped += 1
                summary.skipped_duplicate += 1
            elif outcome.status == OutcomeStatus.SKIPPED_OVERSIZE:
                summary.skipped += 1
                summary.skipped_oversize += 1
            else:
                summary.errors += 1
        summary.duration_seconds = duration
        summary.finished_at = datetime.utcnow()
        summary.last_path = outcomes[-1].path if outcomes else None
        return summary

    def _log_outcome(self, outcome: ItemOutcome) -> None:
        if outcome.status == OutcomeStatus.UPLOADED:
            logger.info(f"Uploaded: {outcome.filename} (ID: {outcome.photo_id})")
        elif outcome.status.is_skip:
            logger.info(f"Skipping {outcome.filename} - {outcome.message}")
        else:
            logger.error(f"Error with {outcome.filename} [{outcome.status.value}]: {outcome.message}")


def ingest_folder(
    store: PhotoStore,
    folder_path: str,
    extensions: Iterable[str],
    max_file_size: int,
    max_width: int,
    max_height: int,
    quality: int = 85,
    batch_size: int = 5,
    on_progress: Optional[ProgressCallback] = None,
) -> IngestionSummary:
    """
    Scans `folder_path` and ingests every matching file into `store`.
    Raises ScanRootError if the folder does not exist.
    """
    paths = list(scan_directory(folder_path, extensions))
    logger.info(f"Found {len(paths)} images to process in {folder_path}")

    ingestor = BatchIngestor(
        store=store,
        normalizer=ImageNormalizer(max_width, max_height, quality),
        max_file_size=max_file_size,
        batch_size=batch_size,
        on_progress=on_progress,
    )
    return ingestor.run(paths, total=len(paths))
