import os

import pytest

from photo_gallery.services.exceptions import PersistenceError, ScanRootError
from photo_gallery.services.ingestion import (
    BatchIngestor,
    DuplicateFilter,
    ImageNormalizer,
    OutcomeStatus,
    ingest_folder,
    scan_directory,
)

EXTENSIONS = [".jpg", ".jpeg", ".png"]
MB = 1024 * 1024


class RecordingNormalizer:
    """Stands in for ImageNormalizer and remembers what it was asked to decode."""

    def __init__(self):
        self.calls = []

    def normalize(self, data):
        self.calls.append(data)
        return ImageNormalizer(10000, 10000).normalize(data)


class BrokenLookupStore:
    """A store whose duplicate query always fails."""
    name = "broken"

    def __init__(self):
        self.inserted = []

    def exists(self, filename, byte_size, match_source_size=False):
        raise PersistenceError("database is locked")

    def insert(self, **kwargs):
        self.inserted.append(kwargs)
        return len(self.inserted)


def _ingestor(store, max_file_size=50 * MB, **kwargs):
    return BatchIngestor(store, ImageNormalizer(1920, 1920), max_file_size=max_file_size, **kwargs)


def _assert_accounting(summary):
    assert summary.uploaded + summary.skipped + summary.errors == summary.total
    assert summary.skipped == summary.skipped_duplicate + summary.skipped_oversize


def test_folder_with_mixed_files(tmp_path, write_image, store):
    a = write_image("photos/a.jpg", 800, 600)
    write_image("photos/b.png", 4000, 3000, fmt="PNG")
    (tmp_path / "photos" / "c.txt").write_text("hello")

    summary = ingest_folder(store, str(tmp_path / "photos"), EXTENSIONS, 50 * MB, 1920, 1920)

    assert (summary.total, summary.uploaded, summary.skipped, summary.errors) == (2, 2, 0, 0)
    _assert_accounting(summary)

    rows = {p.filename: p for p in store.fetch_all()}
    assert set(rows) == {"a.jpg", "b.png"}
    with open(a, "rb") as f:
        assert rows["a.jpg"].content == f.read()
    assert rows["a.jpg"].mime_type == "image/jpeg"
    assert max(rows["b.png"].width, rows["b.png"].height) <= 1920
    assert rows["b.png"].mime_type == "image/jpeg"
    assert rows["b.png"].byte_size == len(rows["b.png"].content)
    assert rows["b.png"].description == f"Uploaded from {os.path.join(str(tmp_path / 'photos'), 'b.png')}"


def test_existing_entity_is_skipped_as_duplicate(tmp_path, write_image, store):
    a = write_image("photos/a.jpg", 800, 600)
    write_image("photos/b.png", 4000, 3000, fmt="PNG")
    with open(a, "rb") as f:
        data = f.read()
    store.insert(filename="a.jpg", content=data, mime_type="image/jpeg")

    ingestor = _ingestor(store)
    summary = ingestor.run(scan_directory(str(tmp_path / "photos"), EXTENSIONS))

    assert summary.skipped_duplicate == 1
    assert summary.uploaded == 1
    statuses = {o.filename: o.status for o in ingestor.outcomes}
    assert statuses == {"a.jpg": OutcomeStatus.SKIPPED_DUPLICATE, "b.png": OutcomeStatus.UPLOADED}
    assert store.count() == 2


def test_second_run_over_same_folder_adds_nothing(tmp_path, write_image, store):
    write_image("photos/small.jpg", 300, 200)
    write_image("photos/nested/large.png", 3000, 2500, fmt="PNG")
    folder = str(tmp_path / "photos")

    first = ingest_folder(store, folder, EXTENSIONS, 50 * MB, 1920, 1920)
    second = ingest_folder(store, folder, EXTENSIONS, 50 * MB, 1920, 1920)

    assert first.uploaded == 2
    assert second.uploaded == 0
    assert second.skipped_duplicate == 2
    assert store.count() == 2


def test_oversize_files_never_reach_the_normalizer(tmp_path, write_image, store):
    big = write_image("photos/big.jpg", 400, 400)
    small = write_image("photos/small.jpg", 8, 8)
    limit = os.path.getsize(big) - 1
    assert os.path.getsize(small) <= limit

    normalizer = RecordingNormalizer()
    ingestor = BatchIngestor(store, normalizer, max_file_size=limit)
    summary = ingestor.run([big, small])

    assert summary.skipped_oversize == 1
    assert summary.uploaded == 1
    assert len(normalizer.calls) == 1
    assert ingestor.outcomes[0].status == OutcomeStatus.SKIPPED_OVERSIZE
    assert "limit" in ingestor.outcomes[0].message


def test_file_exactly_at_limit_is_accepted(write_image, store):
    path = write_image("photos/edge.jpg", 50, 50)
    summary = _ingestor(store, max_file_size=os.path.getsize(path)).run([path])
    assert summary.uploaded == 1


def test_undecodable_file_is_counted_as_error_and_run_continues(tmp_path, write_image, store):
    broken = tmp_path / "photos" / "broken.jpg"
    broken.parent.mkdir(parents=True)
    broken.write_bytes(b"not really a jpeg")
    good = write_image("photos/good.jpg")

    ingestor = _ingestor(store)
    summary = ingestor.run([str(broken), good])

    assert summary.errors == 1
    assert summary.uploaded == 1
    assert ingestor.outcomes[0].status == OutcomeStatus.ERROR_DECODE
    _assert_accounting(summary)


def test_vanished_file_is_a_filesystem_error(tmp_path, store):
    ingestor = _ingestor(store)
    summary = ingestor.run([str(tmp_path / "gone.jpg")])

    assert summary.errors == 1
    assert ingestor.outcomes[0].status == OutcomeStatus.ERROR_FILESYSTEM


def test_insert_failure_is_isolated(write_image, store, monkeypatch):
    first = write_image("photos/one.jpg")
    second = write_image("photos/two.jpg", 30, 30)
    real_insert = store.insert

    def flaky_insert(**kwargs):
        if kwargs["filename"] == "one.jpg":
            raise PersistenceError("disk full")
        return real_insert(**kwargs)

    monkeypatch.setattr(store, "insert", flaky_insert)
    ingestor = _ingestor(store)
    summary = ingestor.run([first, second])

    assert [o.status for o in ingestor.outcomes] == [OutcomeStatus.ERROR_PERSIST, OutcomeStatus.UPLOADED]
    assert summary.errors == 1 and summary.uploaded == 1
    assert store.count() == 1


def test_failed_duplicate_check_does_not_insert(write_image):
    path = write_image("photos/a.jpg")
    broken = BrokenLookupStore()

    ingestor = _ingestor(broken)
    summary = ingestor.run([path])

    assert summary.errors == 1
    assert ingestor.outcomes[0].status == OutcomeStatus.ERROR_PERSIST
    assert broken.inserted == []


def test_fail_open_duplicate_filter_inserts_anyway(write_image):
    path = write_image("photos/a.jpg")
    broken = BrokenLookupStore()

    ingestor = _ingestor(broken, duplicate_filter=DuplicateFilter(broken, fail_open=True))
    summary = ingestor.run([path])

    assert summary.uploaded == 1
    assert len(broken.inserted) == 1


def test_progress_callback_sees_every_item(write_image, store):
    paths = [write_image(f"photos/{i}.jpg", 10 + i, 10) for i in range(3)]
    seen = []

    ingestor = _ingestor(store, on_progress=lambda index, total, outcome: seen.append((index, total, outcome.status)))
    summary = ingestor.run(paths, total=len(paths))

    assert seen == [(1, 3, OutcomeStatus.UPLOADED), (2, 3, OutcomeStatus.UPLOADED), (3, 3, OutcomeStatus.UPLOADED)]
    assert summary.last_path == paths[-1]
    assert summary.finished_at is not None


def test_empty_run_returns_zero_summary(store):
    summary = _ingestor(store).run([])
    assert summary.total == 0
    assert summary.last_path is None
    _assert_accounting(summary)


def test_ingest_folder_rejects_missing_folder(tmp_path, store):
    with pytest.raises(ScanRootError):
        ingest_folder(store, str(tmp_path / "nope"), EXTENSIONS, MB, 100, 100)
