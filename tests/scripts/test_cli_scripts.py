import runpy
from pathlib import Path

import pytest

from photo_gallery.services.store import PhotoStore

SCRIPTS_DIR = Path(__file__).resolve().parents[2] / "scripts"


@pytest.fixture(scope="module")
def bulk_upload_main():
    return runpy.run_path(str(SCRIPTS_DIR / "bulk_upload.py"))["main"]


@pytest.fixture(scope="module")
def sync_db_main():
    return runpy.run_path(str(SCRIPTS_DIR / "sync_db.py"))["main"]


def _seed(store, count):
    for i in range(count):
        store.insert(filename=f"seed_{i}.jpg", content=bytes([i]) * (50 + i), mime_type="image/jpeg")


def _photos(url):
    with PhotoStore.connect(url) as store:
        return [(p.filename, p.description) for p in store.fetch_all()]


def test_replace_over_empty_folder_keeps_existing_photos(bulk_upload_main, store_factory, db_url, tmp_path):
    store = store_factory("cli")
    _seed(store, 3)
    store.close()
    empty = tmp_path / "empty"
    empty.mkdir()

    rc = bulk_upload_main([str(empty), "--database-url", db_url("cli"), "--mode", "replace", "--yes"])

    assert rc == 0
    assert len(_photos(db_url("cli"))) == 3


def test_replace_swaps_in_folder_contents(bulk_upload_main, store_factory, db_url, write_image, tmp_path):
    store = store_factory("cli")
    _seed(store, 2)
    store.close()
    first = write_image("photos/one.jpg")
    write_image("photos/sub/two.png", fmt="PNG")

    rc = bulk_upload_main([str(tmp_path / "photos"), "--database-url", db_url("cli"), "--mode", "replace", "--yes"])

    assert rc == 0
    photos = dict(_photos(db_url("cli")))
    assert set(photos) == {"one.jpg", "two.png"}
    assert photos["one.jpg"] == f"Uploaded from {first}"


def test_add_mode_skips_duplicates_and_can_omit_description(bulk_upload_main, db_url, write_image, tmp_path):
    write_image("photos/one.jpg")
    args = [str(tmp_path / "photos"), "--database-url", db_url("cli"), "--no-description"]

    assert bulk_upload_main(args) == 0
    assert bulk_upload_main(args) == 0

    assert _photos(db_url("cli")) == [("one.jpg", None)]


def test_bulk_upload_missing_folder_fails(bulk_upload_main, db_url, tmp_path):
    rc = bulk_upload_main([str(tmp_path / "nope"), "--database-url", db_url("cli")])
    assert rc == 1


def test_sync_merge_copies_missing_photos(sync_db_main, store_factory, db_url):
    source = store_factory("source")
    destination = store_factory("destination")
    _seed(source, 3)
    destination.insert(filename="seed_0.jpg", content=bytes([0]) * 50, mime_type="image/jpeg")
    source.close()
    destination.close()

    rc = sync_db_main(["--source", db_url("source"), "--dest", db_url("destination"), "--mode", "merge", "--yes"])

    assert rc == 0
    assert sorted(name for name, _ in _photos(db_url("destination"))) == ["seed_0.jpg", "seed_1.jpg", "seed_2.jpg"]


def test_sync_replace_with_yes(sync_db_main, store_factory, db_url):
    source = store_factory("source")
    destination = store_factory("destination")
    _seed(source, 2)
    destination.insert(filename="old.jpg", content=b"old", mime_type="image/jpeg")
    source.close()
    destination.close()

    rc = sync_db_main(["--source", db_url("source"), "--dest", db_url("destination"), "--mode", "replace", "--yes"])

    assert rc == 0
    assert [name for name, _ in _photos(db_url("destination"))] == ["seed_0.jpg", "seed_1.jpg"]


def test_sync_unreachable_destination_fails(sync_db_main, store_factory, db_url, tmp_path):
    store_factory("source").close()
    bad_url = f"sqlite:///{tmp_path / 'missing-dir' / 'db.sqlite'}"

    rc = sync_db_main(["--source", db_url("source"), "--dest", bad_url, "--mode", "merge", "--yes"])
    assert rc == 1
