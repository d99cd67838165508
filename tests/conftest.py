import io
import os
import tempfile

import pytest
from PIL import Image

# The application engine is built at import time from the environment.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="photo_gallery_tests_")
os.environ.setdefault("SQLITE_DATABASE_URL", f"sqlite:///{_TEST_DB_DIR}/app.db")

from photo_gallery.services.store import PhotoStore  # noqa: E402


def make_image_bytes(width=64, height=48, fmt="JPEG", mode="RGB", color=(200, 30, 30)):
    if mode == "RGBA" and len(color) == 3:
        color = color + (128,)
    img = Image.new(mode, (width, height), color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def image_bytes():
    return make_image_bytes


@pytest.fixture
def write_image(tmp_path):
    """Writes an image file under tmp_path and returns its path as a string."""

    def _write(relative_path, width=64, height=48, fmt="JPEG", mode="RGB"):
        path = tmp_path / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(make_image_bytes(width, height, fmt, mode))
        return str(path)

    return _write


@pytest.fixture
def db_url(tmp_path):
    def _url(name):
        return f"sqlite:///{tmp_path / (name + '.db')}"

    return _url


@pytest.fixture
def store_factory(db_url):
    """Opens scratch SQLite stores that are closed when the test ends."""
    opened = []

    def _open(name="store"):
        store = PhotoStore.connect(db_url(name), name=name, create_schema=True)
        opened.append(store)
        return store

    yield _open
    for store in opened:
        store.close()


@pytest.fixture
def store(store_factory):
    return store_factory("gallery")
