import logging
import os
from typing import Iterable, Iterator

from ...utils.file_utils import get_file_extension, normalize_extensions
from ..exceptions import FileSystemError, ScanRootError

logger = logging.getLogger(__name__)


def scan_directory(root: str, extensions: Iterable[str]) -> Iterator[str]:
    """
    Lists image files under `root` whose extension is in `extensions`.

    The root is validated immediately; ScanRootError is raised here rather
    than on first iteration. The returned iterator is lazy and can only be
    consumed once. It yields absolute paths, depth-first, entries of each
    directory in name order, files before subdirectories.
    """
    root = os.path.abspath(root)
    if not os.path.exists(root):
        raise ScanRootError(root, "folder does not exist")
    if not os.path.isdir(root):
        raise ScanRootError(root, "not a directory")

    return _walk(root, normalize_extensions(extensions))


def _walk(root: str, allowed: frozenset) -> Iterator[str]:
    # Pending directories; popping from the end gives depth-first order.
    pending = [root]
    visited = set()

    while pending:
        current = pending.pop()

        try:
            stat = os.stat(current)
        except OSError as e:
            _log_skip(current, e)
            continue
        key = (stat.st_dev, stat.st_ino)
        if key in visited:
            logger.warning(f"Skipping {current}: already scanned (symlink cycle)")
            continue
        visited.add(key)

        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            _log_skip(current, e)
            continue

        subdirs = []
        for entry in entries:
            try:
                if entry.is_dir():
                    subdirs.append(entry.path)
                elif entry.is_file() and get_file_extension(entry.name) in allowed:
                    yield entry.path
            except OSError as e:
                _log_skip(entry.path, e)

        # Reversed so the first subdirectory by name is scanned first.
        pending.extend(reversed(subdirs))


def _log_skip(path: str, error: OSError) -> None:
    err = FileSystemError(path, error.strerror or str(error))
    logger.error(f"Error scanning {err}")
