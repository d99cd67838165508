#!/usr/bin/env python3
"""
Bulk-load a folder of photos into the database.

The folder is scanned recursively; every image is checked against the size
ceiling and for duplicates, shrunk if it exceeds the bounds, and inserted.

Usage:
    python scripts/bulk_upload.py "D:/my_photos"
    python scripts/bulk_upload.py ~/Pictures --mode replace --yes
"""

import argparse
import sys
from pathlib import Path

# Allow running from a checkout without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from photo_gallery.core.config import settings
from photo_gallery.core.logging_config import setup_logging
from photo_gallery.services.exceptions import PersistenceError, ScanRootError, StoreConnectionError
from photo_gallery.services.ingestion import BatchIngestor, ImageNormalizer, OutcomeStatus, scan_directory
from photo_gallery.services.store import PhotoStore
from photo_gallery.utils.console import confirm, console, make_progress, print_results


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bulk-load a folder of photos into the database")
    parser.add_argument("folder", nargs="?", default=settings.BULK_DEFAULT_FOLDER, help="Folder to scan recursively")
    parser.add_argument("--database-url", help="Target database (defaults to the application database)")
    parser.add_argument("--mode", choices=["add", "replace"], default="add",
                        help="add: skip duplicates (default); replace: delete every photo first")
    parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    parser.add_argument("--max-size-mb", type=int, default=settings.BULK_MAX_FILE_SIZE_MB)
    parser.add_argument("--max-width", type=int, default=settings.BULK_MAX_WIDTH)
    parser.add_argument("--max-height", type=int, default=settings.BULK_MAX_HEIGHT)
    parser.add_argument("--quality", type=int, default=settings.JPEG_QUALITY)
    parser.add_argument("--no-description", action="store_true",
                        help="Do not record the source path as the photo description")
    parser.add_argument("--batch-size", type=int, default=settings.BULK_PROGRESS_BATCH_SIZE,
                        help="Log a progress line every N files")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()

    try:
        paths = scan_directory(args.folder, settings.BULK_SCRIPT_ALLOWED_EXTENSIONS)
    except ScanRootError as e:
        console.print(f"[red]Folder does not exist:[/red] {e}")
        return 1

    database_url = args.database_url or settings.DATABASE_URL
    try:
        store = PhotoStore.connect(database_url, name="database", create_schema=True)
    except StoreConnectionError as e:
        console.print(f"[red]Database connection failed:[/red] {e}")
        console.print("Check that the database is running and the connection settings are correct.")
        return 1

    with store:
        current = store.count()
        console.print(f"Folder: {args.folder}")
        console.print(f"Photos currently in the database: {current}")

        console.print("Scanning for photos...")
        files = list(paths)
        if not files:
            console.print("[yellow]No images found![/yellow]")
            console.print("Supported formats: " + ", ".join(settings.BULK_SCRIPT_ALLOWED_EXTENSIONS))
            return 0
        console.print(f"Found {len(files)} images")

        # Only clear once there is something to import.
        if args.mode == "replace":
            question = f"This deletes ALL {current} existing photos and imports {len(files)} new ones. Continue?"
            if not confirm(question, assume_yes=args.yes):
                console.print("Cancelled by user")
                return 0
            try:
                store.clear()
            except PersistenceError as e:
                console.print(f"[red]Could not clear the photos table:[/red] {e}")
                return 1

        with make_progress() as progress:
            task = progress.add_task("Uploading...", total=len(files))

            def on_progress(index, total, outcome):
                progress.update(task, advance=1, description=outcome.filename)
                if outcome.status.is_error:
                    progress.console.print(f"[red]Error with \"{outcome.filename}\":[/red] {outcome.message}")

            ingestor = BatchIngestor(
                store=store,
                normalizer=ImageNormalizer(args.max_width, args.max_height, args.quality),
                max_file_size=args.max_size_mb * 1024 * 1024,
                batch_size=args.batch_size,
                on_progress=on_progress,
                describe_source=not args.no_description,
            )
            summary = ingestor.run(files, total=len(files))

        print_results("Upload results", [
            ("Files found", summary.total),
            ("Uploaded", summary.uploaded),
            ("Skipped (duplicates)", summary.skipped_duplicate),
            ("Skipped (too large)", summary.skipped_oversize),
            ("Errors", summary.errors),
            ("Duration (s)", f"{summary.duration_seconds:.2f}"),
            ("Photos in database", store.count()),
        ])

        failed = [o for o in ingestor.outcomes if o.status.is_error]
        decode_failures = sum(1 for o in failed if o.status == OutcomeStatus.ERROR_DECODE)
        if decode_failures:
            console.print(f"{decode_failures} file(s) could not be decoded as images.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
