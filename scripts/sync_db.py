#!/usr/bin/env python3
"""
Copy photos from one database into another (e.g. local -> hosted).

Modes:
    replace  empty the destination first, then copy every photo
    merge    keep the destination, copy only photos whose
             (filename, byte_size) is not there yet

Usage:
    python scripts/sync_db.py --mode merge
    python scripts/sync_db.py --source sqlite:///local.db --dest postgresql+psycopg2://... --mode replace --yes
"""

import argparse
import sys
from pathlib import Path

# Allow running from a checkout without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from photo_gallery.core.config import settings
from photo_gallery.core.logging_config import setup_logging
from photo_gallery.schemas.sync import SyncMode
from photo_gallery.services.exceptions import PhotoGalleryError
from photo_gallery.services.store import mask_database_url
from photo_gallery.services.sync import DatabaseSynchronizer
from photo_gallery.utils.console import choose, confirm, console, make_progress, print_results


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronize photos between two databases")
    parser.add_argument("--source", default=settings.SYNC_SOURCE_DATABASE_URL, help="Source database URL")
    parser.add_argument("--dest", default=settings.SYNC_DESTINATION_DATABASE_URL, help="Destination database URL")
    parser.add_argument("--mode", choices=[m.value for m in SyncMode],
                        help="Conflict mode; asked interactively when omitted")
    parser.add_argument("--resume-after-id", type=int, default=None,
                        help="Only copy source photos with an id greater than this")
    parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()

    if not args.source or not args.dest:
        console.print("[red]Both --source and --dest (or SYNC_SOURCE_DATABASE_URL / "
                      "SYNC_DESTINATION_DATABASE_URL in .env) are required.[/red]")
        return 1

    console.print(f"Source:      {mask_database_url(args.source)}")
    console.print(f"Destination: {mask_database_url(args.dest)}")

    mode = args.mode
    if mode is None:
        console.print("1. replace - delete every photo in the destination, then copy all")
        console.print("2. merge   - add only photos the destination does not have")
        mode = choose("Select mode", [m.value for m in SyncMode])
    mode = SyncMode(mode)

    if mode == SyncMode.replace and not confirm("This deletes ALL photos in the destination. Continue?", assume_yes=args.yes):
        console.print("Cancelled by user")
        return 0

    with make_progress() as progress:
        task = progress.add_task("Transferring...", total=None)

        def on_progress(index, total, status):
            progress.update(task, total=total, completed=index, description=status)

        synchronizer = DatabaseSynchronizer(
            args.source,
            args.dest,
            progress_every=settings.SYNC_PROGRESS_EVERY,
            on_progress=on_progress,
        )
        try:
            report = synchronizer.run(mode, resume_after_id=args.resume_after_id)
        except PhotoGalleryError as e:
            console.print(f"[red]Synchronization aborted:[/red] {e}")
            return 1

    print_results("Synchronization results", [
        ("Mode", report.mode.value),
        ("Source photos", report.source_count),
        ("Transferred", report.transferred),
        ("Skipped (duplicates)", report.skipped_duplicates),
        ("Errors", report.errors),
        ("Destination before", report.prior_destination_count),
        ("Destination now", report.final_destination_count),
        ("Last processed id", report.last_processed_id),
        ("Duration (s)", f"{report.duration_seconds:.2f}"),
    ])
    return 0


if __name__ == "__main__":
    sys.exit(main())
