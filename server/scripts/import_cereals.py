#!/usr/bin/env python3
"""Import the cereal CSV feed into the database without starting the server.

Usage:
    # Default settings (DATABASE_URL / SEED_CSV_PATH / IMAGES_DIR from env):
    uv run python scripts/import_cereals.py

    # Explicit paths:
    uv run python scripts/import_cereals.py --csv data/cereal.csv \\
        --images data/images --database-url sqlite:///cereal.db

Same rules as the startup import: two header lines are skipped, rows with
the wrong column count are ignored, names already stored are not duplicated
(their image path is filled in if it was missing).

Idempotent: running it twice adds nothing the second time.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from cereal_api.config import get_settings
from cereal_api.db import Database
from cereal_api.logging_config import configure_logging
from cereal_api.services.importer import CerealImporter


def main() -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument(
        "--csv",
        default=settings.seed_csv_path,
        help=f"Semicolon-delimited feed (default: {settings.seed_csv_path})",
    )
    parser.add_argument(
        "--images",
        default=settings.images_dir,
        help=f"Directory scanned for <name>.jpg/.jpeg/.png (default: {settings.images_dir})",
    )
    parser.add_argument(
        "--database-url",
        default=settings.database_url,
        help="SQLAlchemy URL (default: DATABASE_URL)",
    )
    args = parser.parse_args()

    configure_logging(log_level=settings.log_level, json_output=False)

    csv_path = settings.resolve_path(args.csv)
    if not csv_path.is_file():
        print(f"❌ CSV file not found: {csv_path}")
        sys.exit(1)

    database = Database(args.database_url)
    database.create_all()

    try:
        with database.session() as session:
            importer = CerealImporter(
                session,
                images_dir=settings.resolve_path(args.images),
                stored_images_dir=Path(args.images).as_posix(),
            )
            result = importer.import_file(csv_path)
    finally:
        database.dispose()

    # ── Summary ──────────────────────────────────────────────────────────
    print(f"\n{'─' * 60}")
    print(f"  Source:        {csv_path}")
    print(f"  Added:         {result.added}")
    print(f"  Images filled: {result.image_updated}")
    print(f"  Duplicates:    {result.duplicates}")
    print(f"  Malformed:     {result.malformed}")
    print(f"  Failed:        {result.failed}")
    print(f"{'─' * 60}\n")

    if result.failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
