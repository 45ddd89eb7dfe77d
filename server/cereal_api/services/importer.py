# Seed import: semicolon-delimited cereal feed → Cereal rows.
#
# Feed layout: two header lines, then 16 columns per row:
#   Name;Mfr;Type;Calories;Protein;Fat;Sodium;Fiber;Carbo;Sugars;Potass;
#   Vitamins;Shelf;Weight;Cups;Rating
#
# Idempotent by exact name: re-running only fills in missing image paths.

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from pathlib import Path

import structlog
from sqlalchemy.orm import Session

from cereal_api.config import Settings
from cereal_api.db import Database
from cereal_api.models import Cereal
from cereal_api.repositories import CerealRepository
from cereal_api.services.images import find_image_for_name

logger = structlog.get_logger(__name__)

HEADER_LINES = 2
EXPECTED_COLUMNS = 16
DELIMITER = ";"
RATING_SCALE_DIVISOR = 20  # 0-100 feed scale → 0-5 stars


@dataclass
class ImportResult:
    added: int = 0
    image_updated: int = 0
    duplicates: int = 0
    malformed: int = 0
    failed: int = 0

    @property
    def changed(self) -> bool:
        return self.added > 0 or self.image_updated > 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def repair_decimal(raw: str) -> float:
    """Parse a decimal whose thousands grouping leaked in as extra dots.

    The first '.' is the decimal point; every later '.' is dropped:
    "93.704.912" -> 93.704912.
    """
    head, dot, tail = raw.strip().partition(".")
    return float(head + dot + tail.replace(".", ""))


def rescale_rating(raw: str) -> float:
    """Repair, then map the 0-100 rating onto 0-5 with two decimals."""
    return round(repair_decimal(raw) / RATING_SCALE_DIVISOR, 2)


def parse_row(columns: list[str], image_path: str | None = None) -> Cereal:
    """Build an unsaved Cereal from one 16-column row. Raises ValueError."""
    name = columns[0].strip()
    if not name:
        raise ValueError("empty cereal name")
    return Cereal(
        name=name,
        mfr=columns[1].strip(),
        type=columns[2].strip(),
        calories=int(columns[3]),
        protein=int(columns[4]),
        fat=int(columns[5]),
        sodium=int(columns[6]),
        fiber=repair_decimal(columns[7]),
        carbohydrates=repair_decimal(columns[8]),
        sugars=int(columns[9]),
        potassium=max(int(columns[10]), 0),
        vitamins=int(columns[11]),
        shelf=int(columns[12]),
        weight=repair_decimal(columns[13]),
        cups=repair_decimal(columns[14]),
        rating=rescale_rating(columns[15]),
        image_path=image_path,
    )


class CerealImporter:
    """Imports feed rows into the session, committing once at the end."""

    def __init__(self, session: Session, images_dir: Path, stored_images_dir: str) -> None:
        self._session = session
        self._repository = CerealRepository(session)
        self._images_dir = images_dir
        # Prefix persisted in image_path (kept relative so the DB is portable).
        self._stored_images_dir = stored_images_dir

    def import_file(self, path: Path) -> ImportResult:
        logger.info("import_started", path=str(path))
        with path.open(encoding="utf-8-sig") as handle:
            lines = handle.read().splitlines()
        return self.import_lines(lines)

    def import_lines(self, lines: Iterable[str]) -> ImportResult:
        result = ImportResult()
        batch: dict[str, Cereal] = {}

        for line_no, line in enumerate(lines, start=1):
            if line_no <= HEADER_LINES:
                continue

            columns = line.split(DELIMITER)
            if len(columns) != EXPECTED_COLUMNS:
                result.malformed += 1
                logger.warning(
                    "import_row_malformed",
                    line=line_no,
                    columns=len(columns),
                    content=line[:200],
                )
                continue

            name = columns[0].strip()
            image_path = self._image_path_for(name) if name else None

            existing = batch.get(name) or (self._repository.get_by_name(name) if name else None)
            if existing is not None:
                if existing.image_path is None and image_path is not None:
                    existing.image_path = image_path
                    result.image_updated += 1
                    logger.debug("import_image_path_filled", name=name, image_path=image_path)
                else:
                    result.duplicates += 1
                continue

            try:
                cereal = parse_row(columns, image_path)
            except ValueError as exc:
                result.failed += 1
                logger.warning("import_row_failed", line=line_no, name=name, error=str(exc))
                continue

            self._session.add(cereal)
            batch[name] = cereal
            result.added += 1

        if result.changed:
            self._session.commit()
            logger.info("import_complete", **result.to_dict())
        else:
            logger.info("import_nothing_to_do", **result.to_dict())
        return result

    def _image_path_for(self, name: str) -> str | None:
        found = find_image_for_name(self._images_dir, name)
        if found is None:
            return None
        return (Path(self._stored_images_dir) / found.name).as_posix()


def run_seed_import(database: Database, settings: Settings) -> ImportResult | None:
    """Import the configured seed feed. Missing feed → logged, returns None."""
    csv_path = settings.resolve_path(settings.seed_csv_path)
    if not csv_path.is_file():
        logger.warning("import_seed_missing", path=str(csv_path))
        return None

    with database.session() as session:
        importer = CerealImporter(
            session,
            images_dir=settings.resolve_path(settings.images_dir),
            stored_images_dir=settings.images_dir,
        )
        return importer.import_file(csv_path)
