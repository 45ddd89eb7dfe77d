# Cereal CRUD logic behind /api/cereal. Routes stay thin: they authenticate,
# call one method here, and shape the HTTP response.

from __future__ import annotations

from pathlib import Path

import structlog
from sqlalchemy.orm import Session

from cereal_api.exceptions import BadRequestError, CerealNotFoundError, NotFoundError
from cereal_api.models import MUTABLE_FIELDS, Cereal
from cereal_api.repositories import CerealRepository
from cereal_api.schemas import CerealFields, CerealPayload, CerealQuery
from cereal_api.services.images import ImageResolver
from cereal_api.services.query_builder import build_conditions, build_ordering, is_known_sort_key

logger = structlog.get_logger(__name__)


def _apply(cereal: Cereal, fields: CerealFields) -> Cereal:
    """Overwrite every mutable attribute; id is never touched."""
    for name in MUTABLE_FIELDS:
        setattr(cereal, name, getattr(fields, name))
    return cereal


class CerealService:
    def __init__(self, session: Session, images: ImageResolver) -> None:
        self._session = session
        self._repository = CerealRepository(session)
        self._images = images

    def search(self, query: CerealQuery) -> list[Cereal]:
        if query.sort_by and not is_known_sort_key(query.sort_by):
            logger.debug("sort_key_unrecognized", sort_by=query.sort_by, fallback="id")

        results = self._repository.search(
            build_conditions(query),
            build_ordering(query.sort_by, query.sort_descending),
        )
        if results:
            logger.info("cereals_listed", count=len(results))
        else:
            logger.info("cereals_listed_empty")
        return results

    def get(self, cereal_id: int) -> Cereal:
        cereal = self._repository.get(cereal_id)
        if cereal is None:
            raise CerealNotFoundError(cereal_id)
        return cereal

    def save(self, payload: CerealPayload) -> tuple[Cereal, bool]:
        """Create (id == 0) or overwrite an existing record. Returns (cereal, created)."""
        if payload.id == 0:
            cereal = self._repository.add(_apply(Cereal(), payload))
            self._session.commit()
            logger.info("cereal_created", cereal_id=cereal.id, name=cereal.name)
            return cereal, True

        existing = self._repository.get(payload.id)
        if existing is None:
            raise BadRequestError(
                f"Cereal with ID {payload.id} does not exist. "
                "ID cannot be chosen manually for creation."
            )
        _apply(existing, payload)
        self._session.commit()
        logger.info("cereal_updated", cereal_id=existing.id, via="post")
        return existing, False

    def update(self, cereal_id: int, payload: CerealPayload) -> Cereal:
        if payload.id != cereal_id:
            raise BadRequestError("Cereal data is invalid or ID mismatch.")

        existing = self.get(cereal_id)
        _apply(existing, payload)
        self._session.commit()
        logger.info("cereal_updated", cereal_id=cereal_id, via="put")
        return existing

    def delete(self, cereal_id: int) -> None:
        cereal = self.get(cereal_id)
        self._repository.remove(cereal)
        self._session.commit()
        logger.info("cereal_deleted", cereal_id=cereal_id)

    def delete_all(self) -> int:
        if self._repository.count() == 0:
            raise NotFoundError("No cereals found in the database.")
        removed = self._repository.remove_all()
        self._session.commit()
        logger.info("cereals_deleted_all", count=removed)
        return removed

    def image(self, cereal_id: int) -> Path:
        """File to serve for a cereal: its own image, else the placeholder."""
        cereal = self.get(cereal_id)
        path = self._images.resolve_with_placeholder(cereal.image_path)
        if path is None:
            logger.warning("cereal_image_missing", cereal_id=cereal_id)
            raise NotFoundError("Image not found.")
        return path
