# Image lookup by extension probing + MIME detection.
# A miss is None, never an exception; callers chain fallbacks.

from __future__ import annotations

from pathlib import Path

import structlog

from cereal_api.config import Settings

logger = structlog.get_logger(__name__)

IMAGE_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png")

_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


def find_existing_image(base: Path) -> Path | None:
    """Return the first existing file for base, probing known extensions.

    A path that already carries a suffix is tried as-is first; names such as
    "Mr. Crunch" look suffixed, so probing still follows a miss.
    """
    if base.suffix and base.is_file():
        return base
    for ext in IMAGE_EXTENSIONS:
        candidate = base.with_name(base.name + ext)
        if candidate.is_file():
            return candidate
    return None


def find_image_for_name(images_dir: Path, name: str) -> Path | None:
    """Probe <images_dir>/<name>.jpg|.jpeg|.png (case-sensitive name)."""
    for ext in IMAGE_EXTENSIONS:
        candidate = images_dir / f"{name}{ext}"
        if candidate.is_file():
            return candidate
    return None


def mime_type_for(path: Path) -> str:
    return _MIME_TYPES.get(path.suffix.lower(), "application/octet-stream")


class ImageResolver:
    """Resolves stored image paths (relative to the content root) to files."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @property
    def placeholder_base(self) -> Path:
        return self._settings.resolve_path(self._settings.placeholder_image)

    @property
    def content_root(self) -> Path:
        return Path(self._settings.content_root).resolve()

    def resolve(self, image_path: str | None) -> Path | None:
        """Locate the file for a stored image path, or None.

        A file that resolves outside the content root counts as missing.
        """
        if not image_path:
            return None
        found = find_existing_image(self._settings.resolve_path(image_path))
        if found is None:
            logger.debug("image_not_found", image_path=image_path)
            return None
        if not found.resolve().is_relative_to(self.content_root):
            logger.warning("image_path_outside_content_root", image_path=image_path)
            return None
        return found

    def resolve_with_placeholder(self, image_path: str | None) -> Path | None:
        """Record image if present, else the placeholder, else None."""
        found = self.resolve(image_path)
        if found is not None:
            return found
        placeholder = find_existing_image(self.placeholder_base)
        if placeholder is not None:
            logger.debug("image_placeholder_used", image_path=image_path)
        return placeholder
