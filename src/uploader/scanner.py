"""Find uploadable screenshots beneath the images root."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from src.api.normalize import normalize_logical_path

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}
IMAGE_EXTENSIONS = frozenset(CONTENT_TYPES)


@dataclass(frozen=True)
class ImageFile:
    path: Path
    logical_path: str
    content_type: str


def discover_images(root: str | Path) -> list[ImageFile]:
    """Return every allow-listed image under ``root``, sorted by logical path."""
    root = Path(root)
    if not root.is_dir():
        logger.warning("Images path %s does not exist or is not a directory; nothing to upload", root)
        return []

    images = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        ext = path.suffix.lower()
        if ext not in IMAGE_EXTENSIONS:
            logger.debug("Ignoring non-image file %s", path)
            continue
        images.append(ImageFile(
            path=path,
            logical_path=normalize_logical_path(path.relative_to(root).as_posix()),
            content_type=CONTENT_TYPES[ext],
        ))

    images.sort(key=lambda img: img.logical_path)
    logger.info("Found %d image(s) under %s", len(images), root)
    return images
