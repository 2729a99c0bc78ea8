"""Product image download and collision-safe storage."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Union

from .agents.base import AgentError, FetchAgent
from .urls import file_extension

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_NAME = "unnamed"
UNCATEGORIZED = "uncategorized"
MAX_FILENAME_LENGTH = 101

_UNSAFE_CHARS_RE = re.compile(r"[^\w\s-]")
_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_filename(name: Optional[str]) -> str:
    """Keep word characters, whitespace and hyphens; whitespace becomes '_'.

    >>> sanitize_filename("Alice's <Book> #1!")
    'Alices_Book_1'
    """
    if not name:
        return PLACEHOLDER_NAME
    cleaned = _UNSAFE_CHARS_RE.sub("", name)
    cleaned = _WHITESPACE_RE.sub("_", cleaned)
    return cleaned[:MAX_FILENAME_LENGTH] or PLACEHOLDER_NAME


class ImageAcquirer:
    """Download product images into media_dir/<category>/<name><ext>."""

    def __init__(
        self,
        agent: FetchAgent,
        media_dir: Union[str, Path],
        *,
        max_collisions: int = 1000,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.agent = agent
        self.media_dir = Path(media_dir)
        self.max_collisions = max(1, int(max_collisions))
        self.logger = logger or LOGGER

    def acquire(self, image_url: Optional[str], product_name: str, category: str) -> str:
        """Store the image and return its path relative to media_dir.

        Returns an empty string on any failure; never raises.
        """
        if not image_url:
            return ""

        self.logger.info("Starting image download: %s", image_url)
        try:
            category_dir = sanitize_filename(category or UNCATEGORIZED)
            target_dir = self.media_dir / category_dir
            target_dir.mkdir(parents=True, exist_ok=True)

            extension = file_extension(image_url)
            base_name = sanitize_filename(product_name)

            data = self.agent.download(image_url)
            if not data:
                self.logger.error("Failed to download image from %s: empty response", image_url)
                return ""

            path = self._write_unique(target_dir, base_name, extension, data)
            if path is None:
                return ""
        except AgentError as exc:
            self.logger.error("Failed to download image from %s - %s", image_url, exc)
            return ""
        except OSError as exc:
            self.logger.error("Error saving image from %s - %s", image_url, exc)
            return ""
        except Exception:
            self.logger.error("Unexpected error acquiring image %s", image_url, exc_info=True)
            return ""

        relative = Path(category_dir, path.name).as_posix()
        self.logger.info("Image saved - %s (%d bytes)", relative, len(data))
        return relative

    def _write_unique(self, directory: Path, base_name: str, extension: str, data: bytes) -> Optional[Path]:
        """Create base_name<ext>, then base_name_1<ext>, ... with exclusive create."""
        for counter in range(self.max_collisions + 1):
            suffix = f"_{counter}" if counter else ""
            path = directory / f"{base_name}{suffix}{extension}"
            try:
                handle = path.open("xb")
            except FileExistsError:
                continue
            try:
                with handle:
                    handle.write(data)
            except Exception:
                # Release the name so a later product can claim it
                path.unlink(missing_ok=True)
                raise
            if counter:
                self.logger.debug("File name taken, stored as %s", path.name)
            return path

        self.logger.error(
            "No free file name for %s%s in %s after %d attempts",
            base_name,
            extension,
            directory,
            self.max_collisions + 1,
        )
        return None
