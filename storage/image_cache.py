"""Local WebP cache for remote art thumbnails."""
import io
import logging
from pathlib import Path
from typing import Callable, Optional

import requests
from PIL import Image

logger = logging.getLogger(__name__)


class ImageCache:
    """Downloads thumbnails once and stores them re-encoded as WebP."""

    QUALITY = 70

    def __init__(self, fetch_bytes: Optional[Callable[[str], bytes]] = None,
                 timeout: int = 30, quality: int = QUALITY):
        """
        Args:
            fetch_bytes: Callable returning the body for a URL; defaults to a
                plain requests GET
            timeout: HTTP timeout used by the default fetcher
            quality: WebP quality, 0-100
        """
        self.timeout = timeout
        self.quality = quality
        self.fetch_bytes = fetch_bytes or self._fetch

    def cache(self, url: str, destination: Path) -> bool:
        """
        Make sure destination holds a WebP copy of the image at url.

        An existing file is assumed current. Failures are logged and leave
        nothing on disk.

        Returns:
            True if destination is usable, False if the image could not be
            fetched or converted
        """
        destination = Path(destination)
        if destination.exists():
            logger.info(f"{destination.name} exists already")
            return True

        try:
            original = self.fetch_bytes(url)
            converted = self.convert(original)
            destination.write_bytes(converted)
        except Exception as e:
            logger.error(
                f"Error processing image {url}: {e}",
                extra={'error_type': type(e).__name__}
            )
            if destination.exists():
                destination.unlink()
            return False

        ratio = len(original) / len(converted) if converted else 0
        logger.info(
            f"Wrote {destination.name} at {len(converted)} bytes ({int(ratio * 100)}%)"
        )
        return True

    def convert(self, data: bytes) -> bytes:
        """Re-encode image bytes as WebP."""
        with Image.open(io.BytesIO(data)) as image:
            if image.mode not in ('RGB', 'RGBA'):
                image = image.convert('RGBA' if 'A' in image.getbands() else 'RGB')
            out = io.BytesIO()
            image.save(out, format='WEBP', quality=self.quality)
        return out.getvalue()

    def _fetch(self, url: str) -> bytes:
        response = requests.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.content
