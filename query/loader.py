"""Sources the query engine reads its collections from."""
import json
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional

import requests

logger = logging.getLogger(__name__)

LIVE_HOST = "https://dust.events"


class BundleLoader:
    """Reads collections bundled with the client, e.g. assets/events.json."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def path(self, name: str) -> Path:
        return self.root / f"{name}.json"

    def load(self, name: str) -> List[Any]:
        path = self.path(name)
        logger.info(f"Reading {path}")
        with open(path, encoding='utf-8') as f:
            return json.load(f)


class LiveLoader:
    """
    Reads the latest published collections when online.

    Falls back to the bundled copy when the connectivity probe fails.
    """

    def __init__(self, dataset: str, bundle: BundleLoader, host: str = LIVE_HOST,
                 timeout: int = 30, is_connected: Optional[Callable[[], bool]] = None):
        """
        Args:
            dataset: Dataset folder, e.g. ttitd-2023
            bundle: Offline fallback
            host: Scheme and host serving published datasets
            timeout: HTTP request timeout in seconds
            is_connected: Connectivity probe; defaults to a HEAD request
                against host
        """
        self.dataset = dataset
        self.bundle = bundle
        self.host = host.rstrip('/')
        self.timeout = timeout
        self.is_connected = is_connected or self._probe

    def url(self, name: str) -> str:
        return f"{self.host}/assets/data-v2/{self.dataset}/{name}.json"

    def load(self, name: str) -> List[Any]:
        if not self.is_connected():
            logger.info(f"Offline, reading bundled {self.dataset} {name}")
            return self.bundle.load(name)

        url = self.url(name)
        logger.info(f"Fetching {url}")
        response = requests.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _probe(self) -> bool:
        try:
            requests.head(self.host, timeout=5)
            return True
        except requests.RequestException:
            return False
