"""Client for the upstream camp/event/art ingestion API."""
import base64
import logging
import time
from typing import Any, Dict, List

import requests

from processor.errors import MissingCredentialError, UpstreamFormatError
from processor.models import DatasetKind

logger = logging.getLogger(__name__)


class DustApiClient:
    """Fetches raw records for one kind and year from the ingestion API."""

    DEFAULT_BASE_URL = "https://api.example.org"
    MAX_RETRIES = 3
    BASE_DELAY = 1  # seconds

    def __init__(self, key: str, base_url: str = DEFAULT_BASE_URL, timeout: int = 30):
        """
        Initialize the API client.

        Args:
            key: API credential, sent base64-encoded as HTTP Basic auth
            base_url: Scheme and host of the ingestion API
            timeout: HTTP request timeout in seconds (default: 30)

        Raises:
            MissingCredentialError: If key is empty
        """
        if not key:
            raise MissingCredentialError("DUST_KEY is not set")
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        token = base64.b64encode(key.encode('utf-8')).decode('ascii')
        self.session.headers['Authorization'] = f"Basic {token}"

    def get_url(self, kind: DatasetKind) -> str:
        return f"{self.base_url}/api/v1/{DatasetKind(kind).value}"

    def fetch_records(self, kind: DatasetKind, year: str) -> List[Dict[str, Any]]:
        """
        Fetch all raw records of a kind for a year.

        Args:
            kind: camp, event or art
            year: Event year, e.g. "2023"

        Returns:
            List of raw record dicts, exactly as sent upstream

        Raises:
            requests.RequestException: If all retry attempts fail
            UpstreamFormatError: If the payload is not a JSON array
        """
        url = self.get_url(kind)
        logger.info(f"Downloading {url}?year={year}...")
        response = self._get_with_retry(url, params={'year': year})
        records = response.json()
        if not isinstance(records, list):
            raise UpstreamFormatError(
                f"Expected a list of {DatasetKind(kind).value} records, "
                f"got {type(records).__name__}"
            )
        logger.info(f"Fetched {len(records)} {DatasetKind(kind).value} records for {year}")
        return records

    def fetch_bytes(self, url: str) -> bytes:
        """Fetch a binary resource such as an image thumbnail."""
        response = requests.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.content

    def _get_with_retry(self, url: str, params: Dict[str, Any]) -> requests.Response:
        """
        GET with exponential backoff between attempts.

        Raises:
            requests.RequestException: If all retry attempts fail
        """
        for attempt in range(self.MAX_RETRIES):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
                response.raise_for_status()
                return response

            except requests.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    delay = self.BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.MAX_RETRIES} retry attempts failed. Last error: {e}"
                    )
                    raise
