"""Unit tests for DustApiClient."""
import base64
from unittest.mock import patch

import pytest
import responses
from requests.exceptions import RequestException, Timeout

from fetcher.dust_api import DustApiClient
from processor.errors import MissingCredentialError, UpstreamFormatError
from processor.models import DatasetKind

CAMP_URL = "https://api.example.org/api/v1/camp"


@pytest.fixture(autouse=True)
def no_sleep():
    """Skip retry backoff delays."""
    with patch('fetcher.dust_api.time.sleep') as sleep:
        yield sleep


class TestDustApiClient:
    """Test cases for DustApiClient class."""

    def test_missing_key(self):
        """Test a client cannot be built without a key."""
        with pytest.raises(MissingCredentialError):
            DustApiClient('')

    @responses.activate
    def test_fetch_records_success(self):
        """Test records are returned with year and auth sent."""
        responses.add(
            responses.GET,
            CAMP_URL,
            json=[{'uid': '1', 'name': 'Camp One'}],
            status=200
        )

        client = DustApiClient('user:secret')
        records = client.fetch_records(DatasetKind.CAMP, '2023')

        assert records == [{'uid': '1', 'name': 'Camp One'}]
        request = responses.calls[0].request
        assert request.url == f"{CAMP_URL}?year=2023"
        expected = base64.b64encode(b'user:secret').decode('ascii')
        assert request.headers['Authorization'] == f"Basic {expected}"

    @responses.activate
    def test_fetch_records_with_retry_success(self, no_sleep):
        """Test retry logic succeeds after initial failures."""
        responses.add(responses.GET, CAMP_URL, body="Server Error", status=500)
        responses.add(responses.GET, CAMP_URL, body="Server Error", status=500)
        responses.add(responses.GET, CAMP_URL, json=[], status=200)

        records = DustApiClient('key').fetch_records(DatasetKind.CAMP, '2023')

        assert records == []
        assert len(responses.calls) == 3
        assert [c.args[0] for c in no_sleep.call_args_list] == [1, 2]

    @responses.activate
    def test_fetch_records_all_retries_fail(self):
        """Test that exception is raised when all retries fail."""
        for _ in range(3):
            responses.add(responses.GET, CAMP_URL, body="Server Error", status=500)

        with pytest.raises(RequestException):
            DustApiClient('key').fetch_records(DatasetKind.CAMP, '2023')

        assert len(responses.calls) == 3

    @responses.activate
    def test_fetch_records_timeout(self):
        """Test timeout handling."""
        for _ in range(3):
            responses.add(responses.GET, CAMP_URL, body=Timeout("Request timed out"))

        with pytest.raises(Timeout):
            DustApiClient('key').fetch_records(DatasetKind.CAMP, '2023')

    @responses.activate
    def test_fetch_records_rejects_non_list(self):
        """Test an object payload is a format error."""
        responses.add(responses.GET, CAMP_URL, json={'error': 'nope'}, status=200)

        with pytest.raises(UpstreamFormatError):
            DustApiClient('key').fetch_records(DatasetKind.CAMP, '2023')

    def test_get_url_per_kind(self):
        """Test each kind maps to its endpoint."""
        client = DustApiClient('key', base_url='https://api.example.org/')

        assert client.get_url(DatasetKind.EVENT) == "https://api.example.org/api/v1/event"
        assert client.get_url('art') == "https://api.example.org/api/v1/art"

    @responses.activate
    def test_fetch_bytes(self):
        """Test binary content is returned as is."""
        responses.add(responses.GET, "https://img.example.org/1.jpg", body=b'\x89PNG', status=200)

        assert DustApiClient('key').fetch_bytes("https://img.example.org/1.jpg") == b'\x89PNG'
