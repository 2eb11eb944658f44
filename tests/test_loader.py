"""Unit tests for the dataset loaders."""
import pytest
import responses
from requests.exceptions import HTTPError

from query.loader import BundleLoader, LiveLoader

LIVE_URL = "https://dust.events/assets/data-v2/ttitd-2023/camps.json"


class TestBundleLoader:
    """Test cases for BundleLoader class."""

    def test_load(self, bundle, dataset):
        assert bundle.load('camps') == dataset['camps']

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            BundleLoader(tmp_path).load('events')


class TestLiveLoader:
    """Test cases for LiveLoader class."""

    @responses.activate
    def test_load_online(self, bundle):
        """Test the published copy is used when connected."""
        responses.add(responses.GET, LIVE_URL, json=[{'uid': 'live'}], status=200)
        loader = LiveLoader('ttitd-2023', bundle, is_connected=lambda: True)

        assert loader.load('camps') == [{'uid': 'live'}]

    def test_load_offline(self, bundle, dataset):
        """Test the bundled copy is used when offline."""
        loader = LiveLoader('ttitd-2023', bundle, is_connected=lambda: False)

        assert loader.load('camps') == dataset['camps']

    @responses.activate
    def test_load_online_error(self, bundle):
        """Test HTTP errors from the live host propagate."""
        responses.add(responses.GET, LIVE_URL, body="Not Found", status=404)
        loader = LiveLoader('ttitd-2023', bundle, is_connected=lambda: True)

        with pytest.raises(HTTPError):
            loader.load('camps')

    @responses.activate
    def test_default_probe(self, bundle):
        """Test the default probe checks the live host."""
        responses.add(responses.HEAD, "https://dust.events", status=200)
        responses.add(responses.GET, LIVE_URL, json=[], status=200)

        assert LiveLoader('ttitd-2023', bundle).load('camps') == []

    @responses.activate
    def test_default_probe_unreachable(self, bundle, dataset):
        """Test an unreachable host counts as offline."""
        loader = LiveLoader('ttitd-2023', bundle)

        assert loader.load('camps') == dataset['camps']
