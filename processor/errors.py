"""Exceptions raised by the dataset tools."""


class DustError(Exception):
    """Base class for dataset tool errors."""


class ConfigurationError(DustError):
    """Fatal configuration problem; the run is aborted and not retried."""


class MissingCredentialError(ConfigurationError):
    """The ingestion API key is not configured."""


class MirrorPathMissingError(ConfigurationError):
    """An output directory that must already exist is missing."""

    def __init__(self, path):
        super().__init__(f"Path must exist: {path}")
        self.path = path


class UpstreamFormatError(DustError):
    """The ingestion API returned a payload of the wrong shape."""
