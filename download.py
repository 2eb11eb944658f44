"""Command line entry point for refreshing the bundled datasets."""
import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import typer

from fetcher.dust_api import DustApiClient
from processor.errors import ConfigurationError
from processor.normalizer import Normalizer
from storage.dataset_writer import DatasetWriter
from storage.image_cache import ImageCache


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """JSON lines formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


@dataclass
class Config:
    """Settings read from the environment."""
    key: str
    log_level: str = 'INFO'
    api_base_url: str = DustApiClient.DEFAULT_BASE_URL
    assets_root: Path = Path('./src/assets')
    mirror_root: Path = Path('../dust-web/src/assets/data')
    dataset_name: str = 'ttitd'
    timeout_seconds: int = 30

    @classmethod
    def from_env(cls) -> 'Config':
        return cls(
            key=os.environ.get('DUST_KEY', ''),
            log_level=os.environ.get('LOG_LEVEL', 'INFO'),
            api_base_url=os.environ.get('API_BASE_URL', DustApiClient.DEFAULT_BASE_URL),
            assets_root=Path(os.environ.get('ASSETS_ROOT', './src/assets')),
            mirror_root=Path(os.environ.get('MIRROR_ROOT', '../dust-web/src/assets/data')),
            dataset_name=os.environ.get('DATASET_NAME', 'ttitd'),
            timeout_seconds=int(os.environ.get('TIMEOUT_SECONDS', '30'))
        )


def run(config: Config, years: List[str], convert_images: bool = True) -> Dict[str, Any]:
    """
    Refresh the datasets of the given years.

    Returns:
        Summary with the changed flag per year and the duration

    Raises:
        ConfigurationError: If the key or an output directory is missing
    """
    logger = logging.getLogger(__name__)
    start_time = time.time()

    client = DustApiClient(
        config.key, base_url=config.api_base_url, timeout=config.timeout_seconds
    )
    writer = DatasetWriter(config.assets_root, config.mirror_root)
    image_cache = ImageCache(fetch_bytes=client.fetch_bytes, timeout=config.timeout_seconds)
    normalizer = Normalizer(client, writer, image_cache, dataset_name=config.dataset_name)

    logger.info(f"Processing years {years}", extra={'convert_images': convert_images})
    changed = normalizer.process_years(years, convert_images=convert_images)

    duration = time.time() - start_time
    logger.info(
        "Download completed successfully",
        extra={'duration_seconds': round(duration, 2), 'changed': changed}
    )
    return {'changed': changed, 'duration_seconds': round(duration, 2)}


app = typer.Typer()


@app.command()
def download(
    years: List[str] = typer.Argument(..., help="Years to download, e.g. 2023"),
    convert_images: bool = typer.Option(
        True, '--convert-images/--skip-images',
        help="Download art thumbnails and store them as WebP"
    ),
):
    """Download camps, events and art and update the bundled datasets."""
    config = Config.from_env()
    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    try:
        summary = run(config, years, convert_images)
    except ConfigurationError as e:
        logger.error(f"{e}", extra={'error_type': type(e).__name__})
        raise typer.Exit(code=1)
    except Exception as e:
        logger.error(
            f"Download failed: {e}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        raise typer.Exit(code=1)

    typer.echo(json.dumps(summary))


if __name__ == '__main__':
    app()
