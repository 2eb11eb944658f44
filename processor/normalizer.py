"""Downloads, repairs and persists one dataset kind at a time."""
import logging
from typing import Any, Dict, List, Optional, Tuple

from fetcher.dust_api import DustApiClient
from processor.errors import MirrorPathMissingError
from processor.models import Dataset, DatasetKind, NormalizeRules
from processor.record_normalizer import RecordNormalizer
from storage.dataset_writer import DatasetWriter
from storage.image_cache import ImageCache

logger = logging.getLogger(__name__)


def uid_sort_key(record: Dict[str, Any]) -> Tuple[int, int, str]:
    """Order numeric uids numerically, and any others after them by text."""
    uid = str(record.get('uid', ''))
    try:
        return (0, int(uid), '')
    except ValueError:
        return (1, 0, uid)


class Normalizer:
    """Runs the ingestion pass for every kind of every requested year."""

    def __init__(self, client: DustApiClient, writer: DatasetWriter,
                 image_cache: Optional[ImageCache] = None, dataset_name: str = 'ttitd'):
        self.client = client
        self.writer = writer
        self.image_cache = image_cache or ImageCache(fetch_bytes=client.fetch_bytes)
        self.dataset_name = dataset_name

    def normalize(self, kind: DatasetKind, year: str, output_name: str,
                  folder: str, rules: NormalizeRules) -> bool:
        """
        Fetch, repair and persist one collection.

        Args:
            kind: Upstream collection to download
            year: Event year
            output_name: File stem of the collection, e.g. "camps"
            folder: Dataset folder, e.g. "ttitd-2023"
            rules: Repair switches for this kind

        Returns:
            True if the persisted collection changed
        """
        raw_records = self.client.fetch_records(kind, year)

        image_folder = self.writer.root / folder / 'images'
        if rules.convert_image:
            if not image_folder.parent.is_dir():
                raise MirrorPathMissingError(image_folder.parent)
            image_folder.mkdir(exist_ok=True)
        record_normalizer = RecordNormalizer(
            rules,
            image_cache=self.image_cache,
            image_folder=image_folder,
            asset_prefix=f"./assets/{folder}/images"
        )

        results = [record_normalizer.normalize(raw) for raw in raw_records]
        results.sort(key=lambda result: uid_sort_key(result.record))
        records: List[Dict[str, Any]] = [r.record for r in results if not r.invalid]

        logger.info(
            f"Normalized {len(records)} valid {DatasetKind(kind).value} records out of "
            f"{len(raw_records)} total records",
            extra={'year': year, 'folder': folder}
        )
        return self.writer.write(folder, output_name, records)

    def process_year(self, year: str, convert_images: bool = True) -> bool:
        """
        Refresh camps, events and art for a year.

        Returns:
            True if any collection changed and the revision was bumped
        """
        folder = Dataset(self.dataset_name, year).filename()
        logger.info(f"Downloading {year}")

        camps_changed = self.normalize(
            DatasetKind.CAMP, year, 'camps', folder,
            NormalizeRules(fix_name=True, fix_location=True)
        )
        events_changed = self.normalize(
            DatasetKind.EVENT, year, 'events', folder,
            NormalizeRules(fix_occurrence=True, fix_title=True, fix_uid=True)
        )
        art_changed = self.normalize(
            DatasetKind.ART, year, 'art', folder,
            NormalizeRules(fix_name=True, convert_image=convert_images)
        )

        if camps_changed or events_changed or art_changed:
            self.writer.bump_revision(folder)
            return True
        return False

    def process_years(self, years: List[str], convert_images: bool = True) -> Dict[str, bool]:
        """Process years one after another; returns changed flag per year."""
        return {year: self.process_year(year, convert_images) for year in years}
