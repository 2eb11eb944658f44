"""Repairs known defects in raw upstream records."""
import copy
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

from processor.models import NormalizeResult, NormalizeRules
from storage.image_cache import ImageCache

logger = logging.getLogger(__name__)

TERMINAL_PUNCTUATION = ('.', '!', '?')
LOCATION_PLACEHOLDER = ' None None'
NO_LOCATION = 'None & None'
NO_DESCRIPTION = 'This theme camp has no description.'

# Upstream-only fields with no client-visible value
PRUNED_FIELDS = (
    'program',
    'donation_link',
    'guided_tours',
    'self_guided_tour_map',
    'contact_email',
    'year',
    'slug',
)
PRUNED_NESTED_FIELDS = {
    'location': ('hour', 'minute', 'distance'),
    'event_type': ('id', 'abbr'),
}

_WORD = re.compile(r'\w\S*')


def to_title_case(text: str) -> str:
    """Capitalize the first letter of each word and lowercase the rest."""
    return _WORD.sub(lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), text)


def is_all_uppercase(text: str) -> bool:
    return text.upper() == text


def fix_sentence(text: str) -> str:
    """End text with terminal punctuation and start it with a capital."""
    if not text:
        return text
    if not text.endswith(TERMINAL_PUNCTUATION):
        text += '.'
    if text[0].upper() != text[0]:
        text = text[0].upper() + text[1:]
    return text


class RecordNormalizer:
    """
    Applies the repair rules to one raw record at a time.

    The raw record is never modified; each call works on a deep copy.
    """

    def __init__(self, rules: NormalizeRules, image_cache: Optional[ImageCache] = None,
                 image_folder: Optional[Path] = None, asset_prefix: str = ''):
        """
        Args:
            rules: Repair switches for the record kind being processed
            image_cache: Used when rules.convert_image is set
            image_folder: Directory the converted images are written to
            asset_prefix: Client-relative path of image_folder, e.g.
                ./assets/ttitd-2023/images
        """
        self.rules = rules
        self.image_cache = image_cache
        self.image_folder = Path(image_folder) if image_folder else None
        self.asset_prefix = asset_prefix.rstrip('/')

    def normalize(self, raw: Dict[str, Any]) -> NormalizeResult:
        record = copy.deepcopy(raw)
        result = NormalizeResult(record=record)

        if self.rules.fix_name:
            self._fix_name(record)
        if self.rules.fix_uid:
            self._fix_uid(record)
        if self.rules.fix_title:
            self._fix_title(record)
        self._drop_empty_values(record)
        self._prune_fields(record)
        self._fix_images(record)
        self._fix_descriptions(record)
        if self.rules.fix_location:
            result.invalid = self._fix_location(record) or result.invalid
        if self.rules.fix_occurrence:
            result.invalid = self._fix_occurrence(record) or result.invalid

        return result

    def _label(self, record: Dict[str, Any]) -> str:
        return str(record.get('title') or record.get('name') or record.get('uid'))

    def _fix_name(self, record: Dict[str, Any]) -> None:
        name = record.get('name')
        if name is None:
            return
        if not isinstance(name, str):
            name = str(name)
            logger.warning(f"Replaced invalid name {name}")
        if is_all_uppercase(name):
            name = to_title_case(name)
        record['name'] = name

    def _fix_uid(self, record: Dict[str, Any]) -> None:
        if record.get('event_id') is None:
            logger.warning(f"{self._label(record)} has no event_id, keeping uid {record.get('uid')}")
            record.pop('event_id', None)
            return
        record['uid'] = str(record.pop('event_id'))

    def _fix_title(self, record: Dict[str, Any]) -> None:
        title = record.get('title')
        if isinstance(title, str) and is_all_uppercase(title):
            record['title'] = to_title_case(title)

    def _drop_empty_values(self, record: Dict[str, Any]) -> None:
        for key in ('all_day', 'located_at_art', 'url'):
            if key in record and record[key] is None:
                del record[key]
        if 'other_location' in record and not record['other_location']:
            del record['other_location']
        if 'check_location' in record and record['check_location'] in (0, None):
            del record['check_location']

    def _prune_fields(self, record: Dict[str, Any]) -> None:
        for key in PRUNED_FIELDS:
            record.pop(key, None)
        for parent, keys in PRUNED_NESTED_FIELDS.items():
            nested = record.get(parent)
            if isinstance(nested, dict):
                for key in keys:
                    nested.pop(key, None)

    def _fix_images(self, record: Dict[str, Any]) -> None:
        for image in record.get('images') or []:
            image.pop('gallery_ref', None)
            if not self.rules.convert_image or self.image_cache is None:
                continue
            url = image.get('thumbnail_url')
            if not url:
                continue
            filename = f"{record['uid']}.webp"
            if self.image_cache.cache(url, self.image_folder / filename):
                image['thumbnail_url'] = f"{self.asset_prefix}/{filename}"
            else:
                logger.warning(f"Kept remote thumbnail for {self._label(record)}")

    def _fix_descriptions(self, record: Dict[str, Any]) -> None:
        for key in ('description', 'print_description'):
            text = record.get(key)
            if not text:
                continue
            fixed = fix_sentence(text)
            if fixed != text:
                record[key] = fixed
                logger.warning(f"Fixed punctuation of {key} of {self._label(record)}")

    def _fix_location(self, record: Dict[str, Any]) -> bool:
        """Returns True if the record has too little data to display."""
        location_string = record.get('location_string') or ''
        if location_string.endswith(LOCATION_PLACEHOLDER):
            location_string = location_string[:-len(LOCATION_PLACEHOLDER)]
            nested = record.get('location')
            if isinstance(nested, dict) and isinstance(nested.get('string'), str):
                nested['string'] = nested['string'].replace(LOCATION_PLACEHOLDER, '')
            logger.warning(f"Fixed location {self._label(record)} to {location_string}")
        record['location_string'] = location_string

        if location_string == NO_LOCATION:
            if not record.get('description'):
                logger.warning(
                    f"Camp {self._label(record)} has no description or location and will be removed"
                )
                return True
        elif not record.get('description'):
            record['description'] = NO_DESCRIPTION
            logger.warning(f"Camp {self._label(record)} has no description")
        return False

    def _fix_occurrence(self, record: Dict[str, Any]) -> bool:
        """Returns True if the event has no times and cannot be scheduled."""
        occurrences = record.get('occurrence_set') or []
        scheduled = [o for o in occurrences if isinstance(o, dict) and o.get('start_time')]
        if len(scheduled) != len(occurrences):
            logger.warning(f"Dropped occurrences without start_time from {self._label(record)}")
            record['occurrence_set'] = scheduled
        if not scheduled:
            logger.warning(
                f"{self._label(record)} has invalid occurrence_set and event was removed."
            )
            record['occurrence_set'] = []
            return True
        return False
