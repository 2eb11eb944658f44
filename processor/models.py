"""Data models for dataset normalization and querying."""
import logging
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class DatasetKind(str, Enum):
    """Upstream record collections."""
    CAMP = 'camp'
    EVENT = 'event'
    ART = 'art'


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp as sent by the ingestion API."""
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    return datetime.fromisoformat(value)


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class Occurrence:
    """One concrete start/end time of an event."""
    start_time: str
    end_time: str

    @property
    def start(self) -> datetime:
        return parse_timestamp(self.start_time)

    @property
    def end(self) -> datetime:
        return parse_timestamp(self.end_time)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Occurrence':
        start_time = data['start_time']
        return cls(
            start_time=start_time,
            end_time=data.get('end_time') or start_time
        )


@dataclass
class Image:
    """Art thumbnail; ready is UI state and never persisted."""
    thumbnail_url: str
    ready: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Image':
        return cls(thumbnail_url=data.get('thumbnail_url', ''))


@dataclass
class Event:
    """Normalized event with display fields derived at load time."""
    uid: str
    title: str
    name: str = ''
    description: str = ''
    print_description: str = ''
    hosted_by_camp: Optional[str] = None
    other_location: Optional[str] = None
    located_at_art: Optional[str] = None
    occurrence_set: List[Occurrence] = field(default_factory=list)
    all_day: Optional[bool] = None
    check_location: Optional[int] = None
    url: Optional[str] = None
    event_type: Optional[Dict[str, Any]] = None
    camp: str = ''
    location: str = ''
    time_string: str = ''
    long_time_string: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Event':
        title = data.get('title') or ''
        return cls(
            uid=str(data['uid']),
            title=title,
            name=data.get('name') or title,
            description=data.get('description') or '',
            print_description=data.get('print_description') or '',
            hosted_by_camp=_optional_str(data.get('hosted_by_camp')),
            other_location=data.get('other_location'),
            located_at_art=_optional_str(data.get('located_at_art')),
            occurrence_set=_occurrences(data),
            all_day=data.get('all_day'),
            check_location=data.get('check_location'),
            url=data.get('url'),
            event_type=data.get('event_type')
        )


def _occurrences(data: Dict[str, Any]) -> List[Occurrence]:
    occurrences = []
    for entry in data.get('occurrence_set') or []:
        if not isinstance(entry, dict) or not entry.get('start_time'):
            logger.warning(f"Skipped occurrence without start_time in event {data.get('uid')}")
            continue
        occurrences.append(Occurrence.from_dict(entry))
    return occurrences


@dataclass
class Camp:
    """Normalized theme camp."""
    uid: str
    name: str
    description: str = ''
    location_string: str = ''
    location: Optional[Dict[str, Any]] = None
    hometown: Optional[str] = None
    landmark: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Camp':
        return cls(
            uid=str(data['uid']),
            name=str(data.get('name') or ''),
            description=data.get('description') or '',
            location_string=data.get('location_string') or '',
            location=data.get('location'),
            hometown=data.get('hometown'),
            landmark=data.get('landmark'),
            url=data.get('url')
        )


@dataclass
class Art:
    """Normalized art installation."""
    uid: str
    name: str
    description: str = ''
    location_string: str = ''
    location: Optional[Dict[str, Any]] = None
    images: List[Image] = field(default_factory=list)
    artist: Optional[str] = None
    hometown: Optional[str] = None
    contact_email: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Art':
        return cls(
            uid=str(data['uid']),
            name=str(data.get('name') or ''),
            description=data.get('description') or '',
            location_string=data.get('location_string') or '',
            location=data.get('location'),
            images=[Image.from_dict(i) for i in data.get('images') or []],
            artist=data.get('artist'),
            hometown=data.get('hometown'),
            contact_email=data.get('contact_email'),
            url=data.get('url')
        )


@dataclass
class Day:
    """Calendar day on which at least one occurrence starts or ends."""
    name: str
    date: date
    today: bool = False


@dataclass(frozen=True)
class Dataset:
    """A (name, year) pair identifying one published dataset."""
    name: str
    year: str

    def filename(self) -> str:
        """Folder stem used on disk and on the live host, e.g. ttitd-2023."""
        return f"{self.name.lower()}-{self.year.lower()}"


@dataclass(frozen=True)
class NormalizeRules:
    """Independent repair switches; each kind only uses the ones it needs."""
    fix_name: bool = False
    fix_uid: bool = False
    fix_title: bool = False
    fix_location: bool = False
    fix_occurrence: bool = False
    convert_image: bool = False

    @classmethod
    def from_options(cls, **options: bool) -> 'NormalizeRules':
        """Build rules from keyword switches, ignoring unknown names."""
        known = {f.name for f in fields(cls)}
        for name in options.keys() - known:
            logger.debug(f"Ignoring unknown normalize rule '{name}'")
        return cls(**{k: bool(v) for k, v in options.items() if k in known})


@dataclass
class NormalizeResult:
    """Outcome of normalizing one raw record."""
    record: Dict[str, Any]
    invalid: bool = False
