"""In-memory query engine over one loaded dataset."""
import copy
import logging
import unicodedata
from datetime import date
from enum import Enum
from typing import Any, List, Optional, Protocol, Sequence, Set

from processor.models import Art, Camp, Day, Event
from processor.record_normalizer import TERMINAL_PUNCTUATION
from processor.time_formatter import DayLike, TimeFormatter
from query.index import Index

logger = logging.getLogger(__name__)

WEEKDAYS = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')


class Loader(Protocol):
    def load(self, name: str) -> List[Any]: ...


class Command(str, Enum):
    """Requests the engine answers across the worker boundary."""
    POPULATE = 'populate'
    GET_DAYS = 'getDays'
    GET_EVENTS = 'getEvents'
    FIND_ARTS = 'findArts'
    FIND_ART = 'findArt'
    FIND_EVENTS = 'findEvents'
    FIND_CAMPS = 'findCamps'
    FIND_EVENT = 'findEvent'
    FIND_CAMP = 'findCamp'
    GET_CAMPS = 'getCamps'


HANDLERS = {
    Command.POPULATE: 'populate',
    Command.GET_DAYS: 'get_days',
    Command.GET_EVENTS: 'get_events',
    Command.FIND_ARTS: 'find_arts',
    Command.FIND_ART: 'find_art',
    Command.FIND_EVENTS: 'find_events',
    Command.FIND_CAMPS: 'find_camps',
    Command.FIND_EVENT: 'find_event',
    Command.FIND_CAMP: 'find_camp',
    Command.GET_CAMPS: 'get_camps',
}


def name_key(name: str) -> str:
    """Sort key ignoring case and accents."""
    decomposed = unicodedata.normalize('NFKD', name)
    return ''.join(c for c in decomposed if not unicodedata.combining(c)).casefold()


class QueryEngine:
    """
    Holds events, camps and art and answers queries about them.

    populate() must run before any query; until then every query sees empty
    collections. Records returned to callers are copies, so callers can
    never change the engine's state.
    """

    def __init__(self, loader: Loader, formatter: Optional[TimeFormatter] = None):
        self.loader = loader
        self.formatter = formatter or TimeFormatter()
        self.events: List[Event] = []
        self.camps: List[Camp] = []
        self.art: List[Art] = []
        self.days: Set[date] = set()

    def do_work(self, method: str, args: Sequence[Any] = ()) -> Any:
        """Dispatch a named command; unknown names are logged and answer None."""
        try:
            command = Command(method)
        except ValueError:
            logger.warning(f"Unknown method {method}")
            return None
        return getattr(self, HANDLERS[command])(*args)

    def populate(self) -> int:
        """
        Load all collections and rebuild every derived field.

        Returns:
            Number of events plus number of camps
        """
        self.events = [Event.from_dict(r) for r in self.loader.load('events')]
        camps = [Camp.from_dict(r) for r in self.loader.load('camps')]
        self.camps = [c for c in camps if c.description or c.location_string]
        self.camps.sort(key=lambda c: name_key(c.name))
        self.art = [Art.from_dict(r) for r in self.loader.load('art')]
        self.art.sort(key=lambda a: name_key(a.name))
        self._init()
        logger.info(
            f"Populated {len(self.events)} events, {len(self.camps)} camps "
            f"and {len(self.art)} art"
        )
        return len(self.events) + len(self.camps)

    def _init(self) -> None:
        index = Index.build(self.camps, self.art)
        self.days = set()
        for event in self.events:
            resolved = index.resolve(event)
            if resolved:
                event.camp, event.location = resolved
            else:
                logger.warning(f"No location for event {event.uid} {event.title}")
            if event.print_description and not event.print_description.endswith(TERMINAL_PUNCTUATION):
                event.print_description += '.'
            event.time_string = self.formatter.time_string(event.occurrence_set)
            event.long_time_string = self.formatter.time_string(event.occurrence_set, long=True)
            for occurrence in event.occurrence_set:
                self.days.add(self.formatter.local_date(occurrence.start))
                self.days.add(self.formatter.local_date(occurrence.end))

    def get_days(self) -> List[Day]:
        return [Day(name=WEEKDAYS[d.weekday()], date=d) for d in sorted(self.days)]

    def get_events(self, offset: int, count: int) -> List[Event]:
        return copy.deepcopy(self.events[offset:offset + count])

    def get_camps(self, offset: int, count: int) -> List[Camp]:
        return copy.deepcopy(self.camps[offset:offset + count])

    def find_event(self, uid: str) -> Optional[Event]:
        for event in self.events:
            if event.uid == str(uid):
                return copy.deepcopy(event)
        return None

    def find_camp(self, uid: str) -> Optional[Camp]:
        for camp in self.camps:
            if camp.uid == str(uid):
                return copy.deepcopy(camp)
        return None

    def find_art(self, uid: str) -> Optional[Art]:
        """Look up art by uid; its images start out not ready."""
        for piece in self.art:
            if piece.uid == str(uid):
                for image in piece.images:
                    image.ready = False
                return copy.deepcopy(piece)
        return None

    def find_events(self, query: str, day: Optional[DayLike] = None) -> List[Event]:
        """
        Events whose name or description contains query, optionally on a day.

        The returned copies carry a time string for the matching occurrence
        on that day; the stored events keep their day-independent one.
        """
        terms = (query or '').lower()
        result = []
        for event in self.events:
            if self._contains(terms, event) and self._on_day(day, event):
                match = copy.deepcopy(event)
                match.time_string = self.formatter.time_string(event.occurrence_set, day)
                result.append(match)
        return result

    def find_camps(self, query: str) -> List[Camp]:
        terms = (query or '').lower()
        return [copy.deepcopy(c) for c in self.camps if terms in c.name.lower()]

    def find_arts(self, query: Optional[str] = None) -> List[Art]:
        terms = (query or '').lower()
        return [copy.deepcopy(a) for a in self.art if not terms or terms in a.name.lower()]

    def mark_today(self, days: List[Day], now: DayLike) -> List[Day]:
        """Flag the day that is today, e.g. when the app resumes."""
        for day in days:
            day.today = self.formatter.same_day(day.date, now)
        return days

    def choose_default_day(self, days: List[Day], now: DayLike) -> Optional[Day]:
        """Today's Day if the event is running, else None for all days."""
        for day in days:
            if self.formatter.same_day(day.date, now):
                return day
        return None

    def _contains(self, terms: str, event: Event) -> bool:
        return (terms == '' or
                terms in event.name.lower() or
                terms in event.description.lower())

    def _on_day(self, day: Optional[DayLike], event: Event) -> bool:
        if day is None:
            return True
        for occurrence in event.occurrence_set:
            if (self.formatter.same_day(occurrence.start, day) or
                    self.formatter.same_day(occurrence.end, day)):
                return True
        return False
