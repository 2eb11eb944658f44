"""Cross-entity lookups used to resolve where events happen."""
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from processor.models import Art, Camp, Event


@dataclass
class Index:
    """uid lookups for camp names, camp locations and art names."""
    camp_names: Dict[str, str] = field(default_factory=dict)
    camp_locations: Dict[str, str] = field(default_factory=dict)
    art_names: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(cls, camps: Iterable[Camp], art: Iterable[Art]) -> 'Index':
        index = cls()
        for camp in camps:
            index.camp_names[camp.uid] = camp.name
            index.camp_locations[camp.uid] = camp.location_string
        for piece in art:
            index.art_names[piece.uid] = piece.name
        return index

    def resolve(self, event: Event) -> Optional[Tuple[str, str]]:
        """
        Find the (camp, location) display pair of an event.

        Hosting camp wins over an explicit other location, which wins over
        an art piece. A reference that is not indexed falls through to the
        next rule. Returns None if nothing resolves.
        """
        if event.hosted_by_camp and event.hosted_by_camp in self.camp_names:
            return (self.camp_names[event.hosted_by_camp],
                    self.camp_locations[event.hosted_by_camp])
        if event.other_location:
            return event.other_location, ''
        if event.located_at_art and event.located_at_art in self.art_names:
            return self.art_names[event.located_at_art], ''
        return None
