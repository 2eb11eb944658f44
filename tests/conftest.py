"""Shared fixtures for the query engine tests."""
import json

import pytest

from query.engine import QueryEngine
from query.loader import BundleLoader


@pytest.fixture
def dataset():
    """A small normalized dataset, as written by the Normalizer."""
    return {
        'camps': [
            {'uid': '1', 'name': 'Zebra Art Camp', 'description': 'Stripes.',
             'location_string': '9:00 & A'},
            {'uid': '2', 'name': 'artichoke lounge', 'description': '',
             'location_string': '4:30 & K'},
            {'uid': '3', 'name': 'Ghost Camp', 'description': '', 'location_string': ''},
            {'uid': '4', 'name': 'Écurie', 'description': 'Horses.', 'location_string': ''},
        ],
        'art': [
            {'uid': '70', 'name': 'The Temple', 'description': 'Remember.',
             'images': [{'thumbnail_url': './assets/ttitd-2023/images/70.webp'}]},
            {'uid': '71', 'name': 'Big Art Duck', 'description': 'Quack.', 'images': []},
        ],
        'events': [
            {'uid': '100', 'title': 'Sunrise Yoga', 'description': 'Stretch with us.',
             'print_description': 'Stretch with us', 'hosted_by_camp': '1',
             'other_location': 'Deep Playa',
             'occurrence_set': [
                 {'start_time': '2023-08-28T19:00:00-07:00', 'end_time': '2023-08-28T21:00:00-07:00'},
                 {'start_time': '2023-08-30T12:00:00-07:00', 'end_time': '2023-08-30T12:30:00-07:00'},
             ]},
            {'uid': '101', 'title': 'Late Dance', 'description': 'All night DISCO.',
             'print_description': 'All night disco!', 'other_location': 'Center Camp',
             'occurrence_set': [
                 {'start_time': '2023-08-28T23:30:00-07:00', 'end_time': '2023-08-29T00:30:00-07:00'},
             ]},
            {'uid': '102', 'title': 'Duck Parade', 'description': 'Waddle.',
             'print_description': 'Waddle.', 'located_at_art': '71',
             'occurrence_set': [
                 {'start_time': '2023-08-31T00:00:00-07:00', 'end_time': '2023-08-31T02:00:00-07:00'},
             ]},
            {'uid': '103', 'title': 'Lost Event', 'description': 'Somewhere.',
             'print_description': 'Somewhere.',
             'occurrence_set': [
                 {'start_time': '2023-08-29T10:00:00-07:00', 'end_time': '2023-08-29T10:45:00-07:00'},
             ]},
        ],
    }


@pytest.fixture
def bundle(tmp_path, dataset):
    """Dataset written to disk the way the client bundles it."""
    for name, records in dataset.items():
        (tmp_path / f"{name}.json").write_text(json.dumps(records), encoding='utf-8')
    return BundleLoader(tmp_path)


@pytest.fixture
def engine(bundle):
    """Populated engine."""
    engine = QueryEngine(bundle)
    engine.populate()
    return engine
