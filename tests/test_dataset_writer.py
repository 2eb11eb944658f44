"""Unit tests for DatasetWriter."""
import json

import pytest

from processor.errors import MirrorPathMissingError
from storage.dataset_writer import DatasetWriter

FOLDER = 'ttitd-2023'


@pytest.fixture
def roots(tmp_path):
    """Primary and mirror asset roots with the dataset folder in place."""
    root = tmp_path / 'assets'
    mirror = tmp_path / 'mirror'
    (root / FOLDER).mkdir(parents=True)
    (mirror / FOLDER).mkdir(parents=True)
    return root, mirror


@pytest.fixture
def writer(roots):
    return DatasetWriter(*roots)


class TestDatasetWriter:
    """Test cases for DatasetWriter class."""

    def test_serialize_is_compact(self, writer):
        """Test output has no whitespace and keeps unicode."""
        data = writer.serialize([{'uid': '1', 'name': 'Café'}])

        assert data == '[{"uid":"1","name":"Café"}]'

    def test_write_new_collection(self, writer, roots):
        """Test a first write goes to both locations."""
        root, mirror = roots

        changed = writer.write(FOLDER, 'camps', [{'uid': '1'}])

        assert changed is True
        assert (root / FOLDER / 'camps.json').read_text(encoding='utf-8') == '[{"uid":"1"}]'
        assert (mirror / FOLDER / 'camps.json').read_text(encoding='utf-8') == '[{"uid":"1"}]'

    def test_write_unchanged_collection(self, writer, roots):
        """Test identical content is not rewritten."""
        root, mirror = roots
        writer.write(FOLDER, 'camps', [{'uid': '1'}])
        (mirror / FOLDER / 'camps.json').unlink()

        changed = writer.write(FOLDER, 'camps', [{'uid': '1'}])

        assert changed is False
        assert not (mirror / FOLDER / 'camps.json').exists()

    def test_write_changed_collection(self, writer, roots):
        """Test different content replaces the previous file."""
        root, _ = roots
        writer.write(FOLDER, 'camps', [{'uid': '1'}])

        changed = writer.write(FOLDER, 'camps', [{'uid': '1'}, {'uid': '2'}])

        assert changed is True
        assert json.loads((root / FOLDER / 'camps.json').read_text(encoding='utf-8')) == [
            {'uid': '1'}, {'uid': '2'}
        ]

    def test_write_missing_mirror_is_fatal(self, tmp_path):
        """Test a missing mirror folder raises."""
        root = tmp_path / 'assets'
        (root / FOLDER).mkdir(parents=True)
        writer = DatasetWriter(root, tmp_path / 'missing')

        with pytest.raises(MirrorPathMissingError):
            writer.write(FOLDER, 'camps', [{'uid': '1'}])

        assert not (root / FOLDER / 'camps.json').exists()

    def test_bump_revision_from_missing(self, writer, roots):
        """Test a missing revision file starts at revision 1."""
        root, mirror = roots

        assert writer.bump_revision(FOLDER) == 1

        for base in (root, mirror):
            revision = json.loads((base / FOLDER / 'revision.json').read_text(encoding='utf-8'))
            assert revision == {'revision': 1}

    def test_bump_revision_increments(self, writer):
        """Test consecutive bumps increase the counter."""
        writer.bump_revision(FOLDER)
        writer.bump_revision(FOLDER)

        assert writer.read_revision(FOLDER) == 2

    def test_bump_revision_from_corrupt(self, writer, roots):
        """Test an unreadable revision file counts as revision 0."""
        root, _ = roots
        (root / FOLDER / 'revision.json').write_text('{not json', encoding='utf-8')

        assert writer.bump_revision(FOLDER) == 1

    def test_no_temp_files_left(self, writer, roots):
        """Test atomic writes clean up after themselves."""
        root, _ = roots
        writer.write(FOLDER, 'art', [])
        writer.bump_revision(FOLDER)

        assert sorted(p.name for p in (root / FOLDER).iterdir()) == ['art.json', 'revision.json']
