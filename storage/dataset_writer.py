"""Writes normalized collections to the primary and mirrored asset folders."""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List

from processor.errors import MirrorPathMissingError

logger = logging.getLogger(__name__)


class DatasetWriter:
    """Persists collections only when their serialized content changes."""

    REVISION_FILE = 'revision.json'

    def __init__(self, root: Path, mirror_root: Path):
        """
        Args:
            root: Primary assets directory, holding one folder per dataset
            mirror_root: Second assets directory kept byte-identical to root
        """
        self.root = Path(root)
        self.mirror_root = Path(mirror_root)
        logger.info(f"Initialized DatasetWriter for {self.root} (mirror {self.mirror_root})")

    def serialize(self, records: List[Dict[str, Any]]) -> str:
        return json.dumps(records, separators=(',', ':'), ensure_ascii=False)

    def path(self, folder: str, filename: str) -> Path:
        return self.root / folder / f"{filename}.json"

    def has_changed(self, folder: str, filename: str, data: str) -> bool:
        """
        Compare serialized data with the primary copy on disk.

        A missing file counts as changed.
        """
        path = self.path(folder, filename)
        if not path.exists():
            logger.info(f"{path} is missing.")
            return True
        return path.read_text(encoding='utf-8') != data

    def write(self, folder: str, filename: str, records: List[Dict[str, Any]]) -> bool:
        """
        Serialize and save records if they differ from the previous run.

        Returns:
            True if the collection changed and was written

        Raises:
            MirrorPathMissingError: If either destination folder is missing
        """
        data = self.serialize(records)
        if not self.has_changed(folder, filename, data):
            logger.info(f"No changes in {folder} {filename}")
            return False
        self._save(folder, f"{filename}.json", data)
        return True

    def read_revision(self, folder: str) -> int:
        """Current revision; a missing or unreadable file is revision 0."""
        path = self.root / folder / self.REVISION_FILE
        if not path.exists():
            return 0
        try:
            return int(json.loads(path.read_text(encoding='utf-8'))['revision'])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring corrupt revision file {path}: {e}")
            return 0

    def bump_revision(self, folder: str) -> int:
        """Increment and persist the revision counter of a dataset folder."""
        revision = self.read_revision(folder) + 1
        self._save(folder, self.REVISION_FILE, json.dumps({'revision': revision}, indent=2))
        logger.info(f"Dataset {folder} is now at revision {revision}")
        return revision

    def _save(self, folder: str, name: str, data: str) -> None:
        for base in (self.root, self.mirror_root):
            directory = base / folder
            if not directory.is_dir():
                raise MirrorPathMissingError(directory)

        for base in (self.root, self.mirror_root):
            path = base / folder / name
            self._atomic_write(path, data)
            logger.info(f'Wrote "{path}"')

    def _atomic_write(self, path: Path, data: str) -> None:
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(data)
            os.replace(tmp, path)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
