"""
Preference Store

Keeps the review priorities each repository has declared in a single
JSON file. The whole mapping is loaded on every read and rewritten on
every save; concurrent writers from separate processes are last-write-wins.
"""

import json
import os
import logging
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError

from ..models.preferences import PreferenceRecord


logger = logging.getLogger(__name__)


class PreferenceStoreError(Exception):
    """Backing preferences file is unreadable or malformed"""


class PreferenceStore:
    """
    File-backed mapping of ``"owner/name"`` to review priorities.

    File format::

        {
          "owner/name": {
            "priorities": "cost, security"
          }
        }
    """

    def __init__(self, path: str):
        """
        Initialize preference store.

        Args:
            path: Location of the JSON preferences file
        """
        self.path = Path(path)
        self._write_lock = threading.Lock()

    def load_all(self) -> Dict[str, PreferenceRecord]:
        """
        Load every preference record.

        Returns:
            Mapping of repository key to record; empty when the file is missing

        Raises:
            PreferenceStoreError: When the file content is malformed
        """
        if not self.path.exists():
            return {}

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PreferenceStoreError(f"Cannot read preferences from {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise PreferenceStoreError(f"Preferences file {self.path} must contain a JSON object")

        records = {}
        for key, value in data.items():
            if not isinstance(value, dict):
                raise PreferenceStoreError(f"Invalid preference record for {key!r}")
            try:
                records[key] = PreferenceRecord(**value)
            except ValidationError as e:
                raise PreferenceStoreError(f"Invalid preference record for {key!r}: {e}") from e

        return records

    def get(self, key: str) -> Optional[str]:
        """
        Get the review priorities for a repository.

        Args:
            key: Repository key (``"owner/name"``)

        Returns:
            Priorities text, or None when the repository has no review configured
        """
        record = self.load_all().get(key)
        if record is None:
            return None
        return record.priorities

    def set(self, key: str, priorities: str) -> None:
        """
        Create or overwrite the priorities for a repository.

        Args:
            key: Repository key (``"owner/name"``)
            priorities: Free-text review priorities
        """
        with self._write_lock:
            records = self.load_all()
            records[key] = PreferenceRecord(priorities=priorities)
            self._save_all(records)

        logger.info(f"Saved review preferences for {key}")

    def _save_all(self, records: Dict[str, PreferenceRecord]) -> None:
        data = {key: record.model_dump() for key, record in records.items()}
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(prefix='.preferences-', suffix='.json', dir=str(directory))
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise PreferenceStoreError(f"Cannot write preferences to {self.path}: {e}") from e
