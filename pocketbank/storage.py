"""
Snapshot storage.

The whole state (transactions, deposits, profile) is loaded once at startup and
rewritten after every mutating call. Backends only need ``load`` and ``save``.
"""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .models import Snapshot


class StorageError(Exception):
    pass


class SnapshotStorage(ABC):
    @abstractmethod
    def load(self) -> Optional[Snapshot]:
        """Return the last saved snapshot, or None if nothing was saved yet."""

    @abstractmethod
    def save(self, snapshot: Snapshot) -> None:
        """
        Persist the snapshot durably.

        Raises:
            StorageError: If the write did not complete
        """


class InMemorySnapshotStorage(SnapshotStorage):
    def __init__(self, snapshot: Optional[Snapshot] = None):
        self._data: Optional[str] = snapshot.model_dump_json() if snapshot else None
        self.saves = 0

    def load(self) -> Optional[Snapshot]:
        if self._data is None:
            return None
        return Snapshot.model_validate_json(self._data)

    def save(self, snapshot: Snapshot) -> None:
        # serialized so callers can't alias the stored state
        self._data = snapshot.model_dump_json()
        self.saves += 1


class JsonFileSnapshotStorage(SnapshotStorage):
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Optional[Snapshot]:
        if not self.path.exists():
            return None
        try:
            return Snapshot.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise StorageError(f"Could not read snapshot {self.path}: {e}") from e

    def save(self, snapshot: Snapshot) -> None:
        payload = snapshot.model_dump_json(indent=2)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            # atomic on POSIX and Windows; readers see the old or the new file
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Could not write snapshot {self.path}: {e}") from e
