"""
Snapshot store for change detection.

Keeps the last grade table the bot notified about in a single JSON file
(an array of arrays of strings). The file is replaced wholesale on every
save, never merged.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Union

from pydantic import TypeAdapter, ValidationError

from grade_notifier.models import Table

logger = logging.getLogger(__name__)

TABLE_ADAPTER = TypeAdapter(List[List[str]])


class PersistenceFailed(Exception):
    """Raised when the snapshot could not be written."""
    pass


class SnapshotStore:
    """
    Reads and writes the grade table snapshot on disk.

    A missing or unreadable snapshot loads as an empty table: losing the
    snapshot only means the next change goes unnoticed, so it is not fatal.
    Writes go to a temporary file in the same directory which then replaces
    the snapshot, so an interrupted write leaves the previous file intact.
    """

    def __init__(self, path: Union[str, Path] = "grades.json"):
        """
        Initialize the snapshot store.

        Args:
            path: Snapshot file, relative paths resolve against the working directory
        """
        self.path = Path(path)

    def exists(self) -> bool:
        """Check whether a snapshot has been written."""
        return self.path.is_file()

    def load(self) -> Table:
        """
        Load the stored table.

        Returns:
            Table: Stored rows, or an empty table if there is no usable snapshot
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info(f"No snapshot at {self.path}, starting from an empty table")
            return []
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read snapshot {self.path}: {e}")
            return []

        try:
            table = TABLE_ADAPTER.validate_python(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Snapshot {self.path} is not a valid table, ignoring it: {e}")
            return []

        logger.debug(f"Loaded {len(table)} rows from {self.path}")
        return table

    def save(self, table: Table) -> None:
        """
        Replace the snapshot with the given table.

        Args:
            table: Rows to store

        Raises:
            PersistenceFailed: If the table could not be written
        """
        try:
            data = TABLE_ADAPTER.dump_python(TABLE_ADAPTER.validate_python(table))
        except ValidationError as e:
            raise PersistenceFailed(f"Refusing to store malformed table: {e}") from e

        directory = self.path.parent
        temp_path = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                suffix=".tmp",
                prefix=f".{self.path.name}.",
                dir=directory,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                os.unlink(temp_path)
            raise PersistenceFailed(f"Could not write snapshot {self.path}: {e}") from e

        logger.info(f"Saved {len(table)} rows to {self.path}")
