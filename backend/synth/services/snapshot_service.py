"""
Synth Backend: Store Snapshot Service
======================================

What:  Saves the whole EntityStore to a JSON file and restores it on startup.
How:   EntityStore.export_state() produces a JSON-compatible dict (records,
       id counters, pending scheduled tasks); this service writes it with
       async file I/O to a temporary sibling file and renames it over the
       target, so a crash mid-write never leaves a truncated snapshot.
Who:   The application lifespan (load on startup, save on shutdown and
       after sweeps that changed state).

Snapshots are optional: with SNAPSHOT_PATH unset the store lives and dies
with the process.
"""

import json
import logging
from pathlib import Path
from typing import Union

import aiofiles
import aiofiles.os
from pydantic import ValidationError as PydanticValidationError

from synth.exceptions import SnapshotError
from synth.storage.store import EntityStore

logger = logging.getLogger(__name__)


class SnapshotService:
    """
    Args:
        path: Snapshot file location. Parent directories are created on save.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser().resolve()

    async def save(self, store: EntityStore) -> Path:
        """
        Write the store's current state to the snapshot file.

        Raises:
            SnapshotError: If the directory or file cannot be written.
        """
        state = store.export_state()
        payload = json.dumps(state, separators=(",", ":"))
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("Failed to write snapshot %s: %s", self.path, str(e))
            raise SnapshotError(
                message="Failed to save store snapshot.",
                context={"path": str(self.path), "os_error": str(e)},
            ) from e

        logger.info("Snapshot saved to %s (%d bytes)", self.path, len(payload))
        return self.path

    async def load(self, store: EntityStore) -> bool:
        """
        Replace the store's contents with the snapshot, if one exists.

        Returns:
            True if a snapshot was loaded, False if there is no snapshot file.

        Raises:
            SnapshotError: If the file exists but cannot be read, is not
                           valid JSON, or does not match the store's format.
                           The store is left untouched in that case.
        """
        if not self.path.exists():
            logger.info("No snapshot at %s; starting empty", self.path)
            return False

        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                raw = await f.read()
            state = json.loads(raw)
            store.import_state(state)
        except OSError as e:
            raise SnapshotError(
                message="Failed to read store snapshot.",
                context={"path": str(self.path), "os_error": str(e)},
            ) from e
        except (ValueError, PydanticValidationError) as e:
            # json.JSONDecodeError is a ValueError; so is an unsupported version
            raise SnapshotError(
                message="Store snapshot is corrupt or incompatible.",
                context={"path": str(self.path), "error": str(e)},
            ) from e

        logger.info("Snapshot loaded from %s", self.path)
        return True
