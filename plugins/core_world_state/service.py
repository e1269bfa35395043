# plugins/core_world_state/service.py

import asyncio
import base64
import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

import aiofiles

from .contracts import WorldStatePersistenceInterface

logger = logging.getLogger(__name__)

SNAPSHOT_FILE_NAME = "world_state.json"
SNAPSHOT_FORMAT_VERSION = 1


class WorldStatePersistenceService(WorldStatePersistenceInterface):
    """
    Keeps a JSON snapshot of the committed world state on disk.
    Values are stored base64-encoded since the state holds raw bytes.
    """
    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()
        logger.info(f"WorldStatePersistenceService initialized. Snapshot file: {self.snapshot_path.resolve()}")

    @property
    def snapshot_path(self) -> Path:
        return self.data_dir / SNAPSHOT_FILE_NAME

    async def save(self, entries: Dict[str, bytes]) -> None:
        document = {
            "format_version": SNAPSHOT_FORMAT_VERSION,
            "entries": {key: base64.b64encode(value).decode("ascii") for key, value in entries.items()},
        }
        json_string = json.dumps(document, indent=2, sort_keys=True)
        tmp_path = self.snapshot_path.with_suffix(".json.tmp")

        async with self._lock:
            async with aiofiles.open(tmp_path, mode='w', encoding='utf-8') as f:
                await f.write(json_string)
            # 同目录下的 rename 是原子的，读方永远看不到写了一半的快照
            await asyncio.to_thread(os.replace, tmp_path, self.snapshot_path)
        logger.debug(f"Persisted world state snapshot with {len(entries)} key(s) to {self.snapshot_path}")

    async def load(self) -> Optional[Dict[str, bytes]]:
        if not self.snapshot_path.is_file():
            return None
        async with aiofiles.open(self.snapshot_path, mode='r', encoding='utf-8') as f:
            content = await f.read()

        try:
            document = json.loads(content)
            version = document.get("format_version")
            if version != SNAPSHOT_FORMAT_VERSION:
                raise ValueError(f"unsupported snapshot format version {version!r}")
            return {key: base64.b64decode(value) for key, value in document["entries"].items()}
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"World state snapshot at {self.snapshot_path} is corrupt: {e}")
            raise ValueError(f"Corrupt world state snapshot '{self.snapshot_path}': {e}") from e
