"""Local file repository implementation for synthesized audio."""

import logging
import os
import time
import uuid
from pathlib import Path
from typing import Optional

import aiofiles

from .base import AudioCacheRepository

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


class LocalAudioCacheRepository(AudioCacheRepository):
    """Audio files keyed by content hash in a single directory."""

    def __init__(
        self,
        directory: str,
        suffix: str = ".mp3",
        max_files: int = 0,
        max_age_days: int = 0,
    ):
        self.directory = Path(directory)
        self.suffix = suffix
        self.max_files = max_files
        self.max_age_days = max_age_days

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}{self.suffix}"

    async def get(self, key: str) -> Optional[bytes]:
        """Read cached audio if present."""
        path = self._path(key)
        if not path.exists():
            return None
        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    async def put(self, key: str, audio: bytes) -> None:
        """Write audio, replacing any existing entry atomically."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        async with aiofiles.open(tmp_path, "wb") as f:
            await f.write(audio)
        os.replace(tmp_path, path)

    def _entries_newest_first(self) -> list[Path]:
        return sorted(
            self.directory.glob(f"*{self.suffix}"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )

    async def prune(self) -> int:
        """Remove entries older than max_age_days, then beyond max_files."""
        if not self.directory.exists():
            return 0

        removed = 0
        if self.max_age_days > 0:
            cutoff = time.time() - self.max_age_days * SECONDS_PER_DAY
            for path in self._entries_newest_first():
                if path.stat().st_mtime < cutoff:
                    path.unlink(missing_ok=True)
                    removed += 1

        if self.max_files > 0:
            for path in self._entries_newest_first()[self.max_files:]:
                path.unlink(missing_ok=True)
                removed += 1

        if removed:
            logger.info("Audio cache pruned: %d file(s) removed", removed)
        return removed
