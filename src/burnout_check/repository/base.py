"""Abstract repository interfaces."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models import ContactRecord


class ContactRepository(ABC):
    """Abstract interface for contact storage."""

    @abstractmethod
    async def save(self, contact: ContactRecord) -> None:
        """Save a contact record."""
        pass


class AudioCacheRepository(ABC):
    """Abstract interface for synthesized audio storage."""

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Get cached audio by key, or None on a miss."""
        pass

    @abstractmethod
    async def put(self, key: str, audio: bytes) -> None:
        """Store audio under a key."""
        pass

    @abstractmethod
    async def prune(self) -> int:
        """Apply the configured size and age bounds. Returns entries removed."""
        pass
