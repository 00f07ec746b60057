"""Repository layer for data access."""

from .base import AudioCacheRepository, ContactRepository
from .factory import create_repositories
from .local import LocalAudioCacheRepository

__all__ = [
    "AudioCacheRepository",
    "ContactRepository",
    "LocalAudioCacheRepository",
    "create_repositories",
]
