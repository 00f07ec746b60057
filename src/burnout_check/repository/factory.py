"""Repository factory."""

from typing import Tuple

from ..config.settings import Settings
from .base import AudioCacheRepository, ContactRepository
from .local import LocalAudioCacheRepository
from .supabase import SupabaseClientManager, SupabaseContactRepository


def create_repositories(settings: Settings) -> Tuple[ContactRepository, AudioCacheRepository]:
    """Create the contact and audio cache repositories.

    Args:
        settings: Application settings

    Returns:
        Tuple of (contact_repo, audio_cache)

    Raises:
        ValueError: If Supabase is not configured
    """
    if not settings.supabase.is_configured:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in environment"
        )

    client_manager = SupabaseClientManager(
        settings.supabase.url,
        settings.supabase.service_role_key,
    )
    audio_cache = LocalAudioCacheRepository(
        settings.audio_cache.directory,
        suffix=f".{settings.openai.audio_format}",
        max_files=settings.audio_cache.max_files,
        max_age_days=settings.audio_cache.max_age_days,
    )
    return (
        SupabaseContactRepository(client_manager, settings.supabase.contacts_table),
        audio_cache,
    )
