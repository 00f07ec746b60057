"""Supabase repository implementation."""

import logging
from typing import Optional

import httpx
from supabase import AsyncClient, AsyncSupabaseException, PostgrestAPIError, acreate_client

from ..errors import UpstreamServiceError
from ..models import ContactRecord
from .base import ContactRepository

logger = logging.getLogger(__name__)


class SupabaseClientManager:
    """Manages Supabase client lifecycle."""

    def __init__(self, url: str, key: str):
        self.url = url
        self.key = key
        self._client: Optional[AsyncClient] = None

    async def get_client(self) -> AsyncClient:
        """Get or create Supabase client."""
        if self._client is None:
            self._client = await acreate_client(self.url, self.key)
        return self._client


class SupabaseContactRepository(ContactRepository):
    """Supabase-backed contact repository."""

    def __init__(self, client_manager: SupabaseClientManager, table: str = "contacts"):
        self.client_manager = client_manager
        self.table = table

    async def save(self, contact: ContactRecord) -> None:
        """Insert one contact row.

        Raises:
            UpstreamServiceError: If the client cannot be created or the insert fails
        """
        try:
            client = await self.client_manager.get_client()
            await client.table(self.table).insert(contact.to_row()).execute()
        except (AsyncSupabaseException, PostgrestAPIError, httpx.HTTPError) as e:
            logger.exception("Contact insert into %s failed", self.table)
            raise UpstreamServiceError("supabase", "db error") from e
        logger.info("Contact recorded (phone given: %s)", bool(contact.phone))
