"""Async HTTP client for the Burnout Check endpoints."""

from typing import Any, Optional

import httpx

from .models import ContactRecord


class ApiRequestError(Exception):
    """An endpoint answered with a non-success status or could not be reached."""

    def __init__(self, path: str, status_code: Optional[int], body: Any = None):
        super().__init__(f"{path} failed with status {status_code}")
        self.path = path
        self.status_code = status_code
        self.body = body


class BurnoutApiClient:
    """Thin wrapper over the four POST endpoints."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def _post(self, path: str, payload: dict) -> httpx.Response:
        try:
            response = await self.http.post(path, json=payload)
        except httpx.HTTPError as e:
            raise ApiRequestError(path, None, str(e)) from e
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            raise ApiRequestError(path, response.status_code, body)
        return response

    async def speak(
        self,
        text: str,
        voice: Optional[str] = None,
        instructions: Optional[str] = None,
    ) -> bytes:
        """Get synthesized audio for the text."""
        payload: dict = {"input": text}
        if voice:
            payload["voice"] = voice
        if instructions:
            payload["instructions"] = instructions
        response = await self._post("/api/speak", payload)
        return response.content

    async def classify(self, text: str, options: list[str]) -> dict:
        """Classify text into one of the options."""
        response = await self._post("/api/classify", {"text": text, "options": options})
        return response.json()

    async def query(self, transcript: str) -> dict:
        """Submit the full transcript for scoring."""
        response = await self._post("/api/query", {"q": transcript})
        return response.json()

    async def subscribe(self, contact: ContactRecord) -> None:
        """Store contact details."""
        await self._post("/api/subscribe", contact.to_row())
