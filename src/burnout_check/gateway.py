"""
Model gateway: the one seam between the services and the hosted model API.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from openai import AsyncOpenAI, OpenAIError

from .config.settings import OpenAISettings
from .errors import UpstreamServiceError

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Text produced by a structured-output generation call."""
    text: str
    finish_reason: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


class ModelGateway(ABC):
    """Abstract interface for text generation and speech synthesis."""

    @abstractmethod
    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        schema_name: str,
        schema: Dict[str, Any],
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> GenerationResult:
        """Generate text constrained to a JSON schema."""
        pass

    @abstractmethod
    async def synthesize_speech(
        self, text: str, voice: str, instructions: str, audio_format: str
    ) -> bytes:
        """Synthesize speech audio for the given text."""
        pass


class OpenAIGateway(ModelGateway):
    """OpenAI Responses and speech API implementation."""

    def __init__(self, settings: OpenAISettings, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        self._client = client

    def get_client(self) -> AsyncOpenAI:
        """Get or create the OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.settings.api_key)
        return self._client

    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        schema_name: str,
        schema: Dict[str, Any],
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> GenerationResult:
        kwargs: Dict[str, Any] = {}
        if temperature is not None:
            kwargs["temperature"] = temperature
        if max_output_tokens is not None:
            kwargs["max_output_tokens"] = max_output_tokens

        try:
            response = await self.get_client().responses.create(
                model=self.settings.model,
                input=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                text={
                    "format": {
                        "type": "json_schema",
                        "name": schema_name,
                        "schema": schema,
                        "strict": True,
                    }
                },
                **kwargs,
            )
        except OpenAIError as e:
            logger.exception("OpenAI %s request failed", schema_name)
            raise UpstreamServiceError("openai") from e

        return GenerationResult(
            text=response.output_text,
            finish_reason=_finish_reason(response),
            raw=response.model_dump(mode="json"),
        )

    async def synthesize_speech(
        self, text: str, voice: str, instructions: str, audio_format: str
    ) -> bytes:
        try:
            response = await self.get_client().audio.speech.create(
                model=self.settings.tts_model,
                voice=voice,
                input=text,
                instructions=instructions,
                response_format=audio_format,
            )
        except OpenAIError as e:
            logger.exception("OpenAI speech request failed")
            raise UpstreamServiceError("openai") from e
        return response.content


def _finish_reason(response: Any) -> Optional[str]:
    """Responses carry a status, plus a reason when output was cut short."""
    details = getattr(response, "incomplete_details", None)
    if details is not None and getattr(details, "reason", None):
        return details.reason
    return getattr(response, "status", None)
