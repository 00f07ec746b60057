"""
Request-level services wrapping the model gateway and the repositories.
"""
import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from .config.settings import OpenAISettings
from .errors import RequestValidationFailed
from .gateway import GenerationResult, ModelGateway
from .models import ContactRecord
from .prompts import CLASSIFIER_SYSTEM_PROMPT, SCORING_SYSTEM_PROMPT, classifier_user_prompt
from .repository.base import AudioCacheRepository, ContactRepository
from .schemas import (
    ASSESSMENT_SCHEMA,
    CLASSIFICATION_SCHEMA,
    ClassificationResult,
    SubscribeRequest,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Speech synthesis
# =============================================================================

def audio_cache_key(voice: str, instructions: str, text: str) -> str:
    """Deterministic cache key for a (voice, instructions, text) triple."""
    payload = json.dumps([voice, instructions, text], ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass
class SpeechResult:
    audio: bytes
    cache_hit: bool


class SpeechService:
    """Speech synthesis with a write-through disk cache."""

    def __init__(
        self,
        gateway: ModelGateway,
        cache: AudioCacheRepository,
        settings: OpenAISettings,
    ):
        self.gateway = gateway
        self.cache = cache
        self.settings = settings

    async def synthesize(
        self,
        text: str,
        voice: Optional[str] = None,
        instructions: Optional[str] = None,
    ) -> SpeechResult:
        """Return audio for the text, calling the model only on a cache miss.

        Raises:
            UpstreamServiceError: If synthesis fails on a miss
        """
        voice = voice or self.settings.default_voice
        instructions = instructions or self.settings.default_instructions
        key = audio_cache_key(voice, instructions, text)

        try:
            cached = await self.cache.get(key)
        except OSError:
            logger.warning("Audio cache read failed for %s, synthesizing", key[:12], exc_info=True)
            cached = None
        if cached is not None:
            logger.debug("Audio cache hit %s", key[:12])
            return SpeechResult(audio=cached, cache_hit=True)

        audio = await self.gateway.synthesize_speech(
            text, voice, instructions, self.settings.audio_format
        )
        try:
            await self.cache.put(key, audio)
        except OSError:
            logger.warning("Audio cache write failed for %s", key[:12], exc_info=True)
        logger.info("Synthesized %d bytes of audio (%d chars of text)", len(audio), len(text))
        return SpeechResult(audio=audio, cache_hit=False)


# =============================================================================
# Classification
# =============================================================================

@dataclass
class ClassificationOutcome:
    choice: Optional[str]
    reasoning: str
    finish_reason: Optional[str]
    raw_text: str
    raw: Dict[str, Any] = field(default_factory=dict)


def parse_classification(text: str) -> Optional[ClassificationResult]:
    """
    Parse classifier output. Tries the whole text as the structured result first,
    then the outermost JSON object embedded in it.
    """
    if not text:
        return None
    try:
        return ClassificationResult.model_validate_json(text)
    except ValidationError:
        pass

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        try:
            return ClassificationResult.model_validate_json(text[start:end + 1])
        except ValidationError:
            logger.warning("Classifier output was not a valid result")
    return None


def match_option(choice: str, options: Sequence[str]) -> Optional[str]:
    """Map a model choice onto the closed option set, ignoring case and quotes."""
    normalized = choice.strip().strip("\"'").casefold()
    for option in options:
        if option.casefold() == normalized:
            return option
    return None


class ClassifierService:
    """Free-text classification into a closed option set."""

    def __init__(self, gateway: ModelGateway):
        self.gateway = gateway

    async def classify(self, text: str, options: List[str]) -> ClassificationOutcome:
        """Pick the option that best matches the text.

        Unparseable output or a choice outside the options yields a None choice
        rather than an error.

        Raises:
            UpstreamServiceError: If the model call fails
        """
        result = await self.gateway.generate_structured(
            CLASSIFIER_SYSTEM_PROMPT,
            classifier_user_prompt(text, options),
            "ClassificationResult",
            CLASSIFICATION_SCHEMA,
            temperature=0,
        )

        parsed = parse_classification(result.text)
        choice = None
        reasoning = ""
        if parsed is not None:
            choice = match_option(parsed.choice, options)
            reasoning = parsed.reasoning
            if choice is None:
                logger.warning("Classifier chose %r, which is not an option", parsed.choice)

        return ClassificationOutcome(
            choice=choice,
            reasoning=reasoning,
            finish_reason=result.finish_reason,
            raw_text=result.text,
            raw=result.raw,
        )


# =============================================================================
# Scoring
# =============================================================================

class ScoringService:
    """Burnout scoring of a full interview transcript."""

    def __init__(self, gateway: ModelGateway, settings: OpenAISettings):
        self.gateway = gateway
        self.settings = settings

    async def score(self, transcript: str) -> GenerationResult:
        """Send the transcript to the model with the scoring rubric.

        The returned text is passed through unvalidated; callers parse it with
        ``AssessmentResult.parse``.
        """
        result = await self.gateway.generate_structured(
            SCORING_SYSTEM_PROMPT,
            transcript,
            "BurnoutAssessment",
            ASSESSMENT_SCHEMA,
            max_output_tokens=self.settings.scoring_max_output_tokens,
        )
        logger.info(
            "Scored transcript (%d chars), finish_reason=%s",
            len(transcript), result.finish_reason,
        )
        return result


# =============================================================================
# Contact capture
# =============================================================================

class ContactService:
    """Validates and stores contact details."""

    def __init__(self, repository: ContactRepository):
        self.repository = repository

    async def capture(self, request: SubscribeRequest) -> ContactRecord:
        """Store one contact row.

        Raises:
            RequestValidationFailed: If no email is given
            UpstreamServiceError: If the insert fails
        """
        if not request.email or not request.email.strip():
            raise RequestValidationFailed("email required")

        contact = ContactRecord(
            first_name=request.first_name or None,
            last_name=request.last_name or None,
            email=request.email.strip(),
            phone=request.phone or None,
        )
        await self.repository.save(contact)
        return contact
