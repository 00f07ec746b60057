"""Shared fakes and fixtures."""

import json
from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from burnout_check.client import ApiRequestError
from burnout_check.config.settings import AudioCacheSettings, OpenAISettings, Settings
from burnout_check.errors import UpstreamServiceError
from burnout_check.gateway import GenerationResult, ModelGateway
from burnout_check.models import ContactRecord
from burnout_check.repository.base import ContactRepository
from burnout_check.repository.local import LocalAudioCacheRepository
from burnout_check.server import create_app
from burnout_check.state_machine import AudioPlayer, PlaybackError, SpeechRecognizer

ASSESSMENT_TEXT = json.dumps({
    "score_percent": 72,
    "evaluation_markdown": "## Overall\nSigns of exhaustion and detachment.",
})


class FakeGateway(ModelGateway):
    """Model gateway returning canned text per schema name."""

    def __init__(self):
        self.texts: Dict[str, str] = {
            "ClassificationResult": json.dumps({"choice": "thinking", "reasoning": "focus"}),
            "BurnoutAssessment": ASSESSMENT_TEXT,
        }
        self.error: Optional[Exception] = None
        self.structured_calls: list[Dict[str, Any]] = []
        self.speech_calls: list[Dict[str, Any]] = []

    async def generate_structured(
        self,
        system_prompt,
        user_prompt,
        schema_name,
        schema,
        temperature=None,
        max_output_tokens=None,
    ):
        self.structured_calls.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "schema_name": schema_name,
            "schema": schema,
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
        })
        if self.error:
            raise self.error
        return GenerationResult(
            text=self.texts.get(schema_name, ""),
            finish_reason="completed",
            raw={"id": "resp_test", "status": "completed"},
        )

    async def synthesize_speech(self, text, voice, instructions, audio_format):
        self.speech_calls.append({
            "text": text,
            "voice": voice,
            "instructions": instructions,
            "audio_format": audio_format,
        })
        if self.error:
            raise self.error
        return f"{voice}|{instructions}|{text}".encode("utf-8")


class FakeContactRepository(ContactRepository):
    def __init__(self):
        self.saved: list[ContactRecord] = []
        self.fail = False

    async def save(self, contact: ContactRecord) -> None:
        if self.fail:
            raise UpstreamServiceError("supabase", "db error")
        self.saved.append(contact)


class FakePlayer(AudioPlayer):
    def __init__(self):
        self.played: list[bytes] = []
        self.stops = 0
        self.fail = False

    async def play(self, audio: bytes) -> None:
        if self.fail:
            raise PlaybackError("autoplay blocked")
        self.played.append(audio)

    def stop(self) -> None:
        self.stops += 1


class FakeRecognizer(SpeechRecognizer):
    def __init__(self):
        self.started: list[int] = []
        self.stops = 0

    def start(self, index: int) -> None:
        self.started.append(index)

    def stop(self) -> None:
        self.stops += 1


class FakeApi:
    """Stands in for BurnoutApiClient in controller tests."""

    def __init__(self):
        self.speak_calls: list[str] = []
        self.classify_calls: list[tuple[str, list[str]]] = []
        self.query_calls: list[str] = []
        self.subscribed: list[ContactRecord] = []
        self.classify_responses: list[Dict[str, Any]] = []
        self.query_response: Dict[str, Any] = {"ok": True, "text": ASSESSMENT_TEXT}
        self.fail_speak = False
        self.fail_classify = False
        self.fail_query = False
        self.fail_subscribe = False

    async def speak(self, text, voice=None, instructions=None) -> bytes:
        self.speak_calls.append(text)
        if self.fail_speak:
            raise ApiRequestError("/api/speak", 500)
        return b"audio:" + text.encode("utf-8")

    async def classify(self, text, options):
        self.classify_calls.append((text, options))
        if self.fail_classify:
            raise ApiRequestError("/api/classify", 500)
        if self.classify_responses:
            return self.classify_responses.pop(0)
        return {"ok": True, "choice": "thinking", "reasoning": ""}

    async def query(self, transcript):
        self.query_calls.append(transcript)
        if self.fail_query:
            raise ApiRequestError("/api/query", 500)
        return self.query_response

    async def subscribe(self, contact):
        if self.fail_subscribe:
            raise ApiRequestError("/api/subscribe", 500, {"error": "db error"})
        self.subscribed.append(contact)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        openai=OpenAISettings(api_key="test-key"),
        audio_cache=AudioCacheSettings(directory=str(tmp_path / "audio")),
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def contact_repo():
    return FakeContactRepository()


@pytest.fixture
def audio_cache(settings):
    return LocalAudioCacheRepository(settings.audio_cache.directory)


@pytest.fixture
def app(settings, gateway, contact_repo, audio_cache):
    return create_app(settings, gateway, contact_repo, audio_cache)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def recognizer():
    return FakeRecognizer()
