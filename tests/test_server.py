"""Tests for the HTTP endpoints."""

import json

from burnout_check.errors import UpstreamServiceError
from burnout_check.schemas import DEFAULT_SPEECH_INPUT


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_endpoints_are_post_only(client):
    for path in ["/api/speak", "/api/classify", "/api/query", "/api/subscribe"]:
        response = client.get(path)
        assert response.status_code == 405
        assert response.headers["allow"] == "POST"
        assert response.json() == {"error": "Method not allowed"}


# =============================================================================
# /api/speak
# =============================================================================

def test_speak_returns_audio_and_cache_status(client, gateway):
    first = client.post("/api/speak", json={"input": "Hello there", "voice": "sage"})
    second = client.post("/api/speak", json={"input": "Hello there", "voice": "sage"})

    assert first.status_code == 200
    assert first.headers["content-type"] == "audio/mpeg"
    assert first.headers["x-cache"] == "MISS"
    assert second.headers["x-cache"] == "HIT"
    assert first.content == second.content
    assert int(first.headers["content-length"]) == len(first.content)
    assert len(gateway.speech_calls) == 1


def test_speak_defaults_without_body(client, gateway):
    response = client.post("/api/speak")
    assert response.status_code == 200
    assert gateway.speech_calls[0]["text"] == DEFAULT_SPEECH_INPUT


def test_speak_upstream_error(client, gateway):
    gateway.error = UpstreamServiceError("openai")
    response = client.post("/api/speak", json={"input": "Hello"})
    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "Internal server error"}


# =============================================================================
# /api/classify
# =============================================================================

def test_classify_success(client):
    response = client.post(
        "/api/classify",
        json={"text": "My mind goes blank", "options": [" people ", "energy", "thinking"]},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["choice"] == "thinking"
    assert body["reasoning"] == "focus"
    assert body["finish_reason"] == "completed"
    assert json.loads(body["raw_text"])["choice"] == "thinking"
    assert body["raw"]["id"] == "resp_test"


def test_classify_missing_text(client, gateway):
    response = client.post("/api/classify", json={"options": ["a"]})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing or invalid 'text' field"}
    assert gateway.structured_calls == []


def test_classify_blank_text(client):
    response = client.post("/api/classify", json={"text": "   ", "options": ["a"]})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing or invalid 'text' field"}


def test_classify_invalid_options(client):
    for options in [[], ["a", "  "], ["a", 3], "a"]:
        response = client.post("/api/classify", json={"text": "hi", "options": options})
        assert response.status_code == 400, options
        assert response.json() == {"error": "Missing or invalid 'options' array"}


def test_classify_upstream_error(client, gateway):
    gateway.error = UpstreamServiceError("openai")
    response = client.post("/api/classify", json={"text": "hi", "options": ["a"]})
    assert response.status_code == 500
    assert response.json()["ok"] is False


# =============================================================================
# /api/query
# =============================================================================

def test_query_success(client, gateway):
    response = client.post("/api/query", json={"q": "Question 1: ...\nAnswer: tired"})
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["query"] == "Question 1: ...\nAnswer: tired"
    assessment = json.loads(body["text"])
    assert 0 <= assessment["score_percent"] <= 100
    assert assessment["evaluation_markdown"]
    assert body["finish_reason"] == "completed"
    assert gateway.structured_calls[0]["schema_name"] == "BurnoutAssessment"


def test_query_missing_q(client):
    for payload in [{}, {"q": ""}, {"q": 42}]:
        response = client.post("/api/query", json=payload)
        assert response.status_code == 400
        assert response.json() == {"error": "Missing or invalid 'q' field"}


def test_query_invalid_json(client):
    response = client.post(
        "/api/query", content=b"{not json", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400


def test_query_upstream_error(client, gateway):
    gateway.error = UpstreamServiceError("openai")
    response = client.post("/api/query", json={"q": "anything"})
    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "Internal server error"}


# =============================================================================
# /api/subscribe
# =============================================================================

def test_subscribe_requires_email(client, contact_repo):
    response = client.post("/api/subscribe", json={"phone": "555 123 4567"})
    assert response.status_code == 400
    assert response.json() == {"error": "email required"}
    assert contact_repo.saved == []


def test_subscribe_without_body(client, contact_repo):
    response = client.post("/api/subscribe")
    assert response.status_code == 400
    assert contact_repo.saved == []


def test_subscribe_success(client, contact_repo):
    response = client.post(
        "/api/subscribe",
        json={"email": "alex@example.com", "first_name": "Alex", "last_name": "Kim"},
    )
    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert len(contact_repo.saved) == 1
    saved = contact_repo.saved[0]
    assert saved.email == "alex@example.com"
    assert saved.phone is None
    assert saved.last_name == "Kim"


def test_subscribe_store_error(client, contact_repo):
    contact_repo.fail = True
    response = client.post("/api/subscribe", json={"email": "alex@example.com"})
    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "db error"}
