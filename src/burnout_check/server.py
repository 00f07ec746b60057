"""HTTP server for Burnout Check."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config.settings import Settings
from .errors import RequestValidationFailed, UpstreamServiceError
from .gateway import ModelGateway
from .repository.base import AudioCacheRepository, ContactRepository
from .schemas import ClassifyRequest, QueryRequest, SpeakRequest, SubscribeRequest
from .services import ClassifierService, ContactService, ScoringService, SpeechService

logger = logging.getLogger(__name__)

AUDIO_MEDIA_TYPES = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "opus": "audio/ogg",
}

# Fields whose 400 message names them as arrays rather than fields
ARRAY_FIELDS = {"options"}


def _validation_message(exc: RequestValidationError) -> str:
    """Describe the first invalid request field."""
    for error in exc.errors():
        if error.get("type") == "json_invalid":
            return "Invalid JSON body"
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        if loc:
            name = loc[0]
            kind = "array" if name in ARRAY_FIELDS else "field"
            return f"Missing or invalid '{name}' {kind}"
    return "Missing or invalid request body"


def register_error_handlers(app: FastAPI) -> None:
    """Map package and framework errors onto the JSON error shapes."""

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(RequestValidationFailed)
    async def handle_validation_failed(request: Request, exc: RequestValidationFailed):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(UpstreamServiceError)
    async def handle_upstream(request: Request, exc: UpstreamServiceError):
        logger.error("%s %s failed: %s upstream error", request.method, request.url.path, exc.service)
        return JSONResponse(status_code=500, content={"ok": False, "error": str(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return JSONResponse(
                status_code=405,
                content={"error": "Method not allowed"},
                headers={"Allow": "POST"},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )


def create_app(
    settings: Settings,
    gateway: ModelGateway,
    contact_repo: ContactRepository,
    audio_cache: AudioCacheRepository,
) -> FastAPI:
    """Build the FastAPI application around the given collaborators."""
    speech_service = SpeechService(gateway, audio_cache, settings.openai)
    classifier_service = ClassifierService(gateway)
    scoring_service = ScoringService(gateway, settings.openai)
    contact_service = ContactService(contact_repo)
    audio_media_type = AUDIO_MEDIA_TYPES.get(settings.openai.audio_format, "application/octet-stream")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await audio_cache.prune()
        logger.info("=" * 50)
        logger.info("BURNOUT CHECK SERVER")
        logger.info("Model %s, speech %s", settings.openai.model, settings.openai.tts_model)
        logger.info("=" * 50)
        yield
        logger.info("Server shutdown.")

    app = FastAPI(title="Burnout Check", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Cache"],
    )
    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/api/speak")
    async def speak(body: Optional[SpeakRequest] = None):
        body = body or SpeakRequest()
        result = await speech_service.synthesize(body.input, body.voice, body.instructions)
        return Response(
            content=result.audio,
            media_type=audio_media_type,
            headers={"X-Cache": "HIT" if result.cache_hit else "MISS"},
        )

    @app.post("/api/classify")
    async def classify(body: ClassifyRequest):
        outcome = await classifier_service.classify(body.text, body.options)
        return {
            "ok": True,
            "choice": outcome.choice,
            "reasoning": outcome.reasoning,
            "finish_reason": outcome.finish_reason,
            "raw_text": outcome.raw_text,
            "raw": outcome.raw,
        }

    @app.post("/api/query")
    async def query(body: QueryRequest):
        result = await scoring_service.score(body.q)
        return {
            "ok": True,
            "query": body.q,
            "text": result.text,
            "finish_reason": result.finish_reason,
            "raw": result.raw,
        }

    @app.post("/api/subscribe")
    async def subscribe(body: Optional[SubscribeRequest] = None):
        await contact_service.capture(body or SubscribeRequest())
        return {"ok": True}

    return app
