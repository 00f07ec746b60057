"""Entry point for Burnout Check server."""

import logging

import uvicorn
from dotenv import load_dotenv

from .config.settings import Settings
from .gateway import OpenAIGateway
from .logging_config import setup_logging
from .repository import create_repositories
from .server import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    """Start the Burnout Check server."""
    # Load environment variables
    load_dotenv()

    # Initialize settings and logging
    settings = Settings()
    setup_logging(settings.logging)

    if not settings.openai.is_configured:
        raise ValueError("OPENAI_API_KEY must be set in environment")

    # Initialize repositories and model gateway
    contact_repo, audio_cache = create_repositories(settings)
    gateway = OpenAIGateway(settings.openai)

    app = create_app(
        settings=settings,
        gateway=gateway,
        contact_repo=contact_repo,
        audio_cache=audio_cache,
    )

    logger.info("Listening on http://%s:%d", settings.server.host, settings.server.port)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port, log_config=None)


if __name__ == "__main__":
    main()
