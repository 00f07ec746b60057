"""Voice-driven burnout self-assessment service."""

__version__ = "0.1.0"
