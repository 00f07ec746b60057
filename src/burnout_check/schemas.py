"""
Pydantic schemas for HTTP request bodies and structured model output.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator

DEFAULT_SPEECH_INPUT = "Today is a wonderful day to build something people love!"


# -----------------------------------------------------------------------------
# Request bodies
# -----------------------------------------------------------------------------

class SpeakRequest(BaseModel):
    input: str = DEFAULT_SPEECH_INPUT
    voice: Optional[str] = None
    instructions: Optional[str] = None


class ClassifyRequest(BaseModel):
    text: str
    options: List[str]

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text must not be blank")
        return value

    @field_validator("options")
    @classmethod
    def _options_not_blank(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("options must not be empty")
        if any(not option.strip() for option in value):
            raise ValueError("options must be non-blank strings")
        return [option.strip() for option in value]


class QueryRequest(BaseModel):
    q: str

    @field_validator("q")
    @classmethod
    def _q_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("q must not be empty")
        return value


class SubscribeRequest(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


# -----------------------------------------------------------------------------
# Structured model output
# -----------------------------------------------------------------------------

class ClassificationResult(BaseModel):
    """Classifier output: one option plus a short rationale."""
    choice: str
    reasoning: str = ""


class AssessmentResult(BaseModel):
    """Burnout score and narrative returned by the scoring model."""
    score_percent: int
    evaluation_markdown: str

    @field_validator("score_percent")
    @classmethod
    def _clamp_score(cls, value: int) -> int:
        return max(0, min(100, value))

    @field_validator("evaluation_markdown")
    @classmethod
    def _evaluation_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("evaluation_markdown must not be blank")
        return value

    @property
    def evaluation(self) -> str:
        return self.evaluation_markdown

    @classmethod
    def parse(cls, text: str) -> "AssessmentResult":
        """Parse the scoring endpoint's ``text`` field.

        Raises:
            pydantic.ValidationError: If the text is not a valid result
        """
        return cls.model_validate_json(text)


# Strict JSON schemas for the Responses API. Strict mode needs every property
# listed as required and no additional properties.
CLASSIFICATION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "choice": {"type": "string"},
        "reasoning": {"type": "string"},
    },
    "required": ["choice", "reasoning"],
    "additionalProperties": False,
}

ASSESSMENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "score_percent": {
            "type": "integer",
            "description": "Overall burnout score from 0 (none) to 100 (severe).",
        },
        "evaluation_markdown": {
            "type": "string",
            "description": "Narrative assessment formatted as markdown.",
        },
    },
    "required": ["score_percent", "evaluation_markdown"],
    "additionalProperties": False,
}

