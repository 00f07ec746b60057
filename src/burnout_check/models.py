"""Domain models for Burnout Check."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Optional

from .schemas import AssessmentResult


class SessionState(Enum):
    """States in the interview flow."""
    NOT_STARTED = auto()
    ASKING = auto()
    LISTENING = auto()
    ANSWERED = auto()
    CLASSIFYING = auto()
    ALL_ANSWERED = auto()
    COLLECTING_CONTACT = auto()
    SUBMITTING = auto()
    SCORED = auto()


@dataclass
class ContactRecord:
    """Contact details captured at the end of an interview."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    def to_row(self) -> dict:
        return {
            "email": self.email,
            "phone": self.phone,
            "first_name": self.first_name,
            "last_name": self.last_name,
        }


@dataclass
class InterviewSession:
    """Runtime session state for one interview (not persisted)."""
    session_id: str
    answers: list[str]
    state: SessionState = SessionState.NOT_STARTED
    current_index: int = 0
    classifications: dict[int, str] = field(default_factory=dict)
    audio_unlocked: bool = False
    should_listen: bool = False
    listening: bool = False
    status: str = "Idle"
    contact: Optional[ContactRecord] = None
    transcript: Optional[str] = None
    result: Optional[AssessmentResult] = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def all_answered(self) -> bool:
        return all(answer.strip() for answer in self.answers)
