"""Interview session state machine driving the spoken question flow."""

import asyncio
import logging
import re
import uuid
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from pydantic import ValidationError

from .client import ApiRequestError, BurnoutApiClient
from .models import ContactRecord, InterviewSession, SessionState
from .questions import (
    QUESTIONS,
    Question,
    QuestionSequenceItem,
    build_sequence,
    classification_options,
    item_label,
    resolve_question_text,
)
from .schemas import AssessmentResult

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PHONE_DIGITS = 7


class PlaybackError(Exception):
    """Audio could not be played (e.g. blocked by an autoplay policy)."""


class RecognizerBusyError(Exception):
    """The recognizer was asked to start while already running."""


class AudioPlayer(ABC):
    """Plays synthesized question audio."""

    @abstractmethod
    async def play(self, audio: bytes) -> None:
        """Play audio, returning once playback has finished or been stopped.

        Raises:
            PlaybackError: If playback could not start
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop any playback in progress."""
        pass


class SpeechRecognizer(ABC):
    """Continuous speech recognition reporting back to the controller.

    Implementations call ``on_recognition_result``, ``on_recognition_end`` and
    ``on_recognition_error`` with the index they were started for.
    """

    @abstractmethod
    def start(self, index: int) -> None:
        """Start recognizing answers for the sequence item at ``index``.

        Raises:
            RecognizerBusyError: If recognition is already running
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop recognizing."""
        pass


def validate_contact(contact: ContactRecord) -> Optional[str]:
    """Return a user-facing error message, or None if the contact is valid."""
    if not contact.email or not EMAIL_REGEX.match(contact.email.strip()):
        return "Please enter a valid email address."
    if contact.phone:
        digits = sum(ch.isdigit() for ch in contact.phone)
        if digits < MIN_PHONE_DIGITS:
            return "Please enter a valid phone number or leave it blank."
    return None


class InterviewSessionController:
    """Manages one user's interview through defined states."""

    BENIGN_RECOGNITION_ERRORS = frozenset({"no-speech", "aborted"})
    PERMISSION_ERRORS = frozenset({"not-allowed", "service-not-allowed"})

    def __init__(
        self,
        api: BurnoutApiClient,
        player: AudioPlayer,
        recognizer: SpeechRecognizer,
        questions: Sequence[Question] = QUESTIONS,
        session_id: Optional[str] = None,
    ):
        self.api = api
        self.player = player
        self.recognizer = recognizer
        self.sequence: list[QuestionSequenceItem] = build_sequence(questions)
        self.session = InterviewSession(
            session_id=session_id or str(uuid.uuid4()),
            answers=[""] * len(self.sequence),
        )
        self._background_tasks: set[asyncio.Task] = set()

    @property
    def _tag(self) -> str:
        return f"[SESSION {self.session.session_id[:8]}]"

    @property
    def current_item(self) -> QuestionSequenceItem:
        return self.sequence[self.session.current_index]

    @property
    def current_text(self) -> str:
        """Display text of the current question."""
        return resolve_question_text(
            self.current_item, self.session.answers, self.session.current_index
        )

    @property
    def is_last(self) -> bool:
        return self.session.current_index == len(self.sequence) - 1

    def _settle_state(self) -> None:
        """Pick the resting state for the current slot once nothing is in flight."""
        if self.session.answers[self.session.current_index].strip():
            if self.is_last and self.session.all_answered:
                self.session.state = SessionState.ALL_ANSWERED
            else:
                self.session.state = SessionState.ANSWERED
        else:
            self.session.state = SessionState.ASKING

    def _in_interview(self) -> bool:
        return self.session.state in (
            SessionState.ASKING,
            SessionState.LISTENING,
            SessionState.ANSWERED,
            SessionState.ALL_ANSWERED,
        )

    # -------------------------------------------------------------------------
    # Asking
    # -------------------------------------------------------------------------

    def begin(self) -> None:
        """Start the interview; unlocks audio playback for the session."""
        if self.session.state != SessionState.NOT_STARTED:
            return
        self.session.audio_unlocked = True
        self.session.state = SessionState.ASKING
        self.session.status = "Ready. Press Ask to hear the first question."
        logger.info("%s Interview started (%d items)", self._tag, len(self.sequence))

    async def ask_current(self) -> bool:
        """Speak the current question, then start listening for the answer.

        Re-asking clears the current answer. Returns True once listening.
        """
        if not self.session.audio_unlocked:
            self.session.status = "Press Begin to enable audio."
            return False
        if not self._in_interview():
            return False

        index = self.session.current_index
        text = self.current_text
        self.stop_listening()
        self.player.stop()
        self.session.state = SessionState.ASKING
        self.session.status = "Loading question audio…"

        try:
            audio = await self.api.speak(text)
        except ApiRequestError:
            logger.warning("%s Question audio fetch failed", self._tag, exc_info=True)
            self.session.status = "Couldn't load the question audio. Please try again."
            return False

        if self.session.current_index != index:
            return False
        self.session.answers[index] = ""
        self.session.status = "Asking question…"
        try:
            await self.player.play(audio)
        except PlaybackError as e:
            logger.warning("%s Playback failed: %s", self._tag, e)
            self.session.status = "Audio playback was blocked. Press Ask to try again."
            return False

        # Moved away or cancelled while the audio was playing
        if self.session.current_index != index or self.session.state != SessionState.ASKING:
            return False

        self.start_listening()
        return True

    # -------------------------------------------------------------------------
    # Listening
    # -------------------------------------------------------------------------

    def start_listening(self) -> None:
        """Listen continuously for the current answer until stopped."""
        if not self._in_interview():
            return
        self.session.should_listen = True
        self.session.state = SessionState.LISTENING
        self._start_recognizer()

    def _start_recognizer(self) -> None:
        try:
            self.recognizer.start(self.session.current_index)
        except RecognizerBusyError:
            logger.debug("%s Recognizer already running", self._tag)
        self.session.listening = True
        self.session.status = "Listening…"

    def stop_listening(self) -> None:
        """Stop listening and clear the intent to keep listening."""
        self.session.should_listen = False
        if self.session.listening:
            self.recognizer.stop()
            self.session.listening = False
        if self.session.state == SessionState.LISTENING:
            self._settle_state()
            self.session.status = "Stopped listening."

    def on_recognition_result(self, index: int, text: str) -> None:
        """Append a recognized phrase to the answer for ``index``."""
        transcript = text.strip()
        if not transcript:
            return
        if index != self.session.current_index:
            logger.debug("%s Dropped phrase for stale item %d", self._tag, index)
            return
        existing = self.session.answers[index]
        self.session.answers[index] = f"{existing} {transcript}" if existing else transcript
        logger.debug("%s Recognized %d chars for item %d", self._tag, len(transcript), index)

    def on_recognition_end(self, index: int) -> None:
        """Recognition ended at a phrase boundary; restart while still wanted."""
        self.session.listening = False
        if self.session.should_listen and index == self.session.current_index:
            self._start_recognizer()
            return
        if self.session.state == SessionState.LISTENING:
            self._settle_state()
            self.session.status = "Stopped listening."

    def on_recognition_error(self, index: int, error: str) -> None:
        """Handle a recognizer error; anything but a silent pause needs the user."""
        logger.warning("%s Recognition error on item %d: %s", self._tag, index, error)
        if error in self.BENIGN_RECOGNITION_ERRORS:
            return
        self.session.should_listen = False
        self.session.listening = False
        # Settle now so the end event that follows keeps the error status
        if self.session.state == SessionState.LISTENING:
            self._settle_state()
        if error in self.PERMISSION_ERRORS:
            self.session.status = (
                "Microphone access was denied. Allow it, then press Start Listening."
            )
        else:
            self.session.status = f"Speech recognition error: {error}. Press Start Listening to retry."

    def edit_answer(self, text: str) -> None:
        """Replace the current answer with typed text."""
        if not self._in_interview():
            return
        self.session.answers[self.session.current_index] = text
        if self.session.state != SessionState.LISTENING:
            self._settle_state()

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def _cancel_audio_and_listening(self) -> None:
        self.player.stop()
        self.stop_listening()

    async def advance(self) -> bool:
        """Move to the next question if the current one is answered (and classified)."""
        if not self._in_interview():
            return False

        index = self.session.current_index
        if not self.session.answers[index].strip():
            self.session.status = "Please answer the question before moving on."
            return False
        if self.is_last:
            self.session.status = "That was the last question. Submit when you're ready."
            return False

        self._cancel_audio_and_listening()

        item = self.current_item
        options = classification_options(item)
        if options is not None and item.question_id not in self.session.classifications:
            if not await self._classify(item, options):
                return False

        self.session.current_index = min(index + 1, len(self.sequence) - 1)
        self._settle_state()
        self.session.status = "Press Ask to hear the next question."
        logger.info("%s Advanced to item %d", self._tag, self.session.current_index)
        return True

    async def _classify(self, item: QuestionSequenceItem, options: list[str]) -> bool:
        self.session.state = SessionState.CLASSIFYING
        self.session.status = "Checking your answer…"
        answer = self.session.answers[item.position]

        try:
            response = await self.api.classify(answer, options)
        except ApiRequestError:
            logger.warning("%s Classification request failed", self._tag, exc_info=True)
            self._settle_state()
            self.session.status = "Couldn't process your answer. Please try again."
            return False

        choice = response.get("choice")
        if not choice:
            logger.info("%s Classifier returned no option", self._tag)
            self._settle_state()
            self.session.status = "Couldn't match your answer. Please add a bit more detail and try again."
            return False

        self.session.classifications[item.question_id] = choice
        logger.info("%s Question %d classified as %r", self._tag, item.question_id, choice)
        return True

    def go_back(self) -> bool:
        """Return to the previous question."""
        if not self._in_interview() or self.session.current_index == 0:
            return False
        self._cancel_audio_and_listening()
        self.session.current_index -= 1
        self._settle_state()
        self.session.status = "Press Ask to hear this question again."
        return True

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def request_submit(self) -> bool:
        """Move to contact collection once every question is answered."""
        if not self._in_interview():
            return False
        if not self.is_last:
            self.session.status = "Please finish all the questions first."
            return False
        if not self.session.all_answered:
            self.session.status = "Please answer every question before submitting."
            return False

        self._cancel_audio_and_listening()
        self.session.state = SessionState.COLLECTING_CONTACT
        self.session.status = "Enter your contact details to see your results."
        return True

    def build_transcript(self) -> str:
        """All questions with their answers, in sequence order."""
        answers = self.session.answers
        lines: list[str] = []
        for item in self.sequence:
            text = resolve_question_text(item, answers, item.position)
            lines.append(f"{item_label(item)}: {text}")
            lines.append(f"Answer: {answers[item.position]}")
        return "\n".join(lines)

    async def submit_contact(self, contact: ContactRecord) -> Optional[AssessmentResult]:
        """Validate contact details, store them, and score the interview."""
        if self.session.state != SessionState.COLLECTING_CONTACT:
            return None

        error = validate_contact(contact)
        if error:
            self.session.status = error
            return None

        if self.session.contact is None:
            self.session.contact = contact
            self._capture_contact(contact)

        self.session.state = SessionState.SUBMITTING
        self.session.status = "Scoring your answers…"
        self.session.transcript = self.build_transcript()

        try:
            response = await self.api.query(self.session.transcript)
        except ApiRequestError:
            logger.warning("%s Scoring request failed", self._tag, exc_info=True)
            self.session.state = SessionState.COLLECTING_CONTACT
            self.session.status = "Couldn't score your answers. Please try again."
            return None

        try:
            result = AssessmentResult.parse(response.get("text") or "")
        except ValidationError:
            logger.exception("%s Assessment response could not be parsed", self._tag)
            return None

        self.session.result = result
        self.session.state = SessionState.SCORED
        self.session.status = "Your results are ready."
        logger.info("%s Scored %d%%", self._tag, result.score_percent)
        return result

    def _capture_contact(self, contact: ContactRecord) -> None:
        task = asyncio.create_task(self._send_contact(contact))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _send_contact(self, contact: ContactRecord) -> None:
        try:
            await self.api.subscribe(contact)
        except ApiRequestError:
            logger.warning("%s Contact capture failed", self._tag, exc_info=True)

    async def drain(self) -> None:
        """Wait for background contact capture to finish."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks)
