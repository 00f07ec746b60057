"""Interview question definitions and the flattened question sequence."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence


class DynamicGenerator(Enum):
    """Ways of computing a question's text from earlier answers."""
    DEEP_DIVE_RECENT = "deep_dive_recent"
    AWS_DEEP_DIVE = "get_aws_deep_dive"

    def resolve(self, answers: Sequence[str], current_index: int) -> str:
        """Build the question text from the answers given before ``current_index``."""
        latest = most_recent_answer(answers, current_index)

        match self:
            case DynamicGenerator.DEEP_DIVE_RECENT:
                if latest:
                    return (
                        f'You mentioned: "{latest}". Can you go one level deeper '
                        "on what makes that so draining?"
                    )
                return "Tell me more about the moment that feels most draining lately."
            case DynamicGenerator.AWS_DEEP_DIVE:
                if latest:
                    return (
                        f'You mentioned earlier: "{latest}". What\'s the ripple effect '
                        "of that on your day-to-day work?"
                    )
                return (
                    "Walk me through one draining moment from your recent workday. "
                    "What happened, and how did it affect you?"
                )


@dataclass(frozen=True)
class Question:
    """A root question in the interview, with its static follow-ups."""
    id: int
    prompt: str
    follow_ups: tuple[str, ...] = ()
    generator: Optional[DynamicGenerator] = None

    @property
    def is_dynamic(self) -> bool:
        return self.generator is not None


@dataclass(frozen=True)
class QuestionSequenceItem:
    """One askable prompt in the flattened interview order."""
    position: int
    question: Question
    root_number: int  # 1-based position among root questions
    follow_up_index: Optional[int] = None  # 0-based
    follow_up_count: int = 0

    @property
    def is_follow_up(self) -> bool:
        return self.follow_up_index is not None

    @property
    def question_id(self) -> int:
        return self.question.id


QUESTIONS: tuple[Question, ...] = (
    Question(
        id=1,
        prompt=(
            "Tell me about the last time you felt completely wiped out. "
            "What was happening that day?"
        ),
    ),
    Question(
        id=2,
        prompt=(
            "When you hit that wiped-out feeling, what drains fastest: your patience "
            "with people, your physical energy, or your ability to think clearly?"
        ),
        follow_ups=("During a typical week, how many days do you feel that way?",),
    ),
    Question(
        id=3,
        prompt="These days, what part of work makes you want to just check out or stop caring?",
        follow_ups=("What's the story behind that? When did you start feeling this way?",),
    ),
    Question(
        id=4,
        prompt=(
            "When you think about your actual skills and what you can do, not how you "
            "feel, how confident are you that you're still good at your work?"
        ),
        follow_ups=("What's one thing you've done recently that reminded you how capable you are?",),
    ),
    Question(
        id=5,
        prompt="DEEP DIVE placeholder",
        generator=DynamicGenerator.DEEP_DIVE_RECENT,
    ),
    Question(
        id=6,
        prompt=(
            "Looking back over the last few months, is this feeling getting better, "
            "staying the same, or getting worse?"
        ),
    ),
)

# Root question ids whose answer must be classified before moving on,
# mapped to the closed option set sent to the classifier.
CLASSIFICATION_OPTIONS: dict[int, list[str]] = {
    2: ["people", "energy", "thinking"],
}


def most_recent_answer(answers: Sequence[str], current_index: int) -> Optional[str]:
    """Return the latest non-blank answer strictly before ``current_index``."""
    for answer in reversed(answers[:current_index]):
        if answer.strip():
            return answer
    return None


def build_sequence(questions: Sequence[Question] = QUESTIONS) -> list[QuestionSequenceItem]:
    """Flatten root questions so each is immediately followed by its follow-ups."""
    items: list[QuestionSequenceItem] = []
    for root_number, question in enumerate(questions, start=1):
        items.append(QuestionSequenceItem(
            position=len(items),
            question=question,
            root_number=root_number,
        ))
        count = len(question.follow_ups)
        for follow_up_index in range(count):
            items.append(QuestionSequenceItem(
                position=len(items),
                question=question,
                root_number=root_number,
                follow_up_index=follow_up_index,
                follow_up_count=count,
            ))
    return items


def resolve_question_text(
    item: QuestionSequenceItem, answers: Sequence[str], current_index: int
) -> str:
    """Get the text to show and speak for a sequence item."""
    if item.is_follow_up:
        return item.question.follow_ups[item.follow_up_index]
    if item.question.generator is not None:
        return item.question.generator.resolve(answers, current_index)
    return item.question.prompt


def item_label(item: QuestionSequenceItem) -> str:
    """Human-readable label, e.g. ``Question 2`` or ``Question 2 (follow-up 1 of 1)``."""
    if item.is_follow_up:
        return (
            f"Question {item.root_number} "
            f"(follow-up {item.follow_up_index + 1} of {item.follow_up_count})"
        )
    return f"Question {item.root_number}"


def classification_options(item: QuestionSequenceItem) -> Optional[list[str]]:
    """Options to classify this item's answer into, or None if it needs none."""
    if item.is_follow_up:
        return None
    return CLASSIFICATION_OPTIONS.get(item.question_id)
