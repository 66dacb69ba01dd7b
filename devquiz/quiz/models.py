"""Data models for the quiz engine."""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Union


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionType(str, Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"
    FILL = "fill"
    MATCHING = "drag-drop"


class Level(str, Enum):
    """Proficiency level derived from the percentage score."""
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


# ============================================================================
# ANSWER SHAPES
# ============================================================================

@dataclass(frozen=True)
class TextAnswer:
    """Answer to a single-choice or fill-in question."""
    text: str


@dataclass(frozen=True)
class ChoiceAnswer:
    """Answer to a multiple-choice question: the set of picked options."""
    choices: frozenset[str] = frozenset()

    @classmethod
    def of(cls, *choices: str) -> "ChoiceAnswer":
        return cls(frozenset(choices))


@dataclass(frozen=True)
class MatchingAnswer:
    """Answer to a matching question: left item -> right item."""
    pairs: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Read-only copy so a stored answer can't change behind the store's back
        object.__setattr__(self, "pairs", MappingProxyType(dict(self.pairs)))

    def __eq__(self, other):
        if not isinstance(other, MatchingAnswer):
            return NotImplemented
        return dict(self.pairs) == dict(other.pairs)

    def __hash__(self):
        return hash(frozenset(self.pairs.items()))

    def with_pair(self, left: str, right: str) -> "MatchingAnswer":
        pairs = dict(self.pairs)
        pairs[left] = right
        return MatchingAnswer(pairs)

    def without_pair(self, left: str) -> "MatchingAnswer":
        pairs = dict(self.pairs)
        pairs.pop(left, None)
        return MatchingAnswer(pairs)


Answer = Union[TextAnswer, ChoiceAnswer, MatchingAnswer]

# Shape each question type expects for both its correct answer and user answers
ANSWER_SHAPES: dict[QuestionType, type] = {
    QuestionType.SINGLE: TextAnswer,
    QuestionType.FILL: TextAnswer,
    QuestionType.MULTIPLE: ChoiceAnswer,
    QuestionType.MATCHING: MatchingAnswer,
}


# ============================================================================
# QUESTION BANK RECORDS
# ============================================================================

@dataclass(frozen=True)
class Topic:
    id: str
    name: str
    icon: str = ""
    description: str = ""


@dataclass(frozen=True)
class MatchingPair:
    id: str
    left: str
    right: str


@dataclass(frozen=True)
class Question:
    """A single question from the bank."""
    id: str
    topic: str
    difficulty: Difficulty
    type: QuestionType
    prompt: str
    correct_answer: Answer
    explanation: str = ""
    code: str | None = None
    options: tuple[str, ...] = ()
    matching_pairs: tuple[MatchingPair, ...] = ()
    reference: str | None = None

    def right_items(self) -> tuple[str, ...]:
        """Right-hand values of a matching question, in bank order."""
        return tuple(pair.right for pair in self.matching_pairs)


# ============================================================================
# RESULTS
# ============================================================================

@dataclass(frozen=True)
class UserAnswerRecord:
    question_id: str
    answer: Answer | None
    is_correct: bool
    time_taken: int = 0


@dataclass(frozen=True)
class QuizResult:
    score: int
    total_questions: int
    percentage: float
    time_spent: int
    level: Level
    topic: str
    user_answers: tuple[UserAnswerRecord, ...]

    def record_for(self, question_id: str) -> UserAnswerRecord | None:
        for record in self.user_answers:
            if record.question_id == question_id:
                return record
        return None

    @property
    def incorrect(self) -> tuple[UserAnswerRecord, ...]:
        return tuple(r for r in self.user_answers if not r.is_correct)
