import json
import logging
from importlib import resources
from pathlib import Path

from devquiz.quiz.exceptions import QuestionBankError
from devquiz.quiz.models import (
    Answer,
    ChoiceAnswer,
    Difficulty,
    MatchingAnswer,
    MatchingPair,
    Question,
    QuestionType,
    TextAnswer,
    Topic,
)

logger = logging.getLogger(__name__)

COMMON_FIELDS = {"id", "topic", "question", "correct"}

TEXT_FIELDS = ("explanation", "code", "reference")

REQUIRED_FIELDS = {
    QuestionType.SINGLE: COMMON_FIELDS | {"options"},
    QuestionType.MULTIPLE: COMMON_FIELDS | {"options"},
    QuestionType.FILL: COMMON_FIELDS,
    QuestionType.MATCHING: COMMON_FIELDS | {"matching_pairs"},
}


class QuestionBank:
    """Read-only collection of topics and their questions."""

    def __init__(self, topics: list[Topic], questions: list[Question]):
        self._topics = list(topics)
        self._questions = list(questions)
        self._topics_by_id = {t.id: t for t in self._topics}
        self._questions_by_id = {q.id: q for q in self._questions}

    def __len__(self) -> int:
        return len(self._questions)

    @property
    def topics(self) -> list[Topic]:
        return list(self._topics)

    def get_topic(self, topic_id: str) -> Topic | None:
        return self._topics_by_id.get(topic_id)

    def get_question(self, question_id: str) -> Question | None:
        return self._questions_by_id.get(question_id)

    def questions_for(self, topic_id: str) -> list[Question]:
        """All questions of a topic, in bank order."""
        return [q for q in self._questions if q.topic == topic_id]


def load_bank(path: str | Path | None = None) -> QuestionBank:
    """Load the question bank from a JSON file (the bundled bank by default)."""
    try:
        if path:
            raw_text = Path(path).read_text(encoding="utf-8")
        else:
            raw_text = resources.files("devquiz.data").joinpath("questions.json").read_text(encoding="utf-8")
    except OSError as e:
        raise QuestionBankError(f"Cannot read question bank: {e}") from e

    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as e:
        raise QuestionBankError(f"Question bank is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise QuestionBankError("Question bank must be a JSON object with 'topics' and 'questions'")

    return parse_bank(data)


def parse_bank(data: dict) -> QuestionBank:
    """Validate raw bank data once; malformed records are skipped with a warning."""
    raw_topics = data.get("topics", [])
    raw_questions = data.get("questions", [])
    if not isinstance(raw_topics, list) or not isinstance(raw_questions, list):
        raise QuestionBankError("'topics' and 'questions' must be JSON arrays")

    topics = []
    for raw in raw_topics:
        topic = _parse_topic(raw)
        if topic is None:
            logger.warning(f"Skipping invalid topic: {raw}")
            continue
        topics.append(topic)

    known_topics = {t.id for t in topics}
    questions = []
    seen_ids = set()
    for raw in raw_questions:
        question = parse_question(raw)
        if question is None:
            logger.warning(f"Skipping invalid question: {raw}")
            continue
        if question.id in seen_ids:
            logger.warning(f"Skipping duplicate question id: {question.id}")
            continue
        if question.topic not in known_topics:
            logger.warning(f"Question {question.id} refers to unknown topic {question.topic!r}")
        seen_ids.add(question.id)
        questions.append(question)

    logger.info(f"Loaded question bank: {len(topics)} topics, {len(questions)} questions")
    return QuestionBank(topics, questions)


def _parse_topic(raw) -> Topic | None:
    if not isinstance(raw, dict) or not raw.get("id") or not raw.get("name"):
        return None
    return Topic(
        id=str(raw["id"]),
        name=str(raw["name"]),
        icon=str(raw.get("icon", "")),
        description=str(raw.get("description", "")),
    )


def parse_question(raw) -> Question | None:
    """Build a Question from a raw record, or None if the record is inconsistent."""
    if not isinstance(raw, dict):
        return None

    try:
        q_type = QuestionType(raw.get("type"))
        difficulty = Difficulty(raw.get("difficulty", Difficulty.MEDIUM.value))
    except (ValueError, TypeError):
        return None

    if not all(raw.get(name) for name in REQUIRED_FIELDS[q_type]):
        return None
    if not isinstance(raw["question"], str) or not raw["question"].strip():
        return None
    # Optional text fields: null means absent, anything else must be a string
    if not all(isinstance(raw.get(name) or "", str) for name in TEXT_FIELDS):
        return None

    options = raw.get("options") or []
    if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
        return None

    pairs = _parse_pairs(raw.get("matching_pairs") or [])
    if pairs is None:
        return None

    correct = _parse_correct(q_type, raw["correct"], options, pairs)
    if correct is None:
        return None

    return Question(
        id=str(raw["id"]),
        topic=str(raw["topic"]),
        difficulty=difficulty,
        type=q_type,
        prompt=raw["question"],
        correct_answer=correct,
        explanation=raw.get("explanation") or "",
        code=raw.get("code") or None,
        options=tuple(options),
        matching_pairs=pairs,
        reference=raw.get("reference") or None,
    )


def _parse_pairs(raw_pairs) -> tuple[MatchingPair, ...] | None:
    if not isinstance(raw_pairs, list):
        return None
    pairs = []
    for raw in raw_pairs:
        if not isinstance(raw, dict) or not isinstance(raw.get("left"), str) or not isinstance(raw.get("right"), str):
            return None
        if not raw["left"] or not raw["right"]:
            return None
        pairs.append(MatchingPair(id=str(raw.get("id", len(pairs))), left=raw["left"], right=raw["right"]))
    if len({p.left for p in pairs}) != len(pairs):
        return None
    return tuple(pairs)


def _parse_correct(q_type: QuestionType, correct, options: list[str], pairs) -> Answer | None:
    """Check the correct answer's shape against the question type."""
    if q_type == QuestionType.SINGLE:
        if not isinstance(correct, str) or correct not in options:
            return None
        return TextAnswer(correct)

    if q_type == QuestionType.FILL:
        if not isinstance(correct, str):
            return None
        return TextAnswer(correct)

    if q_type == QuestionType.MULTIPLE:
        if not isinstance(correct, list) or not all(isinstance(c, str) for c in correct):
            return None
        if not set(correct) <= set(options):
            return None
        return ChoiceAnswer(frozenset(correct))

    # Matching: keys must be exactly the left items, values the paired right items
    if not isinstance(correct, dict):
        return None
    if set(correct) != {p.left for p in pairs}:
        return None
    rights = {p.right for p in pairs}
    if not all(isinstance(v, str) and v in rights for v in correct.values()):
        return None
    return MatchingAnswer(correct)
