import logging
import random

from devquiz.config import MAX_SESSION_QUESTIONS
from devquiz.quiz.bank import QuestionBank
from devquiz.quiz.models import Question

logger = logging.getLogger(__name__)


def shuffled(items: list, rng: random.Random | None = None) -> list:
    """Return a uniformly shuffled copy of items (Fisher-Yates over indices)."""
    rng = rng or random.SystemRandom()
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def draw_questions(
    bank: QuestionBank,
    topic_id: str,
    limit: int = MAX_SESSION_QUESTIONS,
    rng: random.Random | None = None,
) -> tuple[Question, ...]:
    """Draw up to `limit` questions of a topic in random order. Empty if none match."""
    candidates = bank.questions_for(topic_id)
    if not candidates:
        logger.warning(f"No questions for topic {topic_id!r}")
        return ()
    return tuple(shuffled(candidates, rng)[:limit])
