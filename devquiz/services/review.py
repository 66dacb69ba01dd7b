import html

from devquiz.quiz.models import (
    Answer,
    ChoiceAnswer,
    MatchingAnswer,
    Question,
    QuizResult,
    TextAnswer,
)

SKIPPED = "Skipped"

LEVEL_EMOJI = {
    "Advanced": "🏆",
    "Intermediate": "👍",
    "Beginner": "💪",
}


def format_answer(question: Question, answer: Answer | None) -> str:
    """Plain-text rendering of a stored answer."""
    if answer is None:
        return SKIPPED
    if isinstance(answer, TextAnswer):
        return answer.text.strip() or SKIPPED
    if isinstance(answer, ChoiceAnswer):
        if not answer.choices:
            return SKIPPED
        # Keep the order the options were shown in
        ordered = [o for o in question.options if o in answer.choices]
        ordered += sorted(c for c in answer.choices if c not in question.options)
        return ", ".join(ordered)
    if isinstance(answer, MatchingAnswer):
        if not answer.pairs:
            return SKIPPED
        return "; ".join(f"{left} → {right}" for left, right in _ordered_pairs(question, answer))
    return SKIPPED


def format_correct_answer(question: Question) -> str:
    return format_answer(question, question.correct_answer)


def _ordered_pairs(question: Question, answer: MatchingAnswer) -> list[tuple[str, str]]:
    lefts = [p.left for p in question.matching_pairs]
    pairs = [(left, answer.pairs[left]) for left in lefts if left in answer.pairs]
    pairs += [(left, right) for left, right in answer.pairs.items() if left not in lefts]
    return pairs


def format_percentage(percentage: float) -> str:
    return f"{percentage:.1f}".rstrip("0").rstrip(".")


def format_summary(result: QuizResult) -> str:
    """Score card shown right after a quiz is finished."""
    emoji = LEVEL_EMOJI.get(result.level.value, "📊")
    return (
        f"<b>📊 Quiz results</b>\n\n"
        f"📚 Topic: {html.escape(result.topic)}\n"
        f"{emoji} Score: {result.score} / {result.total_questions} "
        f"({format_percentage(result.percentage)}%)\n"
        f"⏱ Time: {result.time_spent}s\n"
        f"🎯 Level: {result.level.value}"
    )


def format_review_item(index: int, question: Question, result: QuizResult) -> str:
    """Detailed review of one question: answer, correct answer, explanation."""
    record = result.record_for(question.id)
    is_correct = record is not None and record.is_correct
    user_answer = record.answer if record else None

    mark = "✅" if is_correct else "❌"
    lines = [
        f"{mark} <b>Q{index + 1}: {html.escape(question.prompt)}</b>",
        f"Your answer: {html.escape(format_answer(question, user_answer))}",
    ]
    if not is_correct:
        lines.append(f"Correct answer: {html.escape(format_correct_answer(question))}")
    if question.explanation:
        lines.append(f"💡 <i>{html.escape(question.explanation)}</i>")
    if question.reference:
        lines.append(f"🔗 {html.escape(question.reference)}")
    return "\n".join(lines)


def format_review(result: QuizResult, questions: tuple[Question, ...] | list[Question]) -> list[str]:
    """Review split into message-sized chunks (Telegram caps a message at 4096 chars)."""
    chunks = []
    current = "<b>🔎 Review</b>"
    for i, q in enumerate(questions):
        item = format_review_item(i, q, result)
        if len(current) + len(item) + 2 > 4000:
            chunks.append(current)
            current = item
        else:
            current += "\n\n" + item
    chunks.append(current)
    return chunks
