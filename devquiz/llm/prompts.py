from devquiz.quiz.models import Question, QuizResult
from devquiz.services.review import format_answer, format_correct_answer


def build_feedback_prompt(result: QuizResult, questions: list[Question] | tuple[Question, ...]) -> str:
    by_id = {q.id: q for q in questions}

    mistakes = []
    for record in result.incorrect:
        q = by_id.get(record.question_id)
        if q is None:
            continue
        mistakes.append(
            f"- Question: \"{q.prompt}\"\n"
            f"  - User answered: {format_answer(q, record.answer)}\n"
            f"  - Correct answer: {format_correct_answer(q)}\n"
            f"  - Original explanation: {q.explanation}"
        )

    if mistakes:
        details = "Incorrect answers:\n" + "\n".join(mistakes)
    else:
        details = "The user made no mistakes in this quiz."

    return f"""Below are the results of a programming knowledge quiz taken by a user.

Topic: {result.topic}
Score: {result.score}/{result.total_questions}
Level: {result.level.value}

{details}

Act as an EdTech expert and analyse:
1. The main knowledge gaps the user has, based on the mistakes.
2. Specific topics or keywords the user should review.
3. A short-term learning plan to improve their skills in this topic.

Answer in English, in a professional and encouraging tone, with a clear structure. Keep it under 300 words."""
