from devquiz.quiz.models import Answer, ChoiceAnswer, MatchingAnswer


class AnswerStore:
    """Current answer per question id for one session.

    Answers are replaced wholesale; the only merging operations are the
    per-pair ones for matching questions and the option toggle for
    multiple-choice questions, both of which build a new answer value.
    Writes to a closed store are ignored.
    """

    def __init__(self):
        self._answers: dict[str, Answer] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Freeze the store once its session is scored."""
        self._closed = True

    def __len__(self) -> int:
        return len(self._answers)

    def __contains__(self, question_id: str) -> bool:
        return question_id in self._answers

    def get_answer(self, question_id: str) -> Answer | None:
        return self._answers.get(question_id)

    def set_answer(self, question_id: str, value: Answer) -> None:
        if self._closed:
            return
        self._answers[question_id] = value

    def set_pair(self, question_id: str, left: str, right: str) -> None:
        if self._closed:
            return
        current = self._answers.get(question_id)
        if not isinstance(current, MatchingAnswer):
            current = MatchingAnswer()
        self._answers[question_id] = current.with_pair(left, right)

    def clear_pair(self, question_id: str, left: str) -> None:
        if self._closed:
            return
        current = self._answers.get(question_id)
        if not isinstance(current, MatchingAnswer):
            return
        updated = current.without_pair(left)
        if updated.pairs:
            self._answers[question_id] = updated
        else:
            del self._answers[question_id]

    def toggle_choice(self, question_id: str, option: str) -> None:
        if self._closed:
            return
        current = self._answers.get(question_id)
        choices = set(current.choices) if isinstance(current, ChoiceAnswer) else set()
        choices ^= {option}
        if choices:
            self._answers[question_id] = ChoiceAnswer(frozenset(choices))
        else:
            del self._answers[question_id]

    def is_answered(self, question_id: str) -> bool:
        return question_id in self._answers

    def answered_count(self) -> int:
        return len(self._answers)

    def clear(self) -> None:
        if self._closed:
            return
        self._answers.clear()

    def snapshot(self) -> dict[str, Answer]:
        return dict(self._answers)
