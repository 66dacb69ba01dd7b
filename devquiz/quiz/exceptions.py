"""Custom exceptions for the quiz engine."""


class QuizError(Exception):
    """Base exception for quiz engine errors."""
    pass


class QuestionBankError(QuizError):
    """Question bank file is missing or is not a valid bank document."""
    pass
