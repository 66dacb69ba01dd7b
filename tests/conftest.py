"""Shared fixtures for quiz tests."""
import random

import pytest

from devquiz.quiz.bank import parse_bank
from devquiz.quiz.models import (
    ChoiceAnswer,
    Difficulty,
    MatchingAnswer,
    MatchingPair,
    Question,
    QuestionType,
    TextAnswer,
)


@pytest.fixture
def single_question():
    return Question(
        id="q-single",
        topic="topic-x",
        difficulty=Difficulty.EASY,
        type=QuestionType.SINGLE,
        prompt="Capital of France?",
        options=("Paris", "Berlin", "Rome"),
        correct_answer=TextAnswer(" paris "),
        explanation="Paris is the capital.",
    )


@pytest.fixture
def fill_question():
    return Question(
        id="q-fill",
        topic="topic-x",
        difficulty=Difficulty.MEDIUM,
        type=QuestionType.FILL,
        prompt="A function remembering its scope is a ___.",
        correct_answer=TextAnswer("closure"),
        explanation="Closures capture their lexical environment.",
    )


@pytest.fixture
def multiple_question():
    return Question(
        id="q-multi",
        topic="topic-x",
        difficulty=Difficulty.MEDIUM,
        type=QuestionType.MULTIPLE,
        prompt="Pick the vowels.",
        options=("A", "B", "C", "E"),
        correct_answer=ChoiceAnswer.of("A", "E"),
    )


@pytest.fixture
def matching_question():
    return Question(
        id="q-match",
        topic="topic-x",
        difficulty=Difficulty.HARD,
        type=QuestionType.MATCHING,
        prompt="Match letters to digits.",
        matching_pairs=(
            MatchingPair(id="1", left="A", right="1"),
            MatchingPair(id="2", left="B", right="2"),
        ),
        correct_answer=MatchingAnswer({"A": "1", "B": "2"}),
        explanation="A is first, B is second.",
    )


@pytest.fixture
def raw_bank():
    """Bank document with three questions in Topic-X and twelve in Big."""
    questions = [
        {
            "id": "x-1", "topic": "topic-x", "difficulty": "easy", "type": "single",
            "question": "2 + 2?", "options": ["3", "4"], "correct": "4",
            "explanation": "Basic arithmetic.",
        },
        {
            "id": "x-2", "topic": "topic-x", "difficulty": "medium", "type": "fill",
            "question": "Keyword for generators?", "correct": "yield",
            "explanation": "yield makes a generator.",
        },
        {
            "id": "x-3", "topic": "topic-x", "difficulty": "hard", "type": "drag-drop",
            "question": "Match.",
            "matching_pairs": [
                {"id": "1", "left": "A", "right": "1"},
                {"id": "2", "left": "B", "right": "2"},
            ],
            "correct": {"A": "1", "B": "2"},
            "explanation": "In order.",
        },
    ]
    questions += [
        {
            "id": f"big-{i}", "topic": "big", "difficulty": "easy", "type": "fill",
            "question": f"Echo {i}", "correct": str(i), "explanation": "",
        }
        for i in range(12)
    ]
    return {
        "topics": [
            {"id": "topic-x", "name": "Topic-X", "icon": "🧪", "description": "Three questions."},
            {"id": "big", "name": "Big topic", "icon": "📦", "description": "Twelve questions."},
            {"id": "empty", "name": "Empty topic"},
        ],
        "questions": questions,
    }


@pytest.fixture
def bank(raw_bank):
    return parse_bank(raw_bank)


@pytest.fixture
def rng():
    """Seeded random source for reproducible draws."""
    return random.Random(1234)
