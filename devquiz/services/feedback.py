import asyncio
import logging
from typing import Awaitable, Callable

from devquiz.config import FEEDBACK_FALLBACK, settings
from devquiz.llm.client import chat_completion
from devquiz.llm.prompts import build_feedback_prompt
from devquiz.quiz.models import Question, QuizResult
from devquiz.quiz.session import QuizMachine

logger = logging.getLogger(__name__)

# Keep references so detached tasks are not garbage-collected mid-flight
_pending: set[asyncio.Task] = set()


async def generate_feedback(result: QuizResult, questions: list[Question] | tuple[Question, ...]) -> str:
    """Ask the LLM for narrative feedback. Any failure yields the fallback text."""
    prompt = build_feedback_prompt(result, questions)
    try:
        text = await asyncio.wait_for(chat_completion(prompt), timeout=settings.FEEDBACK_TIMEOUT)
    except asyncio.TimeoutError:
        logger.error(f"Feedback request timed out after {settings.FEEDBACK_TIMEOUT}s")
        return FEEDBACK_FALLBACK
    except Exception:
        logger.exception("Feedback generation failed")
        return FEEDBACK_FALLBACK

    if not text or not text.strip():
        return FEEDBACK_FALLBACK
    return text.strip()


async def _run_feedback(
    machine: QuizMachine,
    session_id: str,
    result: QuizResult,
    questions: tuple[Question, ...],
    deliver: Callable[[str], Awaitable[None]],
) -> None:
    text = await generate_feedback(result, questions)
    if not machine.attach_feedback(session_id, text):
        return
    try:
        await deliver(text)
    except Exception:
        logger.exception(f"Could not deliver feedback for session {session_id}")


def schedule_feedback(
    machine: QuizMachine,
    session_id: str,
    result: QuizResult,
    questions: tuple[Question, ...],
    deliver: Callable[[str], Awaitable[None]],
) -> asyncio.Task:
    """Start feedback generation as a detached task tagged with the session id.

    The caller does not await it. If the session is restarted before the
    task resolves, the late feedback is dropped and `deliver` is not called.
    """
    task = asyncio.create_task(_run_feedback(machine, session_id, result, questions, deliver))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task
