"""Main entry point for DevQuiz."""
import asyncio
import logging
import sys

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import BotCommand

from devquiz.config import settings
from devquiz.handlers import start, topic, quiz, results
from devquiz.quiz.bank import load_bank
from devquiz.quiz.exceptions import QuestionBankError
from devquiz.quiz.session import QuizRegistry

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


async def main():
    if not settings.BOT_TOKEN:
        logger.error("BOT_TOKEN is not set. Create a .env file based on .env.example")
        sys.exit(1)

    try:
        bank = load_bank(settings.QUESTION_BANK_PATH or None)
    except QuestionBankError as e:
        logger.error(f"Cannot start without a question bank: {e}")
        sys.exit(1)

    bot = Bot(token=settings.BOT_TOKEN)
    dp = Dispatcher(storage=MemoryStorage())

    # Per-user quiz state machines, injected into handlers as `quizzes`
    dp["quizzes"] = QuizRegistry(bank)

    dp.include_router(start.router)
    dp.include_router(topic.router)
    dp.include_router(quiz.router)
    dp.include_router(results.router)

    await bot.set_my_commands([
        BotCommand(command="start", description="Main menu"),
    ])

    try:
        logger.info("Starting bot polling...")
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        await bot.session.close()
        logger.info("Bot stopped")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
