"""Configuration settings using pydantic-settings."""
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Telegram Bot
    BOT_TOKEN: str = Field(default="", description="Telegram Bot API token")

    # LLM feedback (any OpenAI-compatible endpoint)
    LLM_BASE_URL: str = Field(
        default="http://localhost:1234/v1",
        description="Base URL of the OpenAI-compatible API"
    )
    LLM_MODEL: str = Field(default="qwen2.5-7b-instruct", description="Model used for feedback")
    LLM_API_KEY: str = Field(default="not-needed", description="API key for the LLM endpoint")
    FEEDBACK_ENABLED: bool = Field(default=True, description="Request AI feedback after each quiz")
    FEEDBACK_TIMEOUT: float = Field(
        default=30.0,
        description="Seconds to wait for feedback before falling back"
    )

    # Question bank
    QUESTION_BANK_PATH: str = Field(
        default="",
        description="Path to a question bank JSON file (bundled bank if empty)"
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    class Config:
        """Pydantic config."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()

MAX_SESSION_QUESTIONS = 10

# Proficiency thresholds (strictly greater than)
ADVANCED_THRESHOLD = 80
INTERMEDIATE_THRESHOLD = 50

FEEDBACK_FALLBACK = (
    "Could not reach the AI assistant for a detailed analysis. "
    "Please go through the explanations in the review instead."
)
