import logging
from openai import AsyncOpenAI

from devquiz.config import settings

logger = logging.getLogger(__name__)

_client = AsyncOpenAI(base_url=settings.LLM_BASE_URL, api_key=settings.LLM_API_KEY)


async def chat_completion(prompt: str, temperature: float = 0.7, max_tokens: int = 2048) -> str | None:
    """Send a prompt to the LLM endpoint and return the response text."""
    try:
        response = await _client.chat.completions.create(
            model=settings.LLM_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content
    except Exception as e:
        logger.error(f"LLM request failed: {e}")
        return None
