import logging
from typing import Optional, Tuple

import anthropic

from src.config import Config
from src.services.errors import ErrorType, SummaryError

logger = logging.getLogger(__name__)

TIMEOUT_SECONDS = 60
MAX_TOKENS = 1000

_client: Optional[anthropic.AsyncAnthropic] = None


def get_client() -> anthropic.AsyncAnthropic:
    global _client
    if _client is None:
        _client = anthropic.AsyncAnthropic(api_key=Config.ANTHROPIC_API_KEY, timeout=TIMEOUT_SECONDS)
    return _client


async def call_claude(
    prompt: str,
    model: Optional[str] = None,
    client: Optional[anthropic.AsyncAnthropic] = None,
) -> Tuple[Optional[str], Optional[SummaryError]]:
    """Send a single-turn prompt to Claude. Returns (result, error)."""
    client = client or get_client()
    model = model or Config.CLAUDE_MODEL

    try:
        response = await client.messages.create(
            model=model,
            max_tokens=MAX_TOKENS,
            messages=[{"role": "user", "content": prompt}],
        )
    except anthropic.RateLimitError as e:
        logger.error(f"Claude rate limit: {e}")
        return None, SummaryError(
            error_type=ErrorType.CLAUDE_TOKEN_LIMIT,
            message="Claude API usage limit reached.",
        )
    except anthropic.APITimeoutError:
        logger.error(f"Claude API timeout after {TIMEOUT_SECONDS} seconds")
        return None, SummaryError(
            error_type=ErrorType.TIMEOUT,
            message=f"Summary generation exceeded {TIMEOUT_SECONDS} seconds.",
        )
    except anthropic.APIError as e:
        logger.error(f"Claude API error: {e}")
        return None, SummaryError(
            error_type=ErrorType.UNKNOWN,
            message=f"Claude API error: {str(e)[:200]}",
        )

    text = "".join(block.text for block in response.content if getattr(block, "type", "") == "text").strip()
    if not text:
        return None, SummaryError(
            error_type=ErrorType.UNKNOWN,
            message="Claude returned an empty response.",
        )

    usage = getattr(response, "usage", None)
    if usage:
        logger.debug(f"Claude usage: {usage.input_tokens} input / {usage.output_tokens} output tokens")
    return text, None
