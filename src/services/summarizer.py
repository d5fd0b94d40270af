import logging
from pathlib import Path
from typing import Optional, Tuple

from src.services.claude import call_claude
from src.services.errors import ErrorType, SummaryError

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


def load_prompt() -> str:
    """Load prompt template from file."""
    prompt_file = PROMPTS_DIR / "summary.txt"
    if prompt_file.exists():
        return prompt_file.read_text(encoding="utf-8")
    raise FileNotFoundError(f"Prompt file not found: {prompt_file}")


class Summarizer:
    def __init__(self, model: Optional[str] = None):
        self.model = model

    async def summarize(self, transcript: str, title: str) -> Tuple[Optional[str], Optional[SummaryError]]:
        """Summarize a transcript with Claude. Returns (summary, error)."""
        try:
            prompt_template = load_prompt()
        except FileNotFoundError as e:
            logger.error(str(e))
            return None, SummaryError(
                error_type=ErrorType.UNKNOWN,
                message=f"Prompt file not found: {e}",
                video_title=title,
            )

        prompt = prompt_template.format(title=title, transcript=transcript)

        summary, error = await call_claude(prompt, model=self.model)
        if error:
            error.video_title = title
            logger.error(f"Failed to generate summary for: {title}")
            return None, error

        logger.info(f"Generated summary for: {title} ({len(summary)} chars)")
        return summary, None
