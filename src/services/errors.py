from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorType(Enum):
    NO_TRANSCRIPT = "no_transcript"
    YOUTUBE_API_QUOTA = "youtube_api_quota"
    CLAUDE_TOKEN_LIMIT = "claude_token_limit"
    TIMEOUT = "timeout"
    LEDGER = "ledger"
    UNKNOWN = "unknown"


@dataclass
class SummaryError:
    error_type: ErrorType
    message: str
    video_title: Optional[str] = None
    video_id: Optional[str] = None

    def __str__(self) -> str:
        if self.video_id:
            return f"{self.error_type.value}: {self.message} (video {self.video_id})"
        return f"{self.error_type.value}: {self.message}"

    def to_admin_message(self) -> str:
        """Format error message for admin notification."""
        from src.bot.formatters import escape_html

        emoji_map = {
            ErrorType.NO_TRANSCRIPT: "📝",
            ErrorType.YOUTUBE_API_QUOTA: "🔑",
            ErrorType.CLAUDE_TOKEN_LIMIT: "🤖",
            ErrorType.TIMEOUT: "⏱️",
            ErrorType.LEDGER: "🗄️",
            ErrorType.UNKNOWN: "❓",
        }

        title_map = {
            ErrorType.NO_TRANSCRIPT: "No transcript",
            ErrorType.YOUTUBE_API_QUOTA: "YouTube API quota exceeded",
            ErrorType.CLAUDE_TOKEN_LIMIT: "Claude usage limit reached",
            ErrorType.TIMEOUT: "Timed out",
            ErrorType.LEDGER: "Ledger error",
            ErrorType.UNKNOWN: "Unknown error",
        }

        emoji = emoji_map.get(self.error_type, "❓")
        title = title_map.get(self.error_type, "Error")

        lines = [f"{emoji} <b>Error: {title}</b>"]

        if self.video_title:
            lines.append(f"Video: {escape_html(self.video_title)}")
        if self.video_id:
            lines.append(f"https://youtu.be/{self.video_id}")

        lines.append(f"\n{escape_html(self.message)}")

        solution = self._get_solution()
        if solution:
            lines.append(f"\n💡 <b>Suggestion:</b> {solution}")

        return "\n".join(lines)

    def _get_solution(self) -> str:
        solutions = {
            ErrorType.NO_TRANSCRIPT: "The summary was built from the title and description instead.",
            ErrorType.YOUTUBE_API_QUOTA: "The daily YouTube API quota resets at midnight Pacific time.",
            ErrorType.CLAUDE_TOKEN_LIMIT: "Claude usage is over the limit. The video will be retried next run.",
            ErrorType.TIMEOUT: "The upstream service was too slow. The video will be retried next run.",
            ErrorType.LEDGER: "Check that the database file is writable.",
            ErrorType.UNKNOWN: "Check the logs for details.",
        }
        return solutions.get(self.error_type, "")
