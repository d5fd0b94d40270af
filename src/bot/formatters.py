from datetime import datetime
from typing import Optional

TELEGRAM_MAX_LENGTH = 4096


def escape_html(text: str) -> str:
    """Escape only necessary HTML special characters for Telegram."""
    # Telegram only requires &, <, > to be escaped
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def split_message(text: str, max_length: int = TELEGRAM_MAX_LENGTH) -> list[str]:
    """Split long message into multiple parts."""
    if len(text) <= max_length:
        return [text]

    parts = []
    current = ""

    paragraphs = text.split("\n\n")
    for para in paragraphs:
        if len(current) + len(para) + 2 <= max_length:
            current += para + "\n\n"
        else:
            if current:
                parts.append(current.strip())
            if len(para) > max_length:
                words = para.split()
                current = ""
                for word in words:
                    if len(current) + len(word) + 1 <= max_length:
                        current += word + " "
                    else:
                        if current:
                            parts.append(current.strip())
                        current = word + " "
            else:
                current = para + "\n\n"

    if current.strip():
        parts.append(current.strip())

    return parts if parts else [text[:max_length]]


def format_run_report(
    channels_attempted: int,
    videos_processed: int,
    errors: list[str],
    finished_at: Optional[datetime] = None,
) -> str:
    """Format a processing run with channel errors for the admin chat."""
    finished = (finished_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    lines = [
        f"⚠️ <b>Run finished with {len(errors)} channel errors</b>",
        f"Channels: {channels_attempted} · New summaries: {videos_processed}",
        f"Finished: {finished}",
        "",
    ]
    for error in errors:
        lines.append(f"• {escape_html(error)}")
    return "\n".join(lines)


def format_digest_failure(pending: int, error: Exception) -> str:
    return (
        f"📧 <b>Digest email failed</b>\n"
        f"{pending} summaries stay pending and will be sent next time.\n\n"
        f"{escape_html(str(error))}"
    )


def format_error(message: str) -> str:
    """Format error message."""
    return f"❌ {escape_html(message)}"
