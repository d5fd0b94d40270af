import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).parent.parent
DATA_DIR = BASE_DIR / "data"
DATA_DIR.mkdir(exist_ok=True)

CHECK_FREQUENCIES = ("hourly", "daily", "weekly")
EMAIL_FREQUENCIES = ("daily", "weekly")
API_KEYS = ("YOUTUBE_API_KEY", "ANTHROPIC_API_KEY")

# search.list rejects a larger maxResults
MAX_SEARCH_RESULTS = 50


class Config:
    YOUTUBE_API_KEY: str = os.getenv("YOUTUBE_API_KEY", "")
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
    CLAUDE_MODEL: str = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-20250514")

    # Pipeline
    MAX_CONCURRENT_CHANNELS: int = int(os.getenv("MAX_CONCURRENT_CHANNELS", "3"))
    MAX_VIDEOS_PER_CHANNEL: int = int(os.getenv("MAX_VIDEOS_PER_CHANNEL", "5"))
    TRANSCRIPT_TIMEOUT: float = float(os.getenv("TRANSCRIPT_TIMEOUT", "30"))
    MAX_TRANSCRIPT_LENGTH: int = int(os.getenv("MAX_TRANSCRIPT_LENGTH", "15000"))

    CHECK_FREQUENCY: str = os.getenv("CHECK_FREQUENCY", "daily")
    EMAIL_FREQUENCY: str = os.getenv("EMAIL_FREQUENCY", "daily")

    # Email
    SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    EMAIL_USERNAME: str = os.getenv("EMAIL_USERNAME", "")
    EMAIL_PASSWORD: str = os.getenv("EMAIL_PASSWORD", "")
    EMAIL_RECIPIENT: str = os.getenv("EMAIL_RECIPIENT", "") or EMAIL_USERNAME
    EMAIL_SUBJECT_TEMPLATE: str = os.getenv("EMAIL_SUBJECT_TEMPLATE", "YouTube Summary - {date}")

    # Optional admin alerts
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    ADMIN_CHAT_ID: int = int(os.getenv("ADMIN_CHAT_ID", "0"))

    DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", str(DATA_DIR / "digest.db")))

    @classmethod
    def validate(cls, required_keys: tuple[str, ...] = API_KEYS) -> list[str]:
        errors = []
        for key in required_keys:
            if not getattr(cls, key):
                errors.append(f"{key} is required")
        if cls.MAX_CONCURRENT_CHANNELS <= 0:
            errors.append("MAX_CONCURRENT_CHANNELS must be greater than 0")
        if cls.MAX_VIDEOS_PER_CHANNEL <= 0:
            errors.append("MAX_VIDEOS_PER_CHANNEL must be greater than 0")
        elif cls.MAX_VIDEOS_PER_CHANNEL > MAX_SEARCH_RESULTS:
            errors.append(f"MAX_VIDEOS_PER_CHANNEL must be at most {MAX_SEARCH_RESULTS}")
        if cls.TRANSCRIPT_TIMEOUT <= 0:
            errors.append("TRANSCRIPT_TIMEOUT must be greater than 0")
        if cls.MAX_TRANSCRIPT_LENGTH <= 0:
            errors.append("MAX_TRANSCRIPT_LENGTH must be greater than 0")
        if cls.CHECK_FREQUENCY not in CHECK_FREQUENCIES:
            errors.append(f"CHECK_FREQUENCY must be one of {', '.join(CHECK_FREQUENCIES)}")
        if cls.EMAIL_FREQUENCY not in EMAIL_FREQUENCIES:
            errors.append(f"EMAIL_FREQUENCY must be one of {', '.join(EMAIL_FREQUENCIES)}")
        if cls.SMTP_PORT <= 0:
            errors.append("SMTP_PORT must be greater than 0")
        return errors
