import asyncio
import logging
from typing import Optional, Tuple

from youtube_transcript_api import YouTubeTranscriptApi
from youtube_transcript_api._errors import (
    NoTranscriptFound,
    TranscriptsDisabled,
    VideoUnavailable,
)

from src.db.models import TranscriptResult
from src.services.errors import ErrorType, SummaryError

logger = logging.getLogger(__name__)

PREFERRED_LANGUAGES = ["en", "en-US", "en-GB"]


def thumbnail_url_for(video_id: str) -> str:
    # Plain jpg paths without query strings render reliably in email clients
    return f"https://img.youtube.com/vi/{video_id}/hqdefault.jpg"


def join_snippets(transcript) -> str:
    return " ".join(snippet.text.strip() for snippet in transcript if snippet.text.strip())


class TranscriptClient:
    def __init__(self, api: Optional[YouTubeTranscriptApi] = None):
        self.api = api or YouTubeTranscriptApi()

    async def get_transcript_and_thumbnail(
        self, video_id: str
    ) -> Tuple[Optional[TranscriptResult], Optional[SummaryError]]:
        """Fetch transcript text and thumbnail URL. Returns (result, error)."""
        transcript, error = await asyncio.to_thread(self.get_transcript, video_id)
        if error:
            return None, error
        return TranscriptResult(transcript=transcript, thumbnail_url=thumbnail_url_for(video_id)), None

    def get_transcript(self, video_id: str) -> Tuple[Optional[str], Optional[SummaryError]]:
        """Fetch transcript for a YouTube video. Returns (transcript, error)."""
        try:
            text = join_snippets(self.api.fetch(video_id, languages=PREFERRED_LANGUAGES))

        except NoTranscriptFound:
            # Try any available language
            try:
                text = ""
                for available in self.api.list(video_id):
                    text = join_snippets(available.fetch())
                    if text:
                        logger.info(f"Using {available.language_code} transcript for video {video_id}")
                        break
            except Exception:
                logger.warning(f"No transcript found for video {video_id}")
                return None, SummaryError(
                    error_type=ErrorType.NO_TRANSCRIPT,
                    message="No transcript is available for this video.",
                    video_id=video_id,
                )

        except TranscriptsDisabled:
            logger.warning(f"Transcripts are disabled for video {video_id}")
            return None, SummaryError(
                error_type=ErrorType.NO_TRANSCRIPT,
                message="Transcripts are disabled for this video.",
                video_id=video_id,
            )
        except VideoUnavailable:
            logger.warning(f"Video {video_id} is unavailable")
            return None, SummaryError(
                error_type=ErrorType.NO_TRANSCRIPT,
                message="The video is unavailable or private.",
                video_id=video_id,
            )
        except Exception as e:
            logger.error(f"Error fetching transcript for {video_id}: {e}")
            return None, SummaryError(
                error_type=ErrorType.UNKNOWN,
                message=f"Transcript fetch failed: {e}",
                video_id=video_id,
            )

        if not text:
            return None, SummaryError(
                error_type=ErrorType.NO_TRANSCRIPT,
                message="The transcript was empty.",
                video_id=video_id,
            )

        logger.debug(f"Retrieved transcript for video {video_id} ({len(text)} chars)")
        return text, None
