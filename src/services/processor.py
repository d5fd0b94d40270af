"""Video-processing pipeline.

Channels are processed concurrently up to ``Config.MAX_CONCURRENT_CHANNELS``.
Within a channel, videos are handled one at a time with a fixed delay
between them. A video is summarized at most once: it is marked processed
in the ledger only after its summary has been saved.
"""
import asyncio
import logging
import secrets
import sqlite3
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from src.config import Config
from src.db.ledger import Ledger
from src.db.models import Channel, Summary, SummaryStatus, TranscriptResult, Video
from src.services.errors import ErrorType, SummaryError
from src.services.summarizer import Summarizer
from src.services.transcript import TranscriptClient
from src.services.youtube import YouTubeClient

logger = logging.getLogger(__name__)

INTER_VIDEO_DELAY_SECONDS = 2
TRUNCATION_MARKER = "... [truncated]"
MIN_FALLBACK_LENGTH = 50


@dataclass
class RunReport:
    channels_attempted: int = 0
    videos_processed: int = 0
    videos_skipped: int = 0
    errors: list[str] = field(default_factory=list)
    video_errors: list[SummaryError] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)


def fallback_transcript(video: Video) -> str:
    """Build a stand-in transcript from the video's title and description."""
    text = f"Video Title: {video.title}\n\nVideo Description: {video.description}"
    if len(text) < MIN_FALLBACK_LENGTH:
        text = (
            f"Video Title: {video.title}\n\n"
            "This video discusses topics related to the title. "
            "Please watch the video for detailed content."
        )
    return text


def fallback_thumbnail(video_id: str) -> str:
    return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


def truncate_transcript(transcript: str, max_length: int) -> str:
    if len(transcript) <= max_length:
        return transcript
    return transcript[:max_length] + TRUNCATION_MARKER


def generate_summary_id() -> str:
    try:
        return "sum_" + secrets.token_hex(8)
    except Exception:
        return f"sum_{time.time_ns()}"


class VideoProcessor:
    def __init__(
        self,
        ledger: Ledger,
        discoverer: YouTubeClient,
        transcripts: TranscriptClient,
        summarizer: Summarizer,
        config=Config,
    ):
        self.ledger = ledger
        self.discoverer = discoverer
        self.transcripts = transcripts
        self.summarizer = summarizer
        self.config = config

    async def process_new_videos(self) -> RunReport:
        """Process every monitored channel once.

        Channel failures are collected into the returned report. Only a
        failure to read the channel list is raised.
        """
        channels = self.ledger.list_channels()
        report = RunReport()

        if not channels:
            logger.info("No channels to process")
            return report

        logger.info(f"Processing {len(channels)} channels")
        semaphore = asyncio.Semaphore(self.config.MAX_CONCURRENT_CHANNELS)
        errors: asyncio.Queue = asyncio.Queue(maxsize=len(channels))

        async def worker(channel: Channel) -> None:
            async with semaphore:
                report.channels_attempted += 1
                try:
                    error = await self._process_channel(channel, report)
                except Exception as e:
                    logger.exception(f"Unexpected error processing channel {channel.channel_id}")
                    error = str(e)
                if error:
                    errors.put_nowait(f"{channel.channel_name}: {error}")

        await asyncio.gather(*(worker(channel) for channel in channels))

        while not errors.empty():
            message = errors.get_nowait()
            logger.error(f"Channel processing error: {message}")
            report.errors.append(message)

        if report.errors:
            logger.warning(f"Completed with {report.error_count} channel errors")
        logger.info(
            f"Run finished: {report.channels_attempted} channels, "
            f"{report.videos_processed} videos processed, {report.videos_skipped} skipped"
        )
        return report

    async def _process_channel(self, channel: Channel, report: RunReport) -> Optional[str]:
        """Process one channel's recent videos. Returns an error message, if any."""
        logger.info(f"Processing channel: {channel.channel_name}")

        videos, error = await self.discoverer.get_channel_videos(
            channel.channel_id, self.config.MAX_VIDEOS_PER_CHANNEL
        )
        if error:
            return f"failed to get videos: {error}"

        failures = 0
        for index, video in enumerate(videos):
            if index > 0:
                await asyncio.sleep(INTER_VIDEO_DELAY_SECONDS)

            try:
                processed = self.ledger.is_video_processed(video.video_id)
            except sqlite3.Error as e:
                logger.error(f"Error checking if video {video.video_id} was processed: {e}")
                failures += 1
                continue

            if processed:
                logger.debug(f"Video already processed: {video.video_id}")
                report.videos_skipped += 1
                continue

            logger.info(f"Processing new video: {video.title}")
            try:
                error = await self.process_video(video)
            except Exception as e:
                error = SummaryError(error_type=ErrorType.UNKNOWN, message=str(e), video_id=video.video_id)
            if error:
                logger.error(f"Error processing video {video.video_id}: {error}")
                error.video_title = error.video_title or video.title
                report.video_errors.append(error)
                failures += 1
                continue

            report.videos_processed += 1

        if failures:
            return f"{failures} of {len(videos)} videos failed"
        return None

    async def process_video(self, video: Video) -> Optional[SummaryError]:
        """Summarize one video, save the summary and mark the video processed.

        A video that is already marked processed is left alone.
        """
        try:
            if self.ledger.is_video_processed(video.video_id):
                logger.debug(f"Video already processed: {video.video_id}")
                return None
        except sqlite3.Error as e:
            return SummaryError(
                error_type=ErrorType.LEDGER,
                message=f"Failed to check processed state: {e}",
                video_title=video.title,
                video_id=video.video_id,
            )

        result = await self._get_transcript(video)
        transcript = truncate_transcript(result.transcript, self.config.MAX_TRANSCRIPT_LENGTH)

        summary_text, error = await self.summarizer.summarize(transcript, video.title)
        if error:
            error.video_id = video.video_id
            return error

        summary = Summary(
            id=generate_summary_id(),
            video_id=video.video_id,
            video_title=video.title,
            channel_name=video.channel_name,
            summary=summary_text,
            created_at=datetime.now(),
            status=SummaryStatus.NEW,
            video_url=video.url,
            published_at=video.published_at,
            thumbnail_url=result.thumbnail_url,
            duration=video.duration,
            view_count=video.view_count,
        )

        try:
            self.ledger.save_summary(summary)
        except sqlite3.Error as e:
            return SummaryError(
                error_type=ErrorType.LEDGER,
                message=f"Failed to save summary: {e}",
                video_title=video.title,
                video_id=video.video_id,
            )

        try:
            self.ledger.mark_video_processed(video.video_id)
        except sqlite3.Error as e:
            return SummaryError(
                error_type=ErrorType.LEDGER,
                message=f"Failed to mark video as processed: {e}",
                video_title=video.title,
                video_id=video.video_id,
            )

        logger.info(f"Successfully processed video: {video.title}")
        return None

    async def _get_transcript(self, video: Video) -> TranscriptResult:
        """Fetch transcript and thumbnail, falling back to the video's own metadata."""
        try:
            result, error = await asyncio.wait_for(
                self.transcripts.get_transcript_and_thumbnail(video.video_id),
                timeout=self.config.TRANSCRIPT_TIMEOUT,
            )
        except asyncio.TimeoutError:
            result, error = None, SummaryError(
                error_type=ErrorType.TIMEOUT,
                message=f"Transcript fetch exceeded {self.config.TRANSCRIPT_TIMEOUT} seconds.",
                video_id=video.video_id,
            )
        except Exception as e:
            result, error = None, SummaryError(
                error_type=ErrorType.UNKNOWN,
                message=f"Transcript fetch failed: {e}",
                video_id=video.video_id,
            )

        if result and not error:
            return result

        logger.warning(f"Failed to get transcript for {video.video_id}, using description: {error}")
        return TranscriptResult(
            transcript=fallback_transcript(video),
            thumbnail_url=fallback_thumbnail(video.video_id),
        )

    def process_pending_summaries_for_email(self) -> list[Summary]:
        """Return summaries still waiting to be emailed. Nothing is modified."""
        summaries = self.ledger.list_pending_summaries()
        logger.info(f"Found {len(summaries)} pending summaries for email")
        return summaries

    def get_summary_stats(self) -> dict:
        return {
            "pending_summaries": self.ledger.count_pending_summaries(),
            "last_check": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        }
