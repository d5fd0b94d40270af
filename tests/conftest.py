"""Shared fixtures: a throwaway SQLite ledger and fake pipeline collaborators."""
import asyncio
from datetime import datetime
from typing import Optional

import pytest

from src.config import Config
from src.db.database import init_db
from src.db.ledger import Ledger
from src.db.models import Channel, TranscriptResult, Video
from src.services import processor as processor_module
from src.services.errors import ErrorType, SummaryError
from src.services.processor import VideoProcessor


@pytest.fixture(autouse=True)
def temp_database(tmp_path, monkeypatch):
    db_path = tmp_path / "test.db"
    monkeypatch.setattr(Config, "DATABASE_PATH", db_path)
    init_db()
    return db_path


@pytest.fixture(autouse=True)
def no_inter_video_delay(monkeypatch):
    monkeypatch.setattr(processor_module, "INTER_VIDEO_DELAY_SECONDS", 0)


def make_video(video_id: str, channel_id: str = "UC_a", **kwargs) -> Video:
    defaults = dict(
        title=f"Title {video_id}",
        channel_name=f"Channel {channel_id}",
        description=f"Description of video {video_id} with enough words to be useful.",
        published_at=datetime(2024, 1, 15, 12, 0, 0),
        duration="10:05",
        view_count=1500,
    )
    defaults.update(kwargs)
    return Video(video_id=video_id, channel_id=channel_id, **defaults)


def make_channel(channel_id: str, name: Optional[str] = None) -> Channel:
    return Channel(id=None, channel_id=channel_id, channel_name=name or f"Channel {channel_id}")


class FakeDiscoverer:
    """Returns canned videos per channel and tracks how many calls overlap."""

    def __init__(self, videos: Optional[dict] = None, errors: Optional[dict] = None, delay: float = 0):
        self.videos = videos or {}
        self.errors = errors or {}
        self.delay = delay
        self.calls: list[tuple[str, int]] = []
        self.active = 0
        self.max_active = 0

    async def get_channel_videos(self, channel_id: str, max_results: int):
        self.calls.append((channel_id, max_results))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if channel_id in self.errors:
                return [], self.errors[channel_id]
            return list(self.videos.get(channel_id, []))[:max_results], None
        finally:
            self.active -= 1


class FakeTranscripts:
    def __init__(self, transcripts: Optional[dict] = None, fail: bool = False, delay: float = 0):
        self.transcripts = transcripts or {}
        self.fail = fail
        self.delay = delay
        self.calls: list[str] = []

    async def get_transcript_and_thumbnail(self, video_id: str):
        self.calls.append(video_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            return None, SummaryError(
                error_type=ErrorType.NO_TRANSCRIPT,
                message="No transcript is available for this video.",
                video_id=video_id,
            )
        text = self.transcripts.get(video_id, f"Transcript for {video_id}")
        return TranscriptResult(
            transcript=text,
            thumbnail_url=f"https://img.youtube.com/vi/{video_id}/hqdefault.jpg",
        ), None


class FakeSummarizer:
    def __init__(self, result: str = "A fixed summary.", fail_titles: Optional[set] = None):
        self.result = result
        self.fail_titles = fail_titles or set()
        self.calls: list[tuple[str, str]] = []

    async def summarize(self, transcript: str, title: str):
        self.calls.append((transcript, title))
        if title in self.fail_titles:
            return None, SummaryError(
                error_type=ErrorType.CLAUDE_TOKEN_LIMIT,
                message="Claude API usage limit reached.",
                video_title=title,
            )
        return self.result, None


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def discoverer():
    return FakeDiscoverer()


@pytest.fixture
def transcripts():
    return FakeTranscripts()


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def processor(ledger, discoverer, transcripts, summarizer):
    return VideoProcessor(
        ledger=ledger,
        discoverer=discoverer,
        transcripts=transcripts,
        summarizer=summarizer,
    )
