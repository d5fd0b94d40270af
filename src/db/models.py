from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class SummaryStatus(str, Enum):
    NEW = "New"
    PROCESSED = "Processed"


@dataclass
class Channel:
    id: Optional[int]
    channel_id: str
    channel_name: str
    handle: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Video:
    video_id: str
    title: str
    channel_id: str
    channel_name: str
    description: str = ""
    published_at: Optional[datetime] = None
    duration: str = ""
    view_count: int = 0

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}"


@dataclass
class TranscriptResult:
    transcript: str
    thumbnail_url: str


@dataclass
class Summary:
    id: str
    video_id: str
    video_title: str
    channel_name: str
    summary: str
    created_at: datetime
    status: SummaryStatus = SummaryStatus.NEW
    video_url: str = ""
    published_at: Optional[datetime] = None
    thumbnail_url: str = ""
    duration: str = ""
    view_count: int = 0


@dataclass
class SchedulerState:
    id: int
    last_run_at: Optional[datetime] = None
    last_email_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
