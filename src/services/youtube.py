import asyncio
import logging
import re
from datetime import datetime
from typing import Optional, Tuple

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from src.config import Config
from src.db.models import Channel, Video
from src.services.errors import ErrorType, SummaryError

logger = logging.getLogger(__name__)

CHANNEL_ID_PATTERN = re.compile(r"^UC[A-Za-z0-9_-]{22}$")


def get_youtube_client(api_key: Optional[str] = None):
    # httplib2 transports are not thread-safe, so each call builds its own client.
    return build("youtube", "v3", developerKey=api_key or Config.YOUTUBE_API_KEY, cache_discovery=False)


def parse_duration(duration: str) -> int:
    """Parse ISO 8601 duration to seconds."""
    pattern = re.compile(r"P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?")
    match = pattern.match(duration or "")
    if not match:
        return 0
    days = int(match.group(1) or 0)
    hours = int(match.group(2) or 0)
    minutes = int(match.group(3) or 0)
    seconds = int(match.group(4) or 0)
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def format_duration(seconds: int) -> str:
    """Format seconds as M:SS or H:MM:SS. Empty string when unknown."""
    if not seconds:
        return ""
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def parse_published_at(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def classify_http_error(e: HttpError) -> ErrorType:
    status = getattr(e.resp, "status", None)
    if status == 403 and "quota" in str(e).lower():
        return ErrorType.YOUTUBE_API_QUOTA
    return ErrorType.UNKNOWN


def extract_channel_identifier(url: str) -> Optional[tuple[str, str]]:
    """Extract channel identifier from URL. Returns (type, value)."""
    url = url.strip()
    if CHANNEL_ID_PATTERN.match(url):
        return ("channel_id", url)
    if re.match(r"^@[A-Za-z0-9_.-]+$", url):
        return ("handle", url[1:])

    patterns = [
        (r"youtube\.com/channel/([A-Za-z0-9_-]+)", "channel_id"),
        (r"youtube\.com/@([A-Za-z0-9_.-]+)", "handle"),
        (r"youtube\.com/c/([A-Za-z0-9_-]+)", "custom_url"),
        (r"youtube\.com/user/([A-Za-z0-9_-]+)", "username"),
    ]
    for pattern, id_type in patterns:
        match = re.search(pattern, url)
        if match:
            return (id_type, match.group(1))
    return None


def get_channel_info(url: str) -> Optional[Channel]:
    """Get channel information from a URL, handle or channel id."""
    try:
        youtube = get_youtube_client()
        identifier = extract_channel_identifier(url)

        if not identifier:
            logger.error(f"Could not parse channel URL: {url}")
            return None

        id_type, value = identifier

        if id_type == "channel_id":
            response = youtube.channels().list(part="snippet", id=value).execute()
        elif id_type == "handle":
            response = youtube.channels().list(part="snippet", forHandle=value).execute()
        elif id_type == "username":
            response = youtube.channels().list(part="snippet", forUsername=value).execute()
        else:
            response = youtube.search().list(
                part="snippet",
                q=value,
                type="channel",
                maxResults=1,
            ).execute()
            if response.get("items"):
                channel_id = response["items"][0]["snippet"]["channelId"]
                response = youtube.channels().list(part="snippet", id=channel_id).execute()

        if not response.get("items"):
            logger.error(f"Channel not found: {url}")
            return None

        item = response["items"][0]
        return Channel(
            id=None,
            channel_id=item["id"],
            channel_name=item["snippet"]["title"],
            handle=item["snippet"].get("customUrl"),
        )

    except HttpError as e:
        logger.error(f"YouTube API error: {e}")
        return None
    except Exception as e:
        logger.error(f"Error getting channel info: {e}")
        return None


def build_video(search_item: dict, details: Optional[dict]) -> Video:
    """Merge a search result with its videos.list details, if any."""
    video_id = search_item["id"]["videoId"]
    snippet = (details or search_item)["snippet"]
    duration = ""
    view_count = 0
    if details:
        duration = format_duration(parse_duration(details.get("contentDetails", {}).get("duration", "")))
        view_count = int(details.get("statistics", {}).get("viewCount", 0) or 0)

    return Video(
        video_id=video_id,
        title=snippet["title"],
        description=snippet.get("description", ""),
        channel_id=snippet["channelId"],
        channel_name=snippet["channelTitle"],
        published_at=parse_published_at(snippet.get("publishedAt")),
        duration=duration,
        view_count=view_count,
    )


class YouTubeClient:
    """Discovers the most recent uploads of a channel via the YouTube Data API."""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key or Config.YOUTUBE_API_KEY

    async def get_channel_videos(
        self, channel_id: str, max_results: int
    ) -> Tuple[list[Video], Optional[SummaryError]]:
        """Return up to max_results videos, most recent first. Returns (videos, error)."""
        return await asyncio.to_thread(self._get_channel_videos, channel_id, max_results)

    def _get_channel_videos(
        self, channel_id: str, max_results: int
    ) -> Tuple[list[Video], Optional[SummaryError]]:
        try:
            youtube = get_youtube_client(self.api_key)
            response = youtube.search().list(
                part="snippet",
                channelId=channel_id,
                order="date",
                type="video",
                maxResults=max_results,
            ).execute()

            items = [
                item for item in response.get("items", [])
                if item.get("id", {}).get("videoId")
            ]
            if not items:
                return [], None

            details_response = youtube.videos().list(
                part="snippet,contentDetails,statistics",
                id=",".join(item["id"]["videoId"] for item in items),
            ).execute()
            details = {item["id"]: item for item in details_response.get("items", [])}

            videos = []
            for item in items:
                detail = details.get(item["id"]["videoId"])
                snippet = (detail or item)["snippet"]

                # Live or upcoming broadcasts have no transcript yet
                live_status = snippet.get("liveBroadcastContent", "none")
                if live_status in ("live", "upcoming"):
                    logger.debug(f"Skipping live/upcoming: {snippet['title']} ({live_status})")
                    continue

                videos.append(build_video(item, detail))

            logger.info(f"Retrieved {len(videos)} videos from channel {channel_id}")
            return videos, None

        except HttpError as e:
            logger.error(f"YouTube API error for channel {channel_id}: {e}")
            return [], SummaryError(
                error_type=classify_http_error(e),
                message=f"YouTube API error: {e}",
            )
        except Exception as e:
            logger.error(f"Error getting videos for channel {channel_id}: {e}")
            return [], SummaryError(
                error_type=ErrorType.UNKNOWN,
                message=f"Could not fetch channel videos: {e}",
            )
