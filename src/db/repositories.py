import sqlite3
from datetime import datetime
from typing import Optional

from src.db.database import get_db
from src.db.models import Channel, SchedulerState, Summary, SummaryStatus


def _to_text(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _to_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _row_to_channel(row: sqlite3.Row) -> Channel:
    return Channel(
        id=row["id"],
        channel_id=row["channel_id"],
        channel_name=row["channel_name"],
        handle=row["handle"],
        created_at=_to_datetime(row["created_at"]),
    )


def _row_to_summary(row: sqlite3.Row) -> Summary:
    return Summary(
        id=row["id"],
        video_id=row["video_id"],
        video_title=row["video_title"],
        channel_name=row["channel_name"],
        summary=row["summary"],
        created_at=_to_datetime(row["created_at"]),
        status=SummaryStatus(row["status"]),
        video_url=row["video_url"] or "",
        published_at=_to_datetime(row["published_at"]),
        thumbnail_url=row["thumbnail_url"] or "",
        duration=row["duration"] or "",
        view_count=row["view_count"] or 0,
    )


class ChannelRepository:
    @staticmethod
    def create(channel: Channel) -> Channel:
        created_at = channel.created_at or datetime.now()
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO channels (channel_id, channel_name, handle, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (channel.channel_id, channel.channel_name, channel.handle, _to_text(created_at)),
            )
            channel.id = cursor.lastrowid
            channel.created_at = created_at
            return channel

    @staticmethod
    def get_by_channel_id(channel_id: str) -> Optional[Channel]:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM channels WHERE channel_id = ?", (channel_id,)
            )
            row = cursor.fetchone()
            return _row_to_channel(row) if row else None

    @staticmethod
    def get_all() -> list[Channel]:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM channels ORDER BY created_at, id")
            return [_row_to_channel(row) for row in cursor.fetchall()]

    @staticmethod
    def delete(channel_id: str) -> bool:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM channels WHERE channel_id = ?", (channel_id,))
            return cursor.rowcount > 0


class ProcessedVideoRepository:
    @staticmethod
    def exists(video_id: str) -> bool:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT 1 FROM processed_videos WHERE video_id = ?", (video_id,)
            )
            return cursor.fetchone() is not None

    @staticmethod
    def mark(video_id: str) -> None:
        # A second mark for the same id keeps the original processed_at.
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT OR IGNORE INTO processed_videos (video_id, processed_at) VALUES (?, ?)",
                (video_id, _to_text(datetime.now())),
            )

    @staticmethod
    def count() -> int:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS total FROM processed_videos")
            return cursor.fetchone()["total"]


class SummaryRepository:
    @staticmethod
    def create(summary: Summary) -> Summary:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO summaries (
                    id, video_id, video_title, channel_name, summary, created_at, status,
                    video_url, published_at, thumbnail_url, duration, view_count
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    summary.id,
                    summary.video_id,
                    summary.video_title,
                    summary.channel_name,
                    summary.summary,
                    _to_text(summary.created_at),
                    SummaryStatus(summary.status).value,
                    summary.video_url,
                    _to_text(summary.published_at),
                    summary.thumbnail_url,
                    summary.duration,
                    summary.view_count,
                ),
            )
            return summary

    @staticmethod
    def get_by_id(summary_id: str) -> Optional[Summary]:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM summaries WHERE id = ?", (summary_id,))
            row = cursor.fetchone()
            return _row_to_summary(row) if row else None

    @staticmethod
    def get_pending() -> list[Summary]:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM summaries WHERE status = ? ORDER BY created_at, rowid",
                (SummaryStatus.NEW.value,),
            )
            return [_row_to_summary(row) for row in cursor.fetchall()]

    @staticmethod
    def count_pending() -> int:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COUNT(*) AS total FROM summaries WHERE status = ?",
                (SummaryStatus.NEW.value,),
            )
            return cursor.fetchone()["total"]

    @staticmethod
    def mark_processed(summary_ids: list[str]) -> int:
        """Move the given summaries from New to Processed. Returns rows changed."""
        if not summary_ids:
            return 0
        placeholders = ", ".join("?" for _ in summary_ids)
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                UPDATE summaries SET status = ?
                WHERE status = ? AND id IN ({placeholders})
                """,
                (SummaryStatus.PROCESSED.value, SummaryStatus.NEW.value, *summary_ids),
            )
            return cursor.rowcount


class SchedulerStateRepository:
    @staticmethod
    def get() -> SchedulerState:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM scheduler_state WHERE id = 1")
            row = cursor.fetchone()
            return SchedulerState(
                id=row["id"],
                last_run_at=_to_datetime(row["last_run_at"]),
                last_email_at=_to_datetime(row["last_email_at"]),
                updated_at=_to_datetime(row["updated_at"]),
            )

    @staticmethod
    def update_last_run() -> None:
        now = _to_text(datetime.now())
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE scheduler_state
                SET last_run_at = ?, updated_at = ?
                WHERE id = 1
                """,
                (now, now),
            )

    @staticmethod
    def update_last_email() -> None:
        now = _to_text(datetime.now())
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE scheduler_state
                SET last_email_at = ?, updated_at = ?
                WHERE id = 1
                """,
                (now, now),
            )
