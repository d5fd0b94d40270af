"""Persistent ledger of monitored channels, processed videos and summaries.

Each call opens its own SQLite connection and commits or rolls back before
returning, so concurrent channel tasks can share one ``Ledger`` instance.
"""
import logging
from typing import Optional

from src.db.models import Channel, Summary
from src.db.repositories import (
    ChannelRepository,
    ProcessedVideoRepository,
    SummaryRepository,
)

logger = logging.getLogger(__name__)


class Ledger:
    def list_channels(self) -> list[Channel]:
        return ChannelRepository.get_all()

    def get_channel(self, channel_id: str) -> Optional[Channel]:
        return ChannelRepository.get_by_channel_id(channel_id)

    def add_channel(self, channel: Channel) -> Channel:
        channel = ChannelRepository.create(channel)
        logger.info(f"Added channel: {channel.channel_name} ({channel.channel_id})")
        return channel

    def remove_channel(self, channel_id: str) -> bool:
        return ChannelRepository.delete(channel_id)

    def is_video_processed(self, video_id: str) -> bool:
        return ProcessedVideoRepository.exists(video_id)

    def mark_video_processed(self, video_id: str) -> None:
        ProcessedVideoRepository.mark(video_id)

    def save_summary(self, summary: Summary) -> None:
        SummaryRepository.create(summary)
        logger.debug(f"Saved summary {summary.id} for video {summary.video_id}")

    def list_pending_summaries(self) -> list[Summary]:
        return SummaryRepository.get_pending()

    def count_pending_summaries(self) -> int:
        return SummaryRepository.count_pending()

    def mark_summaries_processed(self, summary_ids: list[str]) -> None:
        updated = SummaryRepository.mark_processed(summary_ids)
        logger.debug(f"Marked {updated} of {len(summary_ids)} summaries as processed")
