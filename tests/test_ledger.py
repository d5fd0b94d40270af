import sqlite3
from datetime import datetime, timedelta

import pytest

from conftest import make_channel
from src.db.database import get_db
from src.db.models import Summary, SummaryStatus
from src.db.repositories import SchedulerStateRepository, SummaryRepository


def make_summary(summary_id: str, created_at: datetime, **kwargs) -> Summary:
    defaults = dict(
        video_id=f"vid_{summary_id}",
        video_title=f"Video {summary_id}",
        channel_name="Channel",
        summary="Summary text",
        video_url=f"https://www.youtube.com/watch?v=vid_{summary_id}",
        published_at=datetime(2024, 3, 1, 9, 30),
        thumbnail_url="https://img.youtube.com/vi/x/hqdefault.jpg",
        duration="4:20",
        view_count=99,
    )
    defaults.update(kwargs)
    return Summary(id=summary_id, created_at=created_at, **defaults)


class TestChannels:
    def test_add_and_list_in_insertion_order(self, ledger):
        ledger.add_channel(make_channel("UC_first", "First"))
        ledger.add_channel(make_channel("UC_second", "Second"))

        channels = ledger.list_channels()

        assert [c.channel_id for c in channels] == ["UC_first", "UC_second"]
        assert channels[0].id is not None
        assert channels[0].created_at is not None

    def test_duplicate_channel_rejected(self, ledger):
        ledger.add_channel(make_channel("UC_dup"))
        with pytest.raises(sqlite3.IntegrityError):
            ledger.add_channel(make_channel("UC_dup"))

    def test_remove_channel(self, ledger):
        ledger.add_channel(make_channel("UC_gone"))

        assert ledger.remove_channel("UC_gone") is True
        assert ledger.remove_channel("UC_gone") is False
        assert ledger.list_channels() == []


class TestProcessedVideos:
    def test_mark_is_idempotent(self, ledger):
        assert not ledger.is_video_processed("v1")

        ledger.mark_video_processed("v1")
        ledger.mark_video_processed("v1")

        assert ledger.is_video_processed("v1")
        with get_db() as conn:
            count = conn.execute("SELECT COUNT(*) FROM processed_videos").fetchone()[0]
        assert count == 1


class TestSummaries:
    def test_round_trip_keeps_metadata(self, ledger):
        created = datetime(2024, 3, 2, 8, 0, 0)
        ledger.save_summary(make_summary("sum_1", created))

        stored = SummaryRepository.get_by_id("sum_1")

        assert stored.status == SummaryStatus.NEW
        assert stored.created_at == created
        assert stored.published_at == datetime(2024, 3, 1, 9, 30)
        assert stored.duration == "4:20"
        assert stored.view_count == 99

    def test_pending_oldest_first(self, ledger):
        now = datetime(2024, 3, 2, 8, 0, 0)
        ledger.save_summary(make_summary("sum_new", now))
        ledger.save_summary(make_summary("sum_old", now - timedelta(hours=1)))

        assert [s.id for s in ledger.list_pending_summaries()] == ["sum_old", "sum_new"]
        assert ledger.count_pending_summaries() == 2

    def test_mark_processed_in_batch(self, ledger):
        now = datetime.now()
        for summary_id in ("a", "b", "c"):
            ledger.save_summary(make_summary(summary_id, now))

        ledger.mark_summaries_processed(["a", "c"])
        ledger.mark_summaries_processed(["a"])

        assert [s.id for s in ledger.list_pending_summaries()] == ["b"]
        assert SummaryRepository.get_by_id("a").status == SummaryStatus.PROCESSED

    def test_mark_processed_empty_list(self, ledger):
        ledger.mark_summaries_processed([])
        assert SummaryRepository.mark_processed([]) == 0

    def test_duplicate_summary_id_rolls_back(self, ledger):
        ledger.save_summary(make_summary("same", datetime.now()))
        with pytest.raises(sqlite3.IntegrityError):
            ledger.save_summary(make_summary("same", datetime.now(), video_id="other"))
        assert ledger.count_pending_summaries() == 1


class TestSchedulerState:
    def test_initial_state_is_empty(self):
        state = SchedulerStateRepository.get()
        assert state.last_run_at is None
        assert state.last_email_at is None

    def test_updates_timestamps(self):
        SchedulerStateRepository.update_last_run()
        SchedulerStateRepository.update_last_email()

        state = SchedulerStateRepository.get()
        assert state.last_run_at is not None
        assert state.last_email_at is not None
        assert state.updated_at is not None
