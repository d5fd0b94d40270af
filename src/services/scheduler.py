import asyncio
import logging
import signal
from datetime import datetime, timedelta
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.bot.formatters import format_digest_failure, format_error, format_run_report
from src.bot.notifier import AdminNotifier
from src.config import Config
from src.db.ledger import Ledger
from src.db.repositories import SchedulerStateRepository
from src.services.emailer import EmailService
from src.services.processor import RunReport, VideoProcessor

logger = logging.getLogger(__name__)

CYCLE_JOB_ID = "processing_cycle"

CHECK_INTERVALS = {
    "hourly": timedelta(hours=1),
    "daily": timedelta(days=1),
    "weekly": timedelta(days=7),
}

EMAIL_INTERVALS = {
    "daily": timedelta(days=1),
    "weekly": timedelta(days=7),
}


def should_send_email(
    last_email_at: Optional[datetime],
    frequency: str,
    now: Optional[datetime] = None,
) -> bool:
    """Whether enough time has passed since the last digest."""
    if last_email_at is None:
        return True
    now = now or datetime.now()
    return now - last_email_at >= EMAIL_INTERVALS.get(frequency, EMAIL_INTERVALS["daily"])


async def send_pending_digest(
    processor: VideoProcessor,
    ledger: Ledger,
    emailer: EmailService,
    notifier: Optional[AdminNotifier] = None,
) -> bool:
    """Email all pending summaries and mark them processed. Returns True on success."""
    summaries = processor.process_pending_summaries_for_email()
    if not summaries:
        logger.info("No pending summaries to email")
        return True

    try:
        await emailer.send_digest(summaries)
    except Exception as e:
        logger.error(f"Failed to send email digest: {e}")
        if notifier:
            await notifier.send(format_digest_failure(len(summaries), e))
        return False

    # A crash between send and mark re-sends these next cycle
    ledger.mark_summaries_processed([s.id for s in summaries])
    SchedulerStateRepository.update_last_email()
    logger.info(f"Marked {len(summaries)} summaries as processed")
    return True


async def run_cycle(
    processor: VideoProcessor,
    ledger: Ledger,
    emailer: Optional[EmailService] = None,
    notifier: Optional[AdminNotifier] = None,
) -> RunReport:
    """Process new videos, then send the digest if the email frequency allows."""
    logger.info("Starting processing cycle")
    report = await processor.process_new_videos()
    SchedulerStateRepository.update_last_run()

    if notifier:
        for error in report.video_errors:
            await notifier.send(error.to_admin_message())
        if report.errors:
            await notifier.send(
                format_run_report(report.channels_attempted, report.videos_processed, report.errors)
            )

    if emailer is None or not emailer.enabled:
        logger.info("Email not configured, skipping digest")
        return report

    state = SchedulerStateRepository.get()
    if not should_send_email(state.last_email_at, Config.EMAIL_FREQUENCY):
        logger.info(f"Digest not due yet (last sent {state.last_email_at}, frequency {Config.EMAIL_FREQUENCY})")
        return report

    await send_pending_digest(processor, ledger, emailer, notifier)

    stats = processor.get_summary_stats()
    logger.info(f"Cycle completed: {stats['pending_summaries']} summaries pending")
    return report


class CycleJob:
    """Scheduler job that runs one cycle at a time and can cancel it mid-flight."""

    def __init__(
        self,
        processor: VideoProcessor,
        ledger: Ledger,
        emailer: Optional[EmailService] = None,
        notifier: Optional[AdminNotifier] = None,
    ):
        self.processor = processor
        self.ledger = ledger
        self.emailer = emailer
        self.notifier = notifier
        self.stopping = False
        self._task: Optional[asyncio.Task] = None

    async def run(self) -> None:
        if self.stopping:
            return
        self._task = asyncio.ensure_future(
            run_cycle(self.processor, self.ledger, self.emailer, self.notifier)
        )
        try:
            await self._task
        except asyncio.CancelledError:
            if not self.stopping:
                raise
            logger.info("Processing cycle cancelled")
        except Exception as e:
            logger.exception("Processing cycle failed")
            if self.notifier:
                await self.notifier.send(format_error(f"Processing cycle failed: {e}"))
        finally:
            self._task = None

    async def stop(self) -> None:
        """Cancel the running cycle, if any, and wait for it to unwind."""
        self.stopping = True
        task = self._task
        if task and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)


async def run_forever(
    processor: VideoProcessor,
    ledger: Ledger,
    emailer: Optional[EmailService] = None,
    notifier: Optional[AdminNotifier] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """Run a cycle now and then every check interval until stopped.

    Setting stop_event (SIGINT/SIGTERM do) cancels a cycle in progress, so no
    further video is started.
    """
    stop_event = stop_event or asyncio.Event()
    interval = CHECK_INTERVALS.get(Config.CHECK_FREQUENCY, CHECK_INTERVALS["daily"])
    job = CycleJob(processor, ledger, emailer, notifier)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            pass

    job_scheduler = AsyncIOScheduler(event_loop=loop)
    job_scheduler.add_job(
        job.run,
        trigger=IntervalTrigger(seconds=interval.total_seconds()),
        next_run_time=datetime.now(),
        id=CYCLE_JOB_ID,
        name=CYCLE_JOB_ID,
        max_instances=1,
        coalesce=True,
    )
    job_scheduler.start()
    logger.info(f"Scheduler started, checking {Config.CHECK_FREQUENCY} (every {interval})")

    try:
        await stop_event.wait()
    finally:
        await job.stop()
        job_scheduler.shutdown(wait=False)
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except NotImplementedError:
                pass
        logger.info("Scheduler stopped")
