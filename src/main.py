import argparse
import asyncio
import logging
import sys

from src.bot.notifier import AdminNotifier
from src.config import API_KEYS, Config
from src.db.database import init_db
from src.db.ledger import Ledger
from src.services.emailer import EmailService
from src.services.processor import VideoProcessor
from src.services.scheduler import run_cycle, run_forever
from src.services.summarizer import Summarizer
from src.services.transcript import TranscriptClient
from src.services.youtube import YouTubeClient, get_channel_info

logger = logging.getLogger(__name__)


def setup_logging(development: bool = False) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if development else logging.INFO,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.WARNING)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Summarize new videos from monitored YouTube channels and email a digest."
    )
    parser.add_argument("--once", action="store_true", help="run a single processing cycle and exit")
    parser.add_argument("--test-email", action="store_true", help="send a sample digest email and exit")
    parser.add_argument("--dev", action="store_true", help="enable debug logging")
    parser.add_argument("--add-channel", metavar="URL", help="add a channel by URL, @handle or channel id")
    parser.add_argument("--remove-channel", metavar="ID", help="remove a channel by channel id")
    parser.add_argument("--list-channels", action="store_true", help="list monitored channels")
    parser.add_argument("--stats", action="store_true", help="show pending summary statistics")
    return parser.parse_args(argv)


def required_keys(args: argparse.Namespace) -> tuple[str, ...]:
    """API keys the selected command needs."""
    if args.add_channel:
        return ("YOUTUBE_API_KEY",)
    if args.remove_channel or args.list_channels or args.stats or args.test_email:
        return ()
    return API_KEYS


def build_processor(ledger: Ledger) -> VideoProcessor:
    return VideoProcessor(
        ledger=ledger,
        discoverer=YouTubeClient(),
        transcripts=TranscriptClient(),
        summarizer=Summarizer(),
    )


def add_channel(ledger: Ledger, url: str) -> int:
    channel = get_channel_info(url)
    if not channel:
        print(f"Could not find channel: {url}")
        return 1
    if ledger.get_channel(channel.channel_id):
        print(f"Channel already added: {channel.channel_name} ({channel.channel_id})")
        return 0
    ledger.add_channel(channel)
    print(f"Added channel: {channel.channel_name} ({channel.channel_id})")
    return 0


def list_channels(ledger: Ledger) -> int:
    channels = ledger.list_channels()
    if not channels:
        print("No channels added yet.")
        return 0
    for i, channel in enumerate(channels, 1):
        handle = f" {channel.handle}" if channel.handle else ""
        print(f"{i}. {channel.channel_name}{handle} ({channel.channel_id})")
    return 0


async def run(args: argparse.Namespace) -> int:
    ledger = Ledger()

    if args.add_channel:
        return add_channel(ledger, args.add_channel)

    if args.remove_channel:
        if ledger.remove_channel(args.remove_channel):
            print(f"Removed channel {args.remove_channel}")
            return 0
        print(f"Channel not found: {args.remove_channel}")
        return 1

    if args.list_channels:
        return list_channels(ledger)

    processor = build_processor(ledger)

    if args.stats:
        stats = processor.get_summary_stats()
        print(f"Pending summaries: {stats['pending_summaries']}")
        print(f"Last check: {stats['last_check']}")
        return 0

    emailer = EmailService()

    if args.test_email:
        if not emailer.enabled:
            logger.error("EMAIL_USERNAME and EMAIL_PASSWORD are required to send email")
            return 1
        await emailer.send_test_email()
        print(f"Test email sent to {emailer.recipient}")
        return 0

    notifier = AdminNotifier()

    if args.once:
        await run_cycle(processor, ledger, emailer, notifier)
        return 0

    await run_forever(processor, ledger, emailer, notifier)
    return 0


def main(argv=None) -> None:
    """Run the digest."""
    args = parse_args(argv)
    setup_logging(args.dev)

    errors = Config.validate(required_keys(args))
    if errors:
        for error in errors:
            logger.error(error)
        sys.exit(1)

    init_db()
    logger.info("Database initialized")

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
