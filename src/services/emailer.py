import asyncio
import html
import logging
import smtplib
from datetime import datetime, timedelta
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from src.config import Config
from src.db.models import Summary, SummaryStatus

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30


def format_date(value: datetime) -> str:
    return value.strftime("%B ") + str(value.day) + value.strftime(", %Y")


def format_short_date(value: Optional[datetime]) -> str:
    if not value:
        return "Unknown"
    return value.strftime("%b ") + str(value.day) + value.strftime(", %Y")


def build_subject(template: str, now: Optional[datetime] = None) -> str:
    return template.replace("{date}", format_date(now or datetime.now()))


def _render_summary_card(summary: Summary) -> str:
    title = html.escape(summary.video_title)
    thumbnail = html.escape(summary.thumbnail_url)
    url = html.escape(summary.video_url or f"https://www.youtube.com/watch?v={summary.video_id}")

    parts = []
    parts.append('<div style="background:#FEFFC4;border:2px solid #B37BA4;border-radius:16px;margin-bottom:30px;overflow:hidden;">')
    parts.append('  <div style="padding:25px;">')
    parts.append('    <div style="position:relative;display:inline-block;">')
    parts.append(
        '      <img src="{}" alt="{} thumbnail" width="180" height="101" '
        'style="width:180px;height:101px;border-radius:12px;object-fit:cover;border:3px solid #630D5F;display:block;" />'.format(thumbnail, title)
    )
    if summary.duration:
        parts.append(
            '      <div style="position:absolute;bottom:6px;right:6px;background:rgba(28,27,31,0.9);color:#FEFFC4;'
            'padding:3px 8px;border-radius:6px;font-size:12px;font-weight:600;">{}</div>'.format(html.escape(summary.duration))
        )
    parts.append('    </div>')
    parts.append('    <h3 style="margin:12px 0;color:#630D5F;font-size:20px;line-height:1.3;">{}</h3>'.format(title))
    parts.append('    <div style="font-size:14px;color:#1C1B1F;">')
    parts.append('      <span style="color:#B37BA4;font-weight:600;">{}</span>'.format(html.escape(summary.channel_name)))
    if summary.view_count > 0:
        parts.append('      &middot; <span>{:,} views</span>'.format(summary.view_count))
    parts.append('    </div>')
    parts.append('  </div>')
    parts.append(
        '  <div style="border-left:5px solid #BFA359;padding:20px;margin:0 25px 25px;line-height:1.7;">{}</div>'.format(
            html.escape(summary.summary).replace("\n", "<br>")
        )
    )
    parts.append(
        '  <div style="padding:0 25px 10px;color:#B37BA4;font-size:14px;">Published {}</div>'.format(
            format_short_date(summary.published_at)
        )
    )
    parts.append(
        '  <div style="padding:0 25px 25px;"><a href="{}" style="background:#630D5F;color:#FEFFC4;text-decoration:none;'
        'padding:12px 24px;border-radius:25px;font-weight:600;display:inline-block;">Watch Video</a></div>'.format(url)
    )
    parts.append('</div>')
    return "\n".join(parts)


def build_email_html(summaries: list[Summary], now: Optional[datetime] = None) -> str:
    today = format_date(now or datetime.now())
    cards_html = "\n".join(_render_summary_card(s) for s in summaries)

    return """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width,initial-scale=1.0"><title>YouTube Summary Digest</title></head>
<body style="margin:0;padding:20px;background:#F6F3EB;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;color:#1C1B1F;">
<div style="max-width:900px;margin:0 auto;background:#F6F3EB;border-radius:16px;overflow:hidden;">

  <div style="background:#630D5F;color:#FEFFC4;text-align:center;padding:40px 30px;">
    <h1 style="margin:0;font-size:32px;">YouTube Daily Digest</h1>
    <p style="margin:15px 0 0;font-size:18px;">{today}</p>
  </div>

  <div style="background:#BFA359;padding:25px;text-align:center;font-weight:600;">
    {count} video summaries curated for you
  </div>

  <div style="padding:30px;">
{cards}
  </div>

  <div style="text-align:center;padding:30px;background:#1C1B1F;color:#FEFFC4;">
    <p style="margin:8px 0;">Powered by Claude AI</p>
  </div>

</div>
</body>
</html>""".format(today=today, count=len(summaries), cards=cards_html)


def sample_summary() -> Summary:
    now = datetime.now()
    return Summary(
        id="test-001",
        video_id="dQw4w9WgXcQ",
        video_title="Test Video Title",
        channel_name="Test Channel",
        summary=(
            "This is a test summary to verify that the email system is working correctly. "
            "If you receive this email, your YouTube digest email configuration is properly set up."
        ),
        created_at=now,
        status=SummaryStatus.NEW,
        video_url="https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        published_at=now - timedelta(days=1),
        thumbnail_url="https://img.youtube.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
        duration="3:33",
        view_count=1234567890,
    )


class EmailService:
    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        recipient: Optional[str] = None,
        subject_template: Optional[str] = None,
    ):
        self.host = host or Config.SMTP_HOST
        self.port = port or Config.SMTP_PORT
        self.username = username or Config.EMAIL_USERNAME
        self.password = password or Config.EMAIL_PASSWORD
        self.recipient = recipient or Config.EMAIL_RECIPIENT or self.username
        self.subject_template = subject_template or Config.EMAIL_SUBJECT_TEMPLATE

    @property
    def enabled(self) -> bool:
        return bool(self.username and self.password)

    async def send_digest(self, summaries: list[Summary]) -> None:
        """Send the digest email. Raises on failure."""
        if not summaries:
            logger.info("No summaries to send, skipping email digest")
            return

        logger.info(f"Preparing to send email digest with {len(summaries)} summaries")
        for summary in summaries:
            logger.debug(f"Digest entry: {summary.video_title} (thumbnail {summary.thumbnail_url})")

        now = datetime.now()
        subject = build_subject(self.subject_template, now)
        body = build_email_html(summaries, now)

        await asyncio.to_thread(self._send, subject, body)
        logger.info(f"Sent email digest with {len(summaries)} summaries to {self.recipient}")

    async def send_test_email(self) -> None:
        logger.info("Sending test email")
        await self.send_digest([sample_summary()])

    def _send(self, subject: str, body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.username
        msg["To"] = self.recipient
        msg.attach(MIMEText(body, "html"))

        with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS) as server:
            server.starttls()
            server.login(self.username, self.password)
            server.sendmail(self.username, [self.recipient], msg.as_string())
