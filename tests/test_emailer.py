import smtplib
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from src.config import Config
from src.db.models import Summary
from src.services.emailer import (
    EmailService,
    build_email_html,
    build_subject,
    format_short_date,
    sample_summary,
)


def make_summary(**kwargs):
    defaults = dict(
        id="sum_0011223344556677",
        video_id="vid1",
        video_title="Rust & <Python> Interop",
        channel_name="Systems Talk",
        summary="First point.\nSecond point.",
        created_at=datetime(2024, 6, 3, 9, 0),
        video_url="https://www.youtube.com/watch?v=vid1",
        published_at=datetime(2024, 6, 2, 18, 30),
        thumbnail_url="https://img.youtube.com/vi/vid1/hqdefault.jpg",
        duration="14:02",
        view_count=1234567,
    )
    defaults.update(kwargs)
    return Summary(**defaults)


def emailer():
    return EmailService(
        host="smtp.test",
        port=2525,
        username="me@test.com",
        password="secret",
        recipient="you@test.com",
        subject_template="YouTube Summary - {date}",
    )


def test_subject_uses_long_date():
    assert build_subject("YouTube Summary - {date}", datetime(2024, 6, 3)) == "YouTube Summary - June 3, 2024"


def test_short_date():
    assert format_short_date(datetime(2024, 6, 2)) == "Jun 2, 2024"
    assert format_short_date(None) == "Unknown"


def test_card_contents():
    html = build_email_html([make_summary()], now=datetime(2024, 6, 3))

    assert "June 3, 2024" in html
    assert "1 video summaries" in html
    assert "Rust &amp; &lt;Python&gt; Interop" in html
    assert "Systems Talk" in html
    assert "14:02" in html
    assert "1,234,567 views" in html
    assert "First point.<br>Second point." in html
    assert "Published Jun 2, 2024" in html
    assert 'href="https://www.youtube.com/watch?v=vid1"' in html
    assert "Watch Video" in html
    assert 'src="https://img.youtube.com/vi/vid1/hqdefault.jpg"' in html


def test_card_hides_empty_duration_and_views():
    html = build_email_html([make_summary(duration="", view_count=0)])

    assert "views" not in html
    assert "rgba(28,27,31,0.9)" not in html


@pytest.mark.asyncio
async def test_send_digest_uses_smtp():
    with patch("src.services.emailer.smtplib.SMTP") as mock_smtp:
        server = mock_smtp.return_value.__enter__.return_value
        await emailer().send_digest([make_summary()])

    mock_smtp.assert_called_once_with("smtp.test", 2525, timeout=30)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("me@test.com", "secret")
    sender, recipients, message = server.sendmail.call_args.args
    assert sender == "me@test.com"
    assert recipients == ["you@test.com"]
    assert "Subject: YouTube Summary - " in message


@pytest.mark.asyncio
async def test_send_digest_raises_on_failure():
    with patch("src.services.emailer.smtplib.SMTP") as mock_smtp:
        server = mock_smtp.return_value.__enter__.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        with pytest.raises(smtplib.SMTPAuthenticationError):
            await emailer().send_digest([make_summary()])


@pytest.mark.asyncio
async def test_send_digest_skips_empty():
    with patch("src.services.emailer.smtplib.SMTP") as mock_smtp:
        await emailer().send_digest([])
    mock_smtp.assert_not_called()


@pytest.mark.asyncio
async def test_send_test_email():
    service = emailer()
    with patch.object(service, "_send", MagicMock()) as send:
        await service.send_test_email()

    subject, body = send.call_args.args
    assert subject.startswith("YouTube Summary - ")
    assert "dQw4w9WgXcQ" in body
    assert "3:33" in body


def test_sample_summary():
    summary = sample_summary()
    assert summary.video_url == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    assert summary.view_count == 1234567890


def test_enabled_requires_credentials(monkeypatch):
    monkeypatch.setattr(Config, "EMAIL_USERNAME", "")
    monkeypatch.setattr(Config, "EMAIL_PASSWORD", "")

    assert emailer().enabled
    assert not EmailService().enabled
