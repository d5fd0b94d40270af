from unittest.mock import patch

import pytest

from conftest import make_channel
from src.config import Config
from src.main import add_channel, list_channels, main, parse_args, required_keys


def test_parse_args():
    args = parse_args(["--once", "--dev"])
    assert args.once and args.dev
    assert parse_args(["--add-channel", "@creator"]).add_channel == "@creator"


def test_add_channel(ledger, capsys):
    with patch("src.main.get_channel_info", return_value=make_channel("UC_new", "New Channel")):
        assert add_channel(ledger, "@new") == 0
        assert add_channel(ledger, "@new") == 0

    assert [c.channel_id for c in ledger.list_channels()] == ["UC_new"]
    assert "already added" in capsys.readouterr().out


def test_add_unknown_channel(ledger):
    with patch("src.main.get_channel_info", return_value=None):
        assert add_channel(ledger, "@nobody") == 1
    assert ledger.list_channels() == []


def test_list_channels(ledger, capsys):
    ledger.add_channel(make_channel("UC_a", "Alpha"))

    list_channels(ledger)

    assert "1. Alpha (UC_a)" in capsys.readouterr().out


def test_required_keys_per_command():
    assert required_keys(parse_args(["--list-channels"])) == ()
    assert required_keys(parse_args(["--remove-channel", "UC_a"])) == ()
    assert required_keys(parse_args(["--stats"])) == ()
    assert required_keys(parse_args(["--test-email"])) == ()
    assert required_keys(parse_args(["--add-channel", "@creator"])) == ("YOUTUBE_API_KEY",)
    assert required_keys(parse_args(["--once"])) == ("YOUTUBE_API_KEY", "ANTHROPIC_API_KEY")
    assert required_keys(parse_args([])) == ("YOUTUBE_API_KEY", "ANTHROPIC_API_KEY")


def test_list_channels_runs_without_api_keys(monkeypatch, capsys):
    monkeypatch.setattr(Config, "YOUTUBE_API_KEY", "")
    monkeypatch.setattr(Config, "ANTHROPIC_API_KEY", "")

    with pytest.raises(SystemExit) as exc:
        main(["--list-channels"])

    assert exc.value.code == 0
    assert "No channels added yet." in capsys.readouterr().out


def test_once_requires_api_keys(monkeypatch):
    monkeypatch.setattr(Config, "YOUTUBE_API_KEY", "")
    monkeypatch.setattr(Config, "ANTHROPIC_API_KEY", "")

    with pytest.raises(SystemExit) as exc:
        main(["--once"])

    assert exc.value.code == 1
