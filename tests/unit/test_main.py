"""Unit tests for the command-line entry point."""

from pathlib import Path

import pytest

from serverpulse.main import build_parser, main


def test_parser_defaults():
    args = build_parser().parse_args([])

    assert args.config == Path("config/default.toml")
    assert args.env_file == Path(".env")
    assert args.log_level is None


def test_placeholder_credentials_exit_nonzero(tmp_path, monkeypatch):
    monkeypatch.delenv("SERVERPULSE_TELEGRAM_BOT_TOKEN", raising=False)
    monkeypatch.delenv("SERVERPULSE_TELEGRAM_STATUS_CHAT_ID", raising=False)
    config = tmp_path / "config.toml"
    config.write_text('[database]\npath = "%s"\n' % (tmp_path / "main.db").as_posix())

    assert main(["--config", str(config), "--env-file", str(tmp_path / ".env")]) == 1
    assert not (tmp_path / "main.db").exists()


def test_invalid_config_exit_nonzero(tmp_path):
    config = tmp_path / "config.toml"
    config.write_text("[status]\nupdate_interval_seconds = 0\n")

    assert main(["--config", str(config), "--env-file", str(tmp_path / ".env"),
                 "--log-level", "DEBUG"]) == 1


def test_log_level_is_case_insensitive():
    assert build_parser().parse_args(["--log-level", "debug"]).log_level == "DEBUG"


def test_unknown_log_level_rejected_by_parser(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--log-level", "loud"])

    assert exc_info.value.code == 2
    assert "invalid choice" in capsys.readouterr().err
