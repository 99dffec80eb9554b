"""Tests for settings loading, logging setup and the command-line driver."""

from pathlib import Path

import pytest
from loguru import logger
from pydantic import ValidationError

from ghostwatch import cli
from ghostwatch.config import PipelineSettings
from ghostwatch.logger import configure_logging
from ghostwatch.store import PersistenceError


def test_defaults():
    settings = PipelineSettings(_env_file=None)

    assert settings.port == 10204
    assert settings.host == "::"
    assert settings.min_capture_interval == 3600.0
    assert settings.retry_interval == 60.0
    assert settings.view_limit == 200


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("GHOSTWATCH_WORLD", "en123")
    monkeypatch.setenv("GHOSTWATCH_PORT", "8080")
    monkeypatch.setenv("GHOSTWATCH_LOG_LEVEL", "debug")

    settings = PipelineSettings(_env_file=None)

    assert settings.world == "en123"
    assert settings.port == 8080
    assert settings.log_level == "DEBUG"


def test_base_url_needs_world_placeholder():
    with pytest.raises(ValidationError, match="placeholder"):
        PipelineSettings(_env_file=None, base_url="https://example.test/data/")


def test_negative_interval_rejected():
    with pytest.raises(ValidationError):
        PipelineSettings(_env_file=None, min_capture_interval=-1)


def test_file_sink_written_to_log_dir(tmp_path):
    settings = PipelineSettings(_env_file=None, log_dir=tmp_path / "logs", log_level="info")

    try:
        configure_logging(settings, force=True)
        logger.info("hello from the test")
        logger.complete()
        files = list((tmp_path / "logs").glob("ghostwatch_*.log"))
        assert len(files) == 1
    finally:
        logger.remove()
        logger.add(lambda msg: None)


def test_flags_override_settings(tmp_path):
    args = cli.build_parser().parse_args(
        ["--world", "nl5", "--port", "9000", "--database", str(tmp_path / "x.sqlite"), "--once"]
    )

    settings = cli.settings_from_args(args)

    assert settings.world == "nl5"
    assert settings.port == 9000
    assert settings.database_path == Path(tmp_path / "x.sqlite")
    assert args.once


@pytest.fixture
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda settings: None)


def test_main_runs_pipeline_once(monkeypatch, quiet_logging):
    calls = []

    async def fake_run_pipeline(settings, *, serve, once):
        calls.append((settings.world, serve, once))

    monkeypatch.setattr(cli, "run_pipeline", fake_run_pipeline)

    assert cli.main(["--world", "de1", "--once", "--no-server"]) == cli.EXIT_OK
    assert calls == [("de1", False, True)]


def test_main_exits_nonzero_on_fatal_error(monkeypatch, quiet_logging):
    async def fake_run_pipeline(settings, *, serve, once):
        raise PersistenceError("disk full")

    monkeypatch.setattr(cli, "run_pipeline", fake_run_pipeline)

    assert cli.main([]) == cli.EXIT_FATAL


def test_main_rejects_invalid_configuration(monkeypatch, quiet_logging):
    monkeypatch.setenv("GHOSTWATCH_BASE_URL", "https://no-placeholder.test/")

    assert cli.main([]) == cli.EXIT_USAGE
