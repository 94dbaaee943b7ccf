from pathlib import Path

import pytest

from portfolio_briefing.config import DEFAULT_AGENT_ID, DEFAULT_SCHEDULE_ID, Config, get_config_safe

_ENV_VARS = [
    "AGENT_API_URL",
    "SCHEDULER_API_URL",
    "AGENT_ID",
    "SCHEDULE_ID",
    "SERVICE_API_KEY",
    "SCHEDULE_LOG_LIMIT",
    "SCHEDULE_LOG_REFRESH_DELAY",
    "UPCOMING_RUN_COUNT",
    "HTTP_TIMEOUT",
    "DEBUG",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BASE_DIR", str(tmp_path))


def test_defaults(tmp_path):
    config = Config()

    assert config.service.agent_id == DEFAULT_AGENT_ID
    assert config.service.schedule_id == DEFAULT_SCHEDULE_ID
    assert config.service.service_api_key is None
    assert config.schedule_view.log_limit == 10
    assert config.schedule_view.log_refresh_delay == 2.0
    assert config.schedule_view.upcoming_run_count == 5
    assert config.system.http_timeout == 30.0
    assert not config.system.debug
    assert config.logging.log_level == "INFO"
    assert Path(config.database_path) == tmp_path / "data" / "preferences.db"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("AGENT_API_URL", "https://agent.example.com/api/agent/")
    monkeypatch.setenv("SCHEDULE_ID", "custom-schedule")
    monkeypatch.setenv("SCHEDULE_LOG_LIMIT", "25")
    monkeypatch.setenv("DEBUG", "yes")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = Config()

    assert config.service.agent_api_url == "https://agent.example.com/api/agent"
    assert config.service.schedule_id == "custom-schedule"
    assert config.schedule_view.log_limit == 25
    assert config.system.debug
    assert config.logging.log_level == "DEBUG"


def test_db_url_creates_data_dir(tmp_path):
    url = Config().get_db_url()

    assert url.startswith("sqlite:///")
    assert (tmp_path / "data").is_dir()


def test_validate_config_notes_missing_api_key():
    warnings = Config().validate_config()

    assert any("SERVICE_API_KEY" in w for w in warnings)


def test_safe_load_reports_invalid_timeout(monkeypatch):
    monkeypatch.setenv("HTTP_TIMEOUT", "0")

    config, errors = get_config_safe()

    assert config is None
    assert len(errors) == 1


def test_safe_load_reports_invalid_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "LOUD")

    config, errors = get_config_safe()

    assert config is None
    assert errors
