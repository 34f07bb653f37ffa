from pathlib import Path

import pytest

from judicial_case_aggregator import config as config_module
from judicial_case_aggregator.config import DEFAULT_API_URL, load_config

ENV_VARS = [
    "JUDICIAL_PORTAL_API_URL",
    "JUDICIAL_PORTAL_BASE_URL",
    "JUDICIAL_PORTAL_TIMEOUT",
    "JUDICIAL_PORTAL_MAX_ATTEMPTS",
    "JUDICIAL_PORTAL_RETRY_BACKOFF",
    "JUDICIAL_PORTAL_RATE_LIMIT",
    "JUDICIAL_PORTAL_DOWNLOAD_DIR",
    "JUDICIAL_PORTAL_LOG_LEVEL",
    "JUDICIAL_PORTAL_LOG_FILE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "load_dotenv", lambda: None)


def test_defaults():
    config = load_config()
    assert config.api_url == DEFAULT_API_URL
    assert config.timeout == 30.0
    assert config.max_attempts == 2
    assert config.download_dir == Path("downloads")
    assert config.log_level == "INFO"
    assert config.log_file is None


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("JUDICIAL_PORTAL_API_URL", "https://mirror.test/api/v2/")
    monkeypatch.setenv("JUDICIAL_PORTAL_TIMEOUT", "5")
    monkeypatch.setenv("JUDICIAL_PORTAL_MAX_ATTEMPTS", "4")
    monkeypatch.setenv("JUDICIAL_PORTAL_DOWNLOAD_DIR", "/tmp/files")
    monkeypatch.setenv("JUDICIAL_PORTAL_LOG_FILE", "logs/portal.log")
    config = load_config()
    assert config.api_url == "https://mirror.test/api/v2"
    assert config.timeout == 5.0
    assert config.max_attempts == 4
    assert config.download_dir == Path("/tmp/files")
    assert config.log_file == Path("logs/portal.log")


def test_zero_attempts_is_clamped(monkeypatch):
    monkeypatch.setenv("JUDICIAL_PORTAL_MAX_ATTEMPTS", "0")
    assert load_config().max_attempts == 1


def test_bad_number_raises(monkeypatch):
    monkeypatch.setenv("JUDICIAL_PORTAL_TIMEOUT", "soon")
    with pytest.raises(ValueError):
        load_config()
