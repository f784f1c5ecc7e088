import gzip
import os
from pathlib import Path

import pytest

DATA_DIR = Path(__file__).parent / "data"
SAMPLE_LOG_PATH = DATA_DIR / "broker_trace_sample.log"


@pytest.fixture(scope="session", autouse=True)
def baseline_settings_env():
    """Provide baseline env vars so tests are not affected by local .env.

    Pydantic-settings precedence: init args > env vars > .env > defaults.
    Setting these ensures stable defaults regardless of any .env present.
    """
    os.environ.update({
        # App
        "APP_NAME": "ClientScan API",
        "APP_VERSION": "0.1.0",
        "APP_DEBUG": "false",
        "APP_ENVIRONMENT": "development",
        # API
        "API_HOST": "0.0.0.0",
        "API_PORT": "8000",
        "API_WORKERS": "1",
        "API_RELOAD": "false",
        "API_LOG_LEVEL": "INFO",
        # Source
        "SOURCE_LOCATION": "",
        "SOURCE_MAX_CONCURRENCY": "4",
        # Scanner
        "SCANNER_RUN_ON_STARTUP": "false",
    })


@pytest.fixture(autouse=True)
def refresh_settings_cache():
    """Clear settings cache so env changes take effect per test.

    Ensures tests using monkeypatch.setenv() get a fresh Settings instance.
    """
    from clientscan.config.settings import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_log_bytes() -> bytes:
    """Raw content of the sample broker log."""
    return SAMPLE_LOG_PATH.read_bytes()


@pytest.fixture
def sample_log_lines() -> list[str]:
    """Lines of the sample broker log."""
    return SAMPLE_LOG_PATH.read_text(encoding="utf-8").splitlines()


@pytest.fixture
def log_dir(tmp_path: Path, sample_log_bytes: bytes) -> Path:
    """A directory of gzipped broker logs laid out like an MSK log delivery prefix."""
    hour_dir = tmp_path / "kafka-logs" / "2025-08-13-12"
    hour_dir.mkdir(parents=True)
    (hour_dir / "broker-1.log.gz").write_bytes(gzip.compress(sample_log_bytes))
    (hour_dir / "broker-2.log.gz").write_bytes(gzip.compress(b""))
    (hour_dir / "README.txt").write_text("not a log file", encoding="utf-8")
    return tmp_path / "kafka-logs"
