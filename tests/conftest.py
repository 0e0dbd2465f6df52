import sys
import os

import pytest

# Ensure repo root on sys.path for imports like `app...`
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app.Core.config import Settings  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    s = Settings()
    s.app_env = "dev"
    s.judge0_api_url = "http://judge.test"
    s.judge0_api_key = ""
    s.judge0_poll_interval_s = 0.01
    s.execution_timeout_s = 2.0
    s.memory_limit_kb = 128 * 1024
    s.cpu_time_limit_s = 5
    s.fallback_language = "go"
    return s
