from __future__ import annotations

import os
from functools import lru_cache
from dotenv import load_dotenv, find_dotenv

_env_path = find_dotenv(".env") or ".env"
load_dotenv(_env_path, override=False)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


class Settings:
    """Central configuration (env driven)."""

    def __init__(self) -> None:
        # App meta
        self.app_name: str = "LearnGo Code Runner"
        self.app_env: str = os.getenv("APP_ENV", "dev").strip().lower()
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        # Judge0 / external
        self.judge0_api_url: str = os.getenv("JUDGE0_BASE_URL") or os.getenv("JUDGE0_API_URL", "")
        self.judge0_api_key: str = os.getenv("JUDGE0_KEY") or os.getenv("JUDGE0_API_KEY", "")
        self.judge0_host: str = os.getenv("JUDGE0_HOST", "judge0-ce.p.rapidapi.com")
        self.judge0_timeout_s: float = _float_env("JUDGE0_REQUEST_TIMEOUT_S", 30.0)
        self.judge0_poll_interval_s: float = _int_env("JUDGE0_POLL_INTERVAL_MS", 500) / 1000.0
        # Code execution limits
        self.execution_timeout_s: float = _int_env("CODE_EXECUTION_TIMEOUT", 5000) / 1000.0  # ms in env
        self.memory_limit_kb: int = _int_env("CODE_EXECUTION_MEMORY_LIMIT", 128) * 1024  # MB in env
        self.cpu_time_limit_s: int = _int_env("CODE_EXECUTION_CPU_TIME_LIMIT", 5)
        # Dev-only local fallback
        self.fallback_language: str = os.getenv("CODE_EXECUTION_FALLBACK_LANGUAGE", "go").strip().lower()
        self.local_runner_timeout_s: float = _float_env("LOCAL_RUNNER_TIMEOUT_S", 5.0)
        self.go_binary: str = os.getenv("GO_BINARY", "go")
        # Rate limiting (requests per hour)
        self.rate_limit_execute: int = _int_env("RATE_LIMIT_EXECUTE", 100)
        self.rate_limit_global: int = _int_env("RATE_LIMIT_GLOBAL", 1000)
        # Only honour X-Forwarded-For when a reverse proxy sets it
        self.trust_forwarded_for: bool = os.getenv("TRUST_PROXY_HEADERS", "False").lower() == "true"

    @property
    def is_production(self) -> bool:
        return self.app_env in ("prod", "production")

    @property
    def allow_local_fallback(self) -> bool:
        return not self.is_production


@lru_cache()
def get_settings() -> Settings:
    return Settings()
