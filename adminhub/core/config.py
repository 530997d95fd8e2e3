from __future__ import annotations

import os


def _env_str(name: str, default: str | None) -> str | None:
    value = os.environ.get(name)
    if value is None:
        return default
    value = value.strip()
    return value or default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int | None) -> int | None:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


APP_NAME: str = "AdminHub"

DEPLOYER_BASE_URL: str | None = _env_str("ADMINHUB_DEPLOYER_BASE_URL", "http://localhost:8000")
DEPLOYER_API_KEY: str | None = _env_str("ADMINHUB_DEPLOYER_API_KEY", None)
DEPLOYER_API_KEY_HEADER: str = "X-API-Key"
DEPLOYER_TIMEOUT_SECONDS: float = _env_float("ADMINHUB_DEPLOYER_TIMEOUT_SECONDS", 10.0)
LIVENESS_TIMEOUT_SECONDS: float = _env_float("ADMINHUB_LIVENESS_TIMEOUT_SECONDS", 5.0)

POLL_INTERVAL_SECONDS: float = _env_float("ADMINHUB_POLL_INTERVAL_SECONDS", 5.0)

SSE_TIMEOUT_SECONDS: float = _env_float("ADMINHUB_SSE_TIMEOUT_SECONDS", 300.0)
SSE_RECONNECT_MS: int = _env_int("ADMINHUB_SSE_RECONNECT_MS", 1000) or 1000
SSE_QUEUE_SIZE: int = _env_int("ADMINHUB_SSE_QUEUE_SIZE", 32) or 32
SSE_PING_SECONDS: int = _env_int("ADMINHUB_SSE_PING_SECONDS", 15) or 15

# None selects the last data row of the vmstat output.
CPU_SAMPLE_ROW: int | None = _env_int("ADMINHUB_CPU_SAMPLE_ROW", None)

LOG_LEVEL: str = _env_str("ADMINHUB_LOG_LEVEL", "INFO") or "INFO"
