"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class IngestionSettings:
    """
    Runtime settings for report ingestion and the shared report queue.

    The queue is bounded and pushes wait at most ``enqueue_timeout_seconds``
    before the request fails with a retryable backpressure error.
    """

    queue_max_batches: int = 1024
    enqueue_timeout_seconds: float = 5.0
    disconnect_poll_seconds: float = 0.1
    max_body_bytes: int = 1024 * 1024
    shuffler_worker_enabled: bool = True


@dataclass(frozen=True)
class DecryptionSettings:
    """
    Settings for the external decryption service.
    """

    service_url: str | None = None
    timeout_seconds: float = 5.0


@lru_cache(maxsize=1)
def get_ingestion_settings() -> IngestionSettings:
    """
    Return cached report ingestion settings from environment variables.
    """

    return IngestionSettings(
        queue_max_batches=max(1, _get_int_env("REPORT_QUEUE_MAX_BATCHES", 1024)),
        enqueue_timeout_seconds=max(0.01, _get_float_env("REPORT_ENQUEUE_TIMEOUT_SECONDS", 5.0)),
        disconnect_poll_seconds=max(0.01, _get_float_env("REPORT_DISCONNECT_POLL_SECONDS", 0.1)),
        max_body_bytes=max(1, _get_int_env("REPORT_MAX_BODY_BYTES", 1024 * 1024)),
        shuffler_worker_enabled=_get_bool_env("SHUFFLER_WORKER_ENABLED", True),
    )


@lru_cache(maxsize=1)
def get_decryption_settings() -> DecryptionSettings:
    """
    Return cached decryption service settings from environment variables.
    """

    return DecryptionSettings(
        service_url=_get_optional_str_env("DECRYPTION_SERVICE_URL"),
        timeout_seconds=max(0.1, _get_float_env("DECRYPTION_TIMEOUT_SECONDS", 5.0)),
    )
