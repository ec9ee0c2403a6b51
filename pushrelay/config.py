"""Application configuration loaded from environment variables."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from pushrelay.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class Settings:
  """Typed settings for the push relay service."""

  environment: str
  host: str
  port: int
  log_level: str
  log_dir: str | None
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  scheduler_enabled: bool
  firebase_service_account: dict[str, Any] | None = field(default=None, hash=False, repr=False)

  @property
  def push_configured(self) -> bool:
    """Return True when Firebase credentials were supplied."""
    return self.firebase_service_account is not None


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None or not raw.strip():
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  stripped = raw.strip()
  return stripped or None


def _parse_service_account(raw: str | None) -> dict[str, Any] | None:
  """Decode the service account JSON blob, failing fast on malformed input."""
  value = _optional_str(raw)
  if value is None:
    return None

  try:
    parsed = json.loads(value)
  except json.JSONDecodeError as exc:
    raise ValueError("FIREBASE_SERVICE_ACCOUNT must be a JSON object.") from exc

  if not isinstance(parsed, dict):
    raise ValueError("FIREBASE_SERVICE_ACCOUNT must be a JSON object.")

  return parsed


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("RELAY_ENV", "development").strip().lower()
  host = (os.getenv("RELAY_HOST") or "0.0.0.0").strip()

  port = int(os.getenv("PORT") or "3000")
  if not 0 < port < 65536:
    raise ValueError("PORT must be between 1 and 65535.")

  log_level = (os.getenv("RELAY_LOG_LEVEL") or "INFO").strip().upper()
  if log_level not in _LOG_LEVELS:
    raise ValueError(f"RELAY_LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}.")

  log_max_bytes = int(os.getenv("RELAY_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("RELAY_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("RELAY_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("RELAY_LOG_BACKUP_COUNT must be zero or a positive integer.")

  return Settings(
    environment=environment,
    host=host,
    port=port,
    log_level=log_level,
    log_dir=_optional_str(os.getenv("RELAY_LOG_DIR")),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("RELAY_LOG_HTTP_4XX")),
    scheduler_enabled=_parse_bool(os.getenv("RELAY_SCHEDULER_ENABLED"), default=True),
    firebase_service_account=_parse_service_account(os.getenv("FIREBASE_SERVICE_ACCOUNT")),
  )
