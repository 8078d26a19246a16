"""Environment configuration for the trip pipeline."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping


DEFAULT_GEMINI_MODEL = "gemini-2.5-flash-lite"
DEFAULT_LIST_TIMEOUT_SECONDS = 50.0
DEFAULT_IMAGE_TIMEOUT_SECONDS = 50.0


def load_env_file(path: str = ".env") -> None:
    """Copy KEY=VALUE pairs from a dotenv file; variables already set win."""
    env_path = Path(path)
    if not env_path.is_file():
        return

    with env_path.open(encoding="utf-8") as handle:
        for line in handle:
            key, sep, value = line.strip().partition("=")
            key = key.removeprefix("export ").strip()
            if not sep or not key or key.startswith("#"):
                continue
            os.environ.setdefault(key, value.strip().strip("\"'"))


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str | None = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    unsplash_access_key: str | None = None
    db_path: str = "tripdesk.db"
    collection: str = "trips"
    list_timeout_seconds: float = DEFAULT_LIST_TIMEOUT_SECONDS
    image_timeout_seconds: float = DEFAULT_IMAGE_TIMEOUT_SECONDS
    retry_attempts: int = 3
    retry_base_delay_seconds: float = 1.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            gemini_api_key=_blank_to_none(env.get("GEMINI_API_KEY")),
            gemini_model=env.get("TRIPDESK_GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
            unsplash_access_key=_blank_to_none(env.get("UNSPLASH_ACCESS_KEY")),
            db_path=env.get("TRIPDESK_DB_PATH") or "tripdesk.db",
            collection=env.get("TRIPDESK_COLLECTION") or "trips",
            list_timeout_seconds=_as_float(
                env.get("TRIPDESK_LIST_TIMEOUT_SECONDS"), DEFAULT_LIST_TIMEOUT_SECONDS
            ),
            image_timeout_seconds=_as_float(
                env.get("TRIPDESK_IMAGE_TIMEOUT_SECONDS"), DEFAULT_IMAGE_TIMEOUT_SECONDS
            ),
            retry_attempts=int(env.get("TRIPDESK_RETRY_ATTEMPTS") or 3),
            retry_base_delay_seconds=_as_float(env.get("TRIPDESK_RETRY_BASE_DELAY_SECONDS"), 1.0),
        )


def _blank_to_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


def _as_float(value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    return float(value)
