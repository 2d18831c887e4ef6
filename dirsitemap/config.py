from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import urlparse, urlunparse

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .mtime import METHOD_NAMES

# 70% of the protocol's 50,000 URL ceiling per file.
DEFAULT_MAX_ENTRIES = 35_000
PROTOCOL_MAX_ENTRIES = 50_000


def _resolve_env_file() -> str | None:
    env_file = (os.getenv("SITEMAP_ENV_FILE", ".env") or "").strip()
    if not env_file:
        return None
    return env_file if os.path.exists(env_file) else None


def normalize_base_url(raw: str) -> str:
    value = raw.strip()
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Unsupported URL scheme: {parsed.scheme or '(none)'}")
    if not parsed.hostname:
        raise ValueError(f"Base URL has no host: {raw}")
    if parsed.query or parsed.fragment:
        raise ValueError(f"Base URL must not carry a query or fragment: {raw}")
    path = parsed.path.rstrip("/")
    return urlunparse((parsed.scheme, parsed.netloc, path, "", "", ""))


class SitemapSettings(BaseSettings):
    """Run configuration, built once at startup and passed to every stage."""

    # Environment first, command line values override.
    model_config = SettingsConfigDict(
        env_prefix="SITEMAP_",
        extra="ignore",
        frozen=True,
        env_file=_resolve_env_file(),
        env_file_encoding="utf-8",
    )

    root: Path = Path(".")
    base_url: str
    max_entries: int = DEFAULT_MAX_ENTRIES
    # <0 quiet, 0 default, 1 info, 2+ debug
    verbosity: int = 0
    dry_run: bool = False
    parse_only: bool = False
    # auto | os-stat | gnu-stat | bsd-stat | ls
    mtime_method: str = "auto"
    excludes: tuple[str, ...] = ()

    @field_validator("root")
    @classmethod
    def _absolute_root(cls, value: Path) -> Path:
        return value.expanduser().resolve()

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        return normalize_base_url(value)

    @field_validator("max_entries")
    @classmethod
    def _check_max_entries(cls, value: int) -> int:
        if value < 1 or value > PROTOCOL_MAX_ENTRIES:
            raise ValueError(f"max entries must be between 1 and {PROTOCOL_MAX_ENTRIES}")
        return value

    @field_validator("mtime_method")
    @classmethod
    def _check_mtime_method(cls, value: str) -> str:
        if value != "auto" and value not in METHOD_NAMES:
            raise ValueError(f"unknown mtime method: {value}")
        return value
