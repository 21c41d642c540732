"""Configuration loader for the WordPress content client.

Settings come from config/wordpress.yaml when present, overlaid with
WORDPRESS_* environment variables (a .env file is honoured). Every value
can also be passed directly when constructing WordPressSettings; nothing
in the client requires going through this loader.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

WORKSPACE = Path(__file__).resolve().parent.parent
CONFIG_DIR = WORKSPACE / "config"
CONFIG_PATH = CONFIG_DIR / "wordpress.yaml"

DEFAULT_API_URL = "https://cms.example.com/wp-json/wp/v2"
DEFAULT_SITE_URL = "https://example.com"


class CacheTTL(BaseModel):
    """Seconds each class of resource stays cached."""

    posts: float = Field(300.0, gt=0)     # post listings
    post: float = Field(600.0, gt=0)      # single post
    static: float = Field(3600.0, gt=0)   # categories, tags, authors, media


class WordPressSettings(BaseModel):
    base_url: str = DEFAULT_API_URL
    site_url: str = DEFAULT_SITE_URL
    timeout: float = Field(10.0, gt=0)
    retry_attempts: int = Field(3, ge=0)
    retry_delay: float = Field(1.0, ge=0)
    enable_cache: bool = True
    cache_max_size: int = Field(100, ge=1)
    sweep_interval: float = Field(300.0, gt=0)
    cache_ttl: CacheTTL = Field(default_factory=CacheTTL)
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("base_url", "site_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"invalid URL: {value!r}")
        return value.rstrip("/")


# env var -> (settings key, cache_ttl key or None)
_ENV_KEYS = {
    "WORDPRESS_API_URL": ("base_url", None),
    "WORDPRESS_SITE_URL": ("site_url", None),
    "WORDPRESS_API_TIMEOUT": ("timeout", None),
    "WORDPRESS_API_RETRY_ATTEMPTS": ("retry_attempts", None),
    "WORDPRESS_API_RETRY_DELAY": ("retry_delay", None),
    "WORDPRESS_ENABLE_CACHE": ("enable_cache", None),
    "WORDPRESS_CACHE_MAX_SIZE": ("cache_max_size", None),
    "WORDPRESS_CACHE_SWEEP_INTERVAL": ("sweep_interval", None),
    "WORDPRESS_CACHE_TTL_POSTS": ("cache_ttl", "posts"),
    "WORDPRESS_CACHE_TTL_POST": ("cache_ttl", "post"),
    "WORDPRESS_CACHE_TTL_STATIC": ("cache_ttl", "static"),
}


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load config/wordpress.yaml (or ``path``). Missing file -> {}."""
    path = path or CONFIG_PATH
    if not path.exists():
        return {}
    return yaml.safe_load(path.read_text()) or {}


def load_settings(path: Path | None = None, env: dict[str, str] | None = None) -> WordPressSettings:
    """Build settings from the YAML file plus environment overrides."""
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    raw = load_config_file(path)
    for var, (key, ttl_key) in _ENV_KEYS.items():
        value = env.get(var)
        if value is None or value == "":
            continue
        if ttl_key is None:
            raw[key] = value
        else:
            raw.setdefault("cache_ttl", {})[ttl_key] = value

    return WordPressSettings.model_validate(raw)
