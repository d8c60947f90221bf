"""Environment-driven configuration for the chain monitor service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

LOGGER = logging.getLogger(__name__)

DEFAULT_RPC_URL = "https://eth.llamarpc.com"
DEFAULT_BTC_API_BASE = "https://mempool.space/api"
DEFAULT_FRONTEND_DIR = Path(__file__).resolve().parents[2] / "frontend"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved once per process."""

    rpc_url: str = DEFAULT_RPC_URL
    btc_api_base: str = DEFAULT_BTC_API_BASE
    eth_poll_interval: float = 5.0
    btc_poll_interval: float = 7.0
    http_timeout: float = 15.0
    observer_queue_size: int = 1000
    scanners_enabled: bool = True
    cors_allow_origins: Tuple[str, ...] = ("*",)
    frontend_dir: Path = DEFAULT_FRONTEND_DIR
    host: str = "0.0.0.0"
    port: int = 4000
    log_level: str = "INFO"


def _read_number(name: str, default: float, cast=float, minimum: Optional[float] = None):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _read_origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return ["*"]
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]


def load_settings() -> Settings:
    """Build settings from the current environment, validating numeric values."""
    eth_interval = _read_number("ETH_POLL_INTERVAL", 5.0)
    btc_interval = _read_number("BTC_POLL_INTERVAL", 7.0)
    if eth_interval <= 0 or btc_interval <= 0:
        raise ValueError("ETH_POLL_INTERVAL and BTC_POLL_INTERVAL must be positive")

    frontend = os.getenv("FRONTEND_DIR")

    return Settings(
        rpc_url=os.getenv("RPC_URL") or DEFAULT_RPC_URL,
        btc_api_base=(os.getenv("BTC_API_BASE") or DEFAULT_BTC_API_BASE).rstrip("/"),
        eth_poll_interval=eth_interval,
        btc_poll_interval=btc_interval,
        http_timeout=_read_number("HTTP_TIMEOUT", 15.0, minimum=1),
        observer_queue_size=_read_number("OBSERVER_QUEUE_SIZE", 1000, cast=int, minimum=1),
        scanners_enabled=os.getenv("SCANNERS_ENABLED", "true").strip().lower() in _TRUTHY,
        cors_allow_origins=tuple(_read_origins(os.getenv("CORS_ALLOW_ORIGINS"))),
        frontend_dir=Path(frontend) if frontend else DEFAULT_FRONTEND_DIR,
        host=os.getenv("HOST", "0.0.0.0"),
        port=_read_number("PORT", 4000, cast=int, minimum=1),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached process settings."""
    settings = load_settings()
    LOGGER.debug("Loaded settings: rpc=%s btc=%s", settings.rpc_url, settings.btc_api_base)
    return settings


__all__ = ["Settings", "get_settings", "load_settings"]
