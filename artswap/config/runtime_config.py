"""Runtime configuration helpers for ArtSwap."""
from __future__ import annotations

import os
from typing import Any, Dict, Optional

DEFAULT_PROXY_BASE = "https://corsproxy.io/"
DEFAULT_MEMORY_BASE_URL = "http://localhost/artifacts"


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def _get_float(name: str, default: float) -> float:
    try:
        return float(_get_env(name) or default)
    except ValueError:
        return default


def _get_int(name: str, default: int) -> int:
    try:
        return int(_get_env(name) or default)
    except ValueError:
        return default


def get_storage_backend() -> str:
    return (_get_env("ARTSWAP_STORAGE_BACKEND") or "memory").strip().lower()


def get_bucket() -> Optional[str]:
    return _get_env("ARTSWAP_BUCKET")


def get_gcp_project() -> Optional[str]:
    return _get_env("GCP_PROJECT_ID") or _get_env("GCP_PROJECT")


def get_signed_url_ttl_seconds() -> Optional[int]:
    value = _get_int("ARTSWAP_SIGNED_URL_TTL_SECONDS", 0)
    return value if value > 0 else None


def get_memory_base_url() -> str:
    return _get_env("ARTSWAP_MEMORY_BASE_URL") or DEFAULT_MEMORY_BASE_URL


def get_proxy_base() -> str:
    return _get_env("ARTSWAP_PROXY_BASE") or DEFAULT_PROXY_BASE


def get_fetch_timeout_seconds() -> float:
    return _get_float("ARTSWAP_FETCH_TIMEOUT_SECONDS", 30.0)


def get_draw_seconds() -> int:
    """Countdown length of a drawing round, in ticks."""
    return _get_int("ARTSWAP_DRAW_SECONDS", 30)


def get_tick_seconds() -> float:
    return _get_float("ARTSWAP_TICK_SECONDS", 1.0)


def get_completed_delay_seconds() -> float:
    return _get_float("ARTSWAP_COMPLETED_DELAY_SECONDS", 3.0)


def get_session_idle_seconds() -> Optional[float]:
    """Idle time after which an untouched session is closed; 0 disables expiry."""
    value = _get_float("ARTSWAP_SESSION_IDLE_SECONDS", 3600.0)
    return value if value > 0 else None


def get_log_level() -> str:
    return (_get_env("ARTSWAP_LOG_LEVEL") or "INFO").upper()


def config_snapshot() -> Dict[str, Any]:
    return {
        "storage_backend": get_storage_backend(),
        "bucket": get_bucket(),
        "gcp_project": get_gcp_project(),
        "signed_url_ttl_seconds": get_signed_url_ttl_seconds(),
        "memory_base_url": get_memory_base_url(),
        "proxy_base": get_proxy_base(),
        "fetch_timeout_seconds": get_fetch_timeout_seconds(),
        "draw_seconds": get_draw_seconds(),
        "tick_seconds": get_tick_seconds(),
        "completed_delay_seconds": get_completed_delay_seconds(),
        "session_idle_seconds": get_session_idle_seconds(),
        "log_level": get_log_level(),
    }
