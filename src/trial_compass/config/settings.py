from __future__ import annotations

import logging
import os
import threading
import urllib.parse
from typing import Optional

from trial_compass.errors import InputInvalid

logger = logging.getLogger(__name__)
_logged = False

DEFAULT_BACKEND_URL = "https://clinical-trial-copilot.fly.dev"
DEFAULT_HTTP_TIMEOUT = 15.0
DEFAULT_POLL_INTERVAL = 5.0


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return default
    return value


def normalize_base_url(value: str) -> str:
    candidate = (value or "").strip()
    parsed = urllib.parse.urlparse(candidate)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InputInvalid(f"Invalid backend URL: {value!r}")
    return candidate.rstrip("/")


def normalize_session_id(value: Optional[str]) -> str:
    session_id = (value or "").strip()
    if not session_id:
        raise InputInvalid("Session ID must not be empty.")
    return session_id


class BackendSettings:
    """Mutable backend configuration shared by every client.

    The base URL can change at runtime (settings screen, scanned session
    link); clients read it at request time, never at construction.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._base_url = normalize_base_url(base_url or DEFAULT_BACKEND_URL)
        self.http_timeout = http_timeout or DEFAULT_HTTP_TIMEOUT
        self.poll_interval = poll_interval or DEFAULT_POLL_INTERVAL

    @classmethod
    def from_env(cls) -> "BackendSettings":
        env_url = os.getenv("TRIAL_COMPASS_BACKEND_URL", "").strip()
        try:
            base_url = normalize_base_url(env_url) if env_url else DEFAULT_BACKEND_URL
        except InputInvalid:
            logger.warning("Ignoring TRIAL_COMPASS_BACKEND_URL=%r: invalid URL", env_url)
            base_url = DEFAULT_BACKEND_URL
        settings = cls(
            base_url=base_url,
            http_timeout=_float_env("TRIAL_COMPASS_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
            poll_interval=_float_env("TRIAL_COMPASS_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
        )
        _log_settings_once(settings, env_set=bool(env_url))
        return settings

    @property
    def base_url(self) -> str:
        with self._lock:
            return self._base_url

    def set_base_url(self, value: str) -> str:
        normalized = normalize_base_url(value)
        with self._lock:
            previous = self._base_url
            self._base_url = normalized
        if previous != normalized:
            logger.info("Backend URL changed: %s -> %s", previous, normalized)
        return normalized

    def session_url(self, session_id: str, *segments: str) -> str:
        session_id = normalize_session_id(session_id)
        parts = [urllib.parse.quote(session_id, safe="")]
        parts.extend(urllib.parse.quote(segment, safe="") for segment in segments)
        return f"{self.base_url}/api/sessions/{'/'.join(parts)}"


def _log_settings_once(settings: BackendSettings, env_set: bool) -> None:
    global _logged
    if _logged:
        return
    _logged = True
    logger.info(
        "Backend settings: base_url=%s env_set=%s",
        settings.base_url,
        "true" if env_set else "false",
    )
    logger.info(
        "Backend settings: http_timeout=%ss poll_interval=%ss",
        settings.http_timeout,
        settings.poll_interval,
    )


_default_settings: Optional[BackendSettings] = None
_default_lock = threading.Lock()


def get_settings() -> BackendSettings:
    global _default_settings
    with _default_lock:
        if _default_settings is None:
            _default_settings = BackendSettings.from_env()
        return _default_settings
