"""Session links shared by the web app as QR code JSON."""

from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import BaseModel

from trial_compass.config.settings import BackendSettings

logger = logging.getLogger(__name__)


class SessionLink(BaseModel):
    session_id: Optional[str] = None
    backend_url: Optional[str] = None


def parse_session_link(text: str) -> SessionLink:
    """Read ``{"session_id": ..., "backend_url": ...}``; anything else is empty."""
    try:
        data = json.loads(text)
    except (TypeError, json.JSONDecodeError):
        return SessionLink()
    if not isinstance(data, dict):
        return SessionLink()
    return SessionLink(
        session_id=_string_or_none(data.get("session_id")),
        backend_url=_string_or_none(data.get("backend_url")),
    )


def apply_session_link(link: SessionLink, settings: BackendSettings) -> Optional[str]:
    """Point settings at the linked backend and return the linked session ID."""
    if link.backend_url:
        settings.set_base_url(link.backend_url)
    if link.session_id:
        logger.info("Linked session %s", link.session_id)
    return link.session_id


def _string_or_none(value: object) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
