from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

_LOCK = threading.Lock()
_EVENT_STORE: Dict[str, List[Dict[str, Any]]] = {}
MAX_EVENTS_PER_SESSION = 500


def record_session_event(
    session_id: str,
    event: str,
    details: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None,
) -> None:
    entry = {
        "event": event,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "details": details or {},
        "error": error,
    }
    with _LOCK:
        events = _EVENT_STORE.setdefault(session_id, [])
        events.append(entry)
        if len(events) > MAX_EVENTS_PER_SESSION:
            del events[: len(events) - MAX_EVENTS_PER_SESSION]


def get_session_events(session_id: str) -> List[Dict[str, Any]]:
    with _LOCK:
        return list(_EVENT_STORE.get(session_id, []))


def clear_session_events(session_id: Optional[str] = None) -> None:
    with _LOCK:
        if session_id is None:
            _EVENT_STORE.clear()
        else:
            _EVENT_STORE.pop(session_id, None)


def export_session_events(session_id: str, path: str) -> None:
    events = get_session_events(session_id)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        json.dump({"session_id": session_id, "events": events}, handle, ensure_ascii=False, indent=2)
