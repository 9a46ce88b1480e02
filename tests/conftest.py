"""Pytest fixtures for client tests (payload, records, sessions, tracking)."""
import sys
from pathlib import Path

import pytest

# Ensure src is on path
root_dir = Path(__file__).resolve().parent.parent
src_dir = root_dir / "src"
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from trial_compass.config.settings import BackendSettings
from trial_compass.observability.session_events import clear_session_events


@pytest.fixture
def settings():
    return BackendSettings(base_url="http://localhost:8100", http_timeout=2.0, poll_interval=5.0)


@pytest.fixture(autouse=True)
def _clear_events():
    clear_session_events()
    yield
    clear_session_events()
