"""Poll a backend session until its report is generated.

SessionTracker mirrors the backend session into a local SessionTrackingState.
Listeners registered with ``subscribe`` receive ``(field, value)`` for every
field that changes. Poll failures never raise to the caller; they land in
``state.error`` and the next scheduled cycle retries.

Precondition of ``start_tracking``: the health data for the session has been
uploaded successfully (see ``pipelines.health_sync``).
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional, Tuple

from trial_compass.config.settings import normalize_session_id
from trial_compass.errors import TrialCompassError
from trial_compass.features.sessions.client import SessionApiClient
from trial_compass.features.sessions.models import (
    MatchedTrial,
    SessionState,
    SessionTrackingState,
    TrialsFetch,
)
from trial_compass.features.sessions.scheduler import Scheduler, ThreadScheduler, TimerHandle
from trial_compass.observability.session_events import record_session_event

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]
Changes = List[Tuple[str, Any]]


class SessionTracker:
    def __init__(
        self,
        client: SessionApiClient,
        scheduler: Optional[Scheduler] = None,
        interval: Optional[float] = None,
    ) -> None:
        self._client = client
        self._scheduler = scheduler or ThreadScheduler()
        self._interval = interval or client.settings.poll_interval
        self._lock = threading.RLock()
        self._idle = threading.Event()
        self._idle.set()
        self._listeners: List[Listener] = []
        self._timer: Optional[TimerHandle] = None
        self._generation = 0

        self._session_id = ""
        self._phase = ""
        self._matching_complete = False
        self._report_generated = False
        self._matched_trials: List[MatchedTrial] = []
        self._trials_fetch = TrialsFetch.NOT_ATTEMPTED
        self._is_polling = False
        self._error: Optional[str] = None

    @property
    def state(self) -> SessionTrackingState:
        with self._lock:
            return SessionTrackingState(
                session_id=self._session_id,
                phase=self._phase,
                matching_complete=self._matching_complete,
                report_generated=self._report_generated,
                matched_trials=list(self._matched_trials),
                trials_fetch=self._trials_fetch,
                is_polling=self._is_polling,
                error=self._error,
            )

    @property
    def report_url(self) -> Optional[str]:
        with self._lock:
            if not self._report_generated or not self._session_id:
                return None
            session_id = self._session_id
        return self._client.report_url(session_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def start_tracking(self, session_id: str) -> None:
        session_id = normalize_session_id(session_id)
        changes: Changes = []
        with self._lock:
            previous = self._timer
            self._timer = None
            self._generation += 1
            generation = self._generation
            self._set("session_id", session_id, changes)
            self._set("phase", "", changes)
            self._set("matching_complete", False, changes)
            self._set("report_generated", False, changes)
            self._set("matched_trials", [], changes)
            self._set("trials_fetch", TrialsFetch.NOT_ATTEMPTED, changes)
            self._set("error", None, changes)
            self._set("is_polling", True, changes)
            self._idle.clear()
        if previous is not None:
            previous.cancel()
        self._notify(changes)

        logger.info("Tracking session %s every %ss", session_id, self._interval)
        record_session_event(session_id, "tracking_started", {"interval": self._interval})

        timer = self._scheduler.schedule_repeating(
            self._interval, lambda: self._poll_cycle(generation)
        )
        with self._lock:
            if self._generation == generation and self._is_polling:
                self._timer = timer
                return
        # Stopped or terminal before the handle was stored.
        timer.cancel()

    def stop_tracking(self) -> None:
        changes: Changes = []
        with self._lock:
            timer = self._timer
            self._timer = None
            was_polling = self._is_polling
            self._generation += 1
            self._set("is_polling", False, changes)
            session_id = self._session_id
            self._idle.set()
        if timer is not None:
            timer.cancel()
        self._notify(changes)
        if was_polling:
            logger.info("Stopped tracking session %s", session_id)
            record_session_event(session_id, "tracking_stopped")

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        return self._idle.wait(timeout)

    def _poll_cycle(self, generation: int) -> None:
        with self._lock:
            if not self._is_current(generation):
                return
            session_id = self._session_id

        try:
            remote = self._client.fetch_session_state(session_id)
        except TrialCompassError as exc:
            self._record_failure(generation, session_id, "poll_failed", exc)
            return

        if not self._apply_state(generation, remote):
            return

        with self._lock:
            needs_trials = remote.matching_complete and self._trials_fetch != TrialsFetch.RETAINED
        if needs_trials and not self._fetch_trials(generation, session_id):
            return

        if remote.report_generated:
            self._finish(generation, session_id)

    def _apply_state(self, generation: int, remote: SessionState) -> bool:
        changes: Changes = []
        with self._lock:
            if not self._is_current(generation):
                logger.debug("Discarding stale session state for %s", remote.session_id)
                return False
            self._set("phase", remote.phase, changes)
            self._set("matching_complete", remote.matching_complete, changes)
            self._set("report_generated", remote.report_generated, changes)
            self._set("error", None, changes)
        self._notify(changes)
        if remote.phase_kind is None:
            logger.warning("Session %s reported unknown phase %r", remote.session_id, remote.phase)
        record_session_event(
            remote.session_id,
            "poll_succeeded",
            {
                "phase": remote.phase,
                "matching_complete": remote.matching_complete,
                "report_generated": remote.report_generated,
            },
        )
        return True

    def _fetch_trials(self, generation: int, session_id: str) -> bool:
        try:
            trials = self._client.fetch_matched_trials(session_id)
        except TrialCompassError as exc:
            changes: Changes = []
            with self._lock:
                if self._is_current(generation):
                    self._set("trials_fetch", TrialsFetch.RETRY_PENDING, changes)
            self._notify(changes)
            self._record_failure(generation, session_id, "trials_failed", exc)
            return False

        changes = []
        with self._lock:
            if not self._is_current(generation):
                return False
            self._set("matched_trials", list(trials), changes)
            self._set("trials_fetch", TrialsFetch.RETAINED, changes)
        self._notify(changes)
        logger.info("Retained %s matched trials for session %s", len(trials), session_id)
        record_session_event(session_id, "trials_retained", {"count": len(trials)})
        return True

    def _finish(self, generation: int, session_id: str) -> None:
        changes: Changes = []
        with self._lock:
            if not self._is_current(generation):
                return
            timer = self._timer
            self._timer = None
            self._generation += 1
            self._set("is_polling", False, changes)
            self._idle.set()
        if timer is not None:
            timer.cancel()
        self._notify(changes)
        logger.info("Report generated for session %s; polling finished", session_id)
        record_session_event(session_id, "report_generated")

    def _record_failure(
        self, generation: int, session_id: str, event: str, exc: TrialCompassError
    ) -> None:
        message = str(exc)
        changes: Changes = []
        with self._lock:
            if not self._is_current(generation):
                return
            self._set("error", message, changes)
        self._notify(changes)
        logger.warning("Session %s %s: %s", session_id, event.replace("_", " "), message)
        record_session_event(session_id, event, error=message)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._is_polling

    def _set(self, field: str, value: Any, changes: Changes) -> None:
        attr = f"_{field}"
        if getattr(self, attr) == value:
            return
        setattr(self, attr, value)
        changes.append((field, value))

    def _notify(self, changes: Changes) -> None:
        if not changes:
            return
        with self._lock:
            listeners = list(self._listeners)
        for field, value in changes:
            for listener in listeners:
                try:
                    listener(field, value)
                except Exception:
                    logger.exception("Session listener failed for field %s", field)
