"""Error kinds raised by the session clients and configuration."""

from __future__ import annotations

from typing import Optional


class TrialCompassError(Exception):
    """Base class for every error the client raises."""


class NetworkUnreachable(TrialCompassError):
    """The request never produced an HTTP response."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class HTTPStatusError(TrialCompassError):
    """The backend answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str, url: Optional[str] = None) -> None:
        super().__init__(f"Server returned {status_code}: {body}")
        self.status_code = status_code
        self.body = body
        self.url = url


class DecodeError(TrialCompassError):
    """A 2xx response body did not match the expected shape."""

    def __init__(self, raw_body: str, detail: str = "", url: Optional[str] = None) -> None:
        message = "Could not decode server response"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.raw_body = raw_body
        self.detail = detail
        self.url = url


class InputInvalid(TrialCompassError):
    """Caller-supplied configuration or identifiers are unusable."""
