from __future__ import annotations


class Judge0Error(Exception):
    """Base class for failures talking to the Judge0 API."""


class TransportError(Judge0Error):
    """Request failed at the HTTP level (non-2xx, connect/read timeout, no base URL)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(Judge0Error):
    """Response body could not be parsed into the expected shape."""


class PollTimeoutError(Judge0Error, TimeoutError):
    """No terminal status was observed before the polling deadline."""

    def __init__(self, token: str, deadline_s: float) -> None:
        super().__init__(f"timeout waiting for result (token={token}, deadline={deadline_s:.2f}s)")
        self.token = token
        self.deadline_s = deadline_s


__all__ = ["Judge0Error", "TransportError", "DecodeError", "PollTimeoutError"]
