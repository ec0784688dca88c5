"""Exceptions raised by the recording bounded context.

Lifecycle errors (``AlreadyRecordingError``, ``ProviderStartFailedError``,
``NoActiveSessionError``) propagate to the caller of ``start``/``stop``.
``ProviderPollFailedError`` never leaves the collector; it is wrapped in a
``RecorderErrorOccurred`` event instead.
"""

from __future__ import annotations

from typing import Optional


class RecorderError(Exception):
    """Base class for all recorder errors.

    Attributes:
        reason: Short machine-readable error code
        message: Human-readable error message
    """

    reason: str = "recorder_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AlreadyRecordingError(RecorderError):
    """``start`` was called while another session is active."""

    reason = "already_recording"

    def __init__(self, active_session_id: str) -> None:
        self.active_session_id = active_session_id
        super().__init__(
            f"Recording is already in progress (session={active_session_id}). "
            "Stop the active session before starting a new one."
        )


class ProviderStartFailedError(RecorderError):
    """The capture provider refused to start.

    Usually caused by a missing accessibility permission.
    """

    reason = "provider_start_failed"

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(
            f"Failed to start recording session {session_id}. "
            "Make sure accessibility permissions are granted."
        )


class NoActiveSessionError(RecorderError):
    """``stop`` was called without an active session."""

    reason = "no_active_session"

    def __init__(self, message: str = "No recording session is active") -> None:
        super().__init__(message)


class ProviderPollFailedError(RecorderError):
    """A single collector tick could not read the provider's steps."""

    reason = "provider_poll_failed"

    def __init__(self, cause: BaseException, session_id: Optional[str] = None) -> None:
        self.cause = cause
        self.session_id = session_id
        super().__init__(f"Polling recorded steps failed: {cause}")

    def __repr__(self) -> str:
        return (
            f"ProviderPollFailedError(cause={self.cause!r}, "
            f"session_id={self.session_id!r})"
        )


class StepDecodeError(ValueError):
    """A raw step payload could not be decoded."""

    def __init__(self, message: str, payload: object = None) -> None:
        self.payload = payload
        super().__init__(message)
