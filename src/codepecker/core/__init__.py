"""
Core module - Transport, error taxonomy and task status polling.

This package contains the pieces every other component talks through.
"""

from .errors import (
    PeckerError,
    ConfigurationError,
    ProxyBuildError,
    ClientBuildError,
    ConnectError,
    HttpStatusError,
    ResponseParseError,
    BackendError,
    MalformedResponseError,
    SubmissionError,
    ScanFailedError,
    UnknownTaskStateError,
    ReportWriteError,
)
from .transport import PeckerClient, Endpoint, API_PREFIX
from .poller import StatusPoller, TaskStatus, DEFAULT_POLL_INTERVAL


__all__ = [
    # Transport
    "PeckerClient",
    "Endpoint",
    "API_PREFIX",
    # Polling
    "StatusPoller",
    "TaskStatus",
    "DEFAULT_POLL_INTERVAL",
    # Exceptions
    "PeckerError",
    "ConfigurationError",
    "ProxyBuildError",
    "ClientBuildError",
    "ConnectError",
    "HttpStatusError",
    "ResponseParseError",
    "BackendError",
    "MalformedResponseError",
    "SubmissionError",
    "ScanFailedError",
    "UnknownTaskStateError",
    "ReportWriteError",
]
