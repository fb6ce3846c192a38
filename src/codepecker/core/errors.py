"""
Exception hierarchy for the Codepecker client.

Every error raised by the client derives from PeckerError so callers can
stop a run with a single except clause. Per-finding enrichment failures
are never raised; the aggregator logs and skips them.
"""

from typing import Optional


class PeckerError(Exception):
    """Base exception for client errors"""
    pass


class ConfigurationError(PeckerError):
    """Raised before any request when the client cannot be set up"""
    pass


class ProxyBuildError(ConfigurationError):
    """Raised when the outbound proxy URL is unusable"""

    def __init__(self, proxy: str, reason: str = "invalid proxy URL"):
        self.proxy = proxy
        super().__init__(f"Cannot build proxy {proxy!r}: {reason}")


class ClientBuildError(ConfigurationError):
    """Raised when the HTTP client cannot be created"""
    pass


class ConnectError(PeckerError):
    """Raised when an endpoint is unreachable"""

    def __init__(self, url: str, reason: Optional[str] = None):
        self.url = url
        message = f"Unable to connect to {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class HttpStatusError(PeckerError):
    """Raised when the backend answers with a non-2xx status"""

    def __init__(self, url: str, status: int):
        self.url = url
        self.status = status
        super().__init__(
            f"Request to {url} failed with HTTP {status}, check the URL and key"
        )


class ResponseParseError(PeckerError):
    """Raised when a response body is not a JSON object"""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Unable to parse JSON response from {url}")


class BackendError(PeckerError):
    """Raised when the backend reports a non-zero status with an errorMsg"""

    def __init__(self, message: str, url: Optional[str] = None):
        self.message = message
        self.url = url
        super().__init__(message)


class MalformedResponseError(PeckerError):
    """Raised when a response lacks both the expected payload and errorMsg"""

    def __init__(self, url: str, detail: str):
        self.url = url
        self.detail = detail
        super().__init__(f"Malformed response from {url}: {detail}")


class SubmissionError(PeckerError):
    """Raised when a task submission fails without a backend message"""
    pass


class ScanFailedError(PeckerError):
    """Raised when the backend reports the scan task as failed"""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(
            f"Scan task {task_id} failed, check the Codepecker service status"
        )


class UnknownTaskStateError(PeckerError):
    """Raised when the backend reports a task state the client does not know"""

    def __init__(self, task_id: str, state: object):
        self.task_id = task_id
        self.state = state
        super().__init__(f"Scan task {task_id} reported unknown state {state!r}")


class ReportWriteError(PeckerError):
    """Raised when the report cannot be written"""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Unable to write report to {path}: {reason}")
