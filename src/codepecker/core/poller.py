"""
Status Poller - Wait for a scan task to reach a terminal state.

The backend reports task progress as strings:

    "99" queued -> "0" uploaded -> "1" unpacked -> "2" scanning
                                               -> "3" completed (success)
                                               -> "4" failed

The poller asks ``queryTaskStatus.action`` at a fixed interval until the
task completes or fails. There is no iteration limit; callers bound the
wait by cancelling the coroutine (e.g. ``asyncio.timeout``).
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import structlog

from .errors import (
    BackendError,
    MalformedResponseError,
    ScanFailedError,
    UnknownTaskStateError,
)
from .transport import Endpoint, PeckerClient, is_success


DEFAULT_POLL_INTERVAL = 5.0


class TaskStatus(Enum):
    """Backend task state"""
    UPLOADED = "0"
    UNPACKED = "1"
    SCANNING = "2"
    COMPLETED = "3"
    FAILED = "4"
    QUEUED = "99"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


class StatusPoller:
    """
    Polls a task until it completes.

    Example:
        >>> poller = StatusPoller(client, interval=5.0)
        >>> await poller.wait("task-42")
        <TaskStatus.COMPLETED: '3'>
    """

    def __init__(
        self,
        client: PeckerClient,
        interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_progress: Optional[Callable[[str, TaskStatus], Any]] = None,
        logger: Optional[Any] = None,
    ):
        """
        Initialize the poller.

        Args:
            client: Transport client
            interval: Seconds to wait between polls
            sleep: Awaitable sleep function (replaceable in tests)
            on_progress: Called with (task_id, status) after every non-terminal poll
        """
        self.client = client
        self.interval = interval
        self.sleep = sleep
        self.on_progress = on_progress
        self.logger = logger or structlog.get_logger(__name__)

        self.poll_count = 0

    async def wait(self, task_id: str) -> TaskStatus:
        """
        Poll until the task finishes.

        Returns:
            TaskStatus.COMPLETED

        Raises:
            ScanFailedError: Task reported state "4"
            UnknownTaskStateError: Task reported a state outside TaskStatus
            BackendError: Backend answered with a non-zero status and errorMsg
            MalformedResponseError: Non-zero status without errorMsg
        """
        self.poll_count = 0
        while True:
            status = await self.poll_once(task_id)

            if status is TaskStatus.COMPLETED:
                self.logger.info("scan_completed", task_id=task_id, polls=self.poll_count)
                return status

            if status is TaskStatus.FAILED:
                self.logger.error("scan_failed_on_backend", task_id=task_id)
                raise ScanFailedError(task_id)

            if status is TaskStatus.QUEUED:
                self.logger.warning("scan_queued", task_id=task_id)
            else:
                self.logger.info(
                    "scan_in_progress",
                    task_id=task_id,
                    state=status.name.lower(),
                )

            if self.on_progress:
                self.on_progress(task_id, status)

            await self.sleep(self.interval)

    async def poll_once(self, task_id: str) -> TaskStatus:
        """Query the task state a single time"""
        self.poll_count += 1
        response = await self.client.post_form(Endpoint.TASK_STATUS, {"taskId": task_id})

        if not is_success(response):
            url = self.client.url_for(Endpoint.TASK_STATUS)
            error_msg = response.get("errorMsg")
            if isinstance(error_msg, str):
                self.logger.error("status_query_rejected", task_id=task_id, error=error_msg)
                raise BackendError(error_msg, url)
            raise MalformedResponseError(url, "status is not 0 and errorMsg is missing")

        raw_state = response.get("taskStatus")
        # Numeric states are accepted as their string form
        if isinstance(raw_state, int) and not isinstance(raw_state, bool):
            raw_state = str(raw_state)

        try:
            return TaskStatus(raw_state)
        except ValueError:
            self.logger.error("unknown_task_state", task_id=task_id, state=raw_state)
            raise UnknownTaskStateError(task_id, raw_state) from None
