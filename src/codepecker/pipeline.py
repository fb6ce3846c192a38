"""
Scan Pipeline - Runs one scan from submission to report file.

Phases run strictly one after another:
1. Submission (skipped when resuming an existing task)
2. Status polling (skipped when resuming an existing task)
3. Result aggregation
4. Report writing

The first three phases run under an optional overall timeout. On timeout,
cancellation or any fatal error nothing is written: the report is
all-or-nothing.

Usage:
    async with PeckerClient(url, auth=key) as client:
        pipeline = ScanPipeline(client, ScanConfig(severity="high"))
        report = await pipeline.run(project=project, source=source)
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

import structlog

from .results.aggregator import ResultAggregator
from .results.report import Report, write_report
from .submission.models import Project, SubmissionSource
from .submission.submitter import TaskSubmitter
from .core.poller import DEFAULT_POLL_INTERVAL, StatusPoller, TaskStatus
from .core.transport import PeckerClient


class ScanConfig:
    """Configuration for a pipeline run"""

    def __init__(
        self,
        # Results
        severity: str = "info",
        language: str = "java",
        include_source: bool = False,
        output: Optional[str] = "results.json",

        # Polling
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: Optional[float] = None,  # seconds for the whole run, None = unbounded

        # Enrichment
        max_concurrency: int = 1,
    ):
        self.severity = severity
        self.language = language
        self.include_source = include_source
        self.output = output
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.max_concurrency = max_concurrency


class ScanPipeline:
    """
    Sequences submission, polling, aggregation and report writing.

    Progress is published to observers as ``(event, data)`` calls:
    ``task_submitted``, ``task_progress``, ``task_completed``,
    ``results_aggregated`` and ``report_written``.
    """

    def __init__(
        self,
        client: PeckerClient,
        config: Optional[ScanConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        logger: Optional[Any] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            client: Open transport client
            config: Run configuration
            sleep: Sleep used between status polls (replaceable in tests)
        """
        self.client = client
        self.config = config or ScanConfig()
        self.logger = logger or structlog.get_logger(__name__)

        self.submitter = TaskSubmitter(client, logger=self.logger)
        self.poller = StatusPoller(
            client,
            interval=self.config.poll_interval,
            sleep=sleep,
            on_progress=self._on_progress,
            logger=self.logger,
        )
        self.aggregator = ResultAggregator(
            client,
            language=self.config.language,
            include_source=self.config.include_source,
            max_concurrency=self.config.max_concurrency,
            logger=self.logger,
        )

        self.task_id: Optional[str] = None
        self.observers: List[Callable[[str, Dict[str, Any]], Any]] = []

    def subscribe(self, observer: Callable[[str, Dict[str, Any]], Any]):
        """Register a callback for pipeline events"""
        self.observers.append(observer)

    def _notify_observers(self, event: str, data: Dict[str, Any]):
        for observer in self.observers:
            try:
                observer(event, data)
            except Exception as e:
                self.logger.error("observer_error", observer=getattr(observer, "__name__", repr(observer)), error=str(e))

    def _on_progress(self, task_id: str, status: TaskStatus):
        self._notify_observers("task_progress", {"task_id": task_id, "status": status})

    async def run(
        self,
        project: Optional[Project] = None,
        source: Optional[SubmissionSource] = None,
        task_id: Optional[str] = None,
    ) -> Report:
        """
        Run the pipeline.

        Either pass ``project`` and ``source`` to start a new scan, or
        ``task_id`` to fetch the results of an existing task directly.

        Returns:
            The written Report

        Raises:
            PeckerError: On any fatal client or backend error
            TimeoutError: If ``config.timeout`` elapsed
        """
        if task_id is None and (project is None or source is None):
            raise ValueError("either task_id or both project and source are required")
        if task_id is not None and source is not None:
            raise ValueError("task_id and source are mutually exclusive")

        self.logger.info("pipeline_started", config=vars(self.config), resume=task_id is not None)

        try:
            async with asyncio.timeout(self.config.timeout):
                report = await self._collect(project, source, task_id)

            if self.config.output:
                path = write_report(report, self.config.output)
                self.logger.info("report_written", path=str(path), problems=report.problem_count)
                self._notify_observers("report_written", {"path": str(path)})

            return report

        except Exception as e:
            self.logger.error(
                "pipeline_failed",
                task_id=self.task_id,
                error=str(e) or type(e).__name__,
                exc_info=True,
            )
            raise

    async def _collect(
        self,
        project: Optional[Project],
        source: Optional[SubmissionSource],
        task_id: Optional[str],
    ) -> Report:
        if task_id is None:
            # Phase 1: Submission
            self.task_id = await self.submitter.submit(project, source)
            self._notify_observers("task_submitted", {"task_id": self.task_id})

            # Phase 2: Polling
            await self.poller.wait(self.task_id)
            self._notify_observers("task_completed", {"task_id": self.task_id})
        else:
            self.task_id = task_id
            self.logger.info("resuming_task", task_id=task_id)

        # Phase 3: Aggregation
        report = await self.aggregator.aggregate(self.task_id, self.config.severity)
        self._notify_observers(
            "results_aggregated",
            {"task_id": self.task_id, "problem_count": report.problem_count},
        )
        return report
