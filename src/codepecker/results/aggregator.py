"""
Result Aggregator - Turn a finished scan task into a Report.

Steps, in order:
1. Fetch run statistics (``queryStatistics.action``)
2. Page through findings (``getTaskResult.action``) until an empty page
3. Filter by severity floor
4. Attach remediation text (``queryWikiByLanguageErrorid.action``)
5. Optionally attach source file bytes through a FileContentCache
6. Assemble the Report

Findings keep the order the backend returned them in. Steps 1-2 are
fatal: a rejected statistics or page request raises BackendError. Steps 4-5 are
best effort: a finding whose remediation or source cannot be fetched is
reported without it.
"""

import asyncio
from typing import Any, Dict, List, Optional

import structlog

from ..core.errors import BackendError, MalformedResponseError, PeckerError
from ..core.transport import Endpoint, PeckerClient, is_success
from .file_cache import FileContentCache
from .report import Report
from .severity import filter_by_severity


class ResultAggregator:
    """
    Collects, filters and enriches the findings of a scan task.

    Example:
        >>> aggregator = ResultAggregator(client, language="java", include_source=True)
        >>> report = await aggregator.aggregate("task-42", severity="high")
        >>> print(report.problem_count)
    """

    def __init__(
        self,
        client: PeckerClient,
        language: str,
        include_source: bool = False,
        max_concurrency: int = 1,
        logger: Optional[Any] = None,
    ):
        """
        Initialize the aggregator.

        Args:
            client: Transport client
            language: Language used for remediation lookups
            include_source: Attach file bytes to findings and trace steps
            max_concurrency: Findings enriched at the same time (1 = sequential)
        """
        self.client = client
        self.language = language
        self.include_source = include_source
        self.max_concurrency = max(1, max_concurrency)
        self.logger = logger or structlog.get_logger(__name__)

        self.page_requests = 0
        self.solution_failures = 0

    async def aggregate(self, task_id: str, severity: str) -> Report:
        """
        Build the report for ``task_id``.

        Args:
            task_id: Completed backend task
            severity: Severity floor (info/low/medium/high/critical)

        Returns:
            Report with filtered, enriched findings
        """
        self.page_requests = 0
        self.solution_failures = 0

        info = await self.fetch_statistics(task_id)
        findings = await self.fetch_findings(task_id)

        problems = filter_by_severity(severity, findings)
        self.logger.info(
            "findings_filtered",
            task_id=task_id,
            severity=severity,
            total=len(findings),
            kept=len(problems),
        )

        cache = FileContentCache(self.client, logger=self.logger)
        await self.enrich_all(problems, cache)

        if self.include_source:
            self.logger.info("file_cache_summary", **cache.get_statistics())

        return Report(task_id=task_id, severity=severity, info=info, problems=problems)

    async def fetch_statistics(self, task_id: str) -> Dict[str, Any]:
        """Run-level summary, kept as the backend sent it"""
        info = await self.client.post_form(Endpoint.STATISTICS, {"taskId": task_id})
        self._check_status(Endpoint.STATISTICS, info, task_id)
        self.logger.info("statistics_fetched", task_id=task_id)
        return info

    async def fetch_findings(self, task_id: str) -> List[Dict[str, Any]]:
        """Request pages 1, 2, ... until a page has no findings"""
        findings: List[Dict[str, Any]] = []
        page = 1

        while True:
            self.page_requests += 1
            response = await self.client.post_form(
                Endpoint.TASK_RESULT,
                {"taskId": task_id, "requestNum": str(page)},
            )
            self._check_status(Endpoint.TASK_RESULT, response, task_id, page=page)

            problems = response.get("problem")
            if not isinstance(problems, list) or not problems:
                break

            findings.extend(problems)
            self.logger.info("result_page_fetched", task_id=task_id, page=page, count=len(problems))
            page += 1

        self.logger.info(
            "findings_collected",
            task_id=task_id,
            pages=page - 1,
            total=len(findings),
        )
        return findings

    def _check_status(self, endpoint: str, response: Dict[str, Any], task_id: str, **context):
        """Raise on a response whose status is not 0"""
        if is_success(response):
            return

        url = self.client.url_for(endpoint)
        error_msg = response.get("errorMsg")
        if isinstance(error_msg, str):
            self.logger.error("result_query_rejected", endpoint=endpoint, task_id=task_id, error=error_msg, **context)
            raise BackendError(error_msg, url)
        raise MalformedResponseError(url, "status is not 0 and errorMsg is missing")

    async def enrich_all(self, problems: List[Dict[str, Any]], cache: FileContentCache):
        """Enrich every finding in place, sequentially or through a bounded pool"""
        if self.max_concurrency == 1:
            for problem in problems:
                await self.enrich(problem, cache)
            return

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(problem: Dict[str, Any]):
            async with semaphore:
                await self.enrich(problem, cache)

        # Findings are mutated in place, so list order is untouched
        async with asyncio.TaskGroup() as tg:
            for problem in problems:
                tg.create_task(_bounded(problem))

    async def enrich(self, problem: Dict[str, Any], cache: FileContentCache):
        """Attach ``solution`` and, if enabled, ``file_content_bytes``"""
        error_code = problem.get("errorCode")
        if isinstance(error_code, str):
            solution = await self.fetch_solution(error_code)
            if solution is not None:
                problem["solution"] = solution

        if not self.include_source:
            return

        file_path = problem.get("filePath")
        if isinstance(file_path, str):
            problem["file_content_bytes"] = await cache.get(file_path)

        trace_blocks = problem.get("traceBlock")
        if isinstance(trace_blocks, list):
            for trace_block in trace_blocks:
                if not isinstance(trace_block, dict):
                    continue
                trace_file = trace_block.get("file")
                if isinstance(trace_file, str):
                    trace_block["file_content_bytes"] = await cache.get(trace_file)

    async def fetch_solution(self, error_code: str) -> Optional[Dict[str, Any]]:
        """
        Remediation text for a finding code.

        Returns:
            Solution dictionary, or None when unavailable
        """
        self.logger.debug("fetching_solution", error_code=error_code, language=self.language)
        try:
            response = await self.client.post_form(
                Endpoint.SOLUTION,
                {"errorid": error_code, "language": self.language},
            )
        except PeckerError as e:
            self.solution_failures += 1
            self.logger.warning("solution_unavailable", error_code=error_code, error=str(e))
            return None

        description = response.get("wiki_description")
        if not isinstance(description, str):
            self.logger.debug("solution_missing", error_code=error_code)
            return None

        return {
            "wiki_description": description,
            "wiki_detail": response.get("wiki_detail", ""),
            "wiki_example": response.get("wiki_example", ""),
        }
