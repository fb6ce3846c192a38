"""
Task Submission - Hand source code to the backend and get a task id back.

Two variants share one decision rule on the response:
- archive upload (multipart, ``postSourceCode.action``)
- SVN/Git reference (form, ``postSourceCodeBySvnGit.action``)

Submission is never retried; any failure ends the run.
"""

import mimetypes
from typing import Any, Dict, Optional

import structlog

from ..core.errors import BackendError, MalformedResponseError, SubmissionError
from ..core.transport import Endpoint, PeckerClient, is_success
from .models import ArchiveSource, Project, ScmSource, SubmissionSource


DEFAULT_CONTENT_TYPE = "application/octet-stream"


def guess_content_type(file_name: str) -> str:
    """MIME type from the file extension, falling back to a generic binary type"""
    content_type, _ = mimetypes.guess_type(file_name)
    return content_type or DEFAULT_CONTENT_TYPE


class TaskSubmitter:
    """
    Creates scan tasks on the backend.

    Example:
        >>> submitter = TaskSubmitter(client)
        >>> task_id = await submitter.submit(project, ArchiveSource.from_path("app.zip"))
    """

    def __init__(self, client: PeckerClient, logger: Optional[Any] = None):
        self.client = client
        self.logger = logger or structlog.get_logger(__name__)

    async def submit(self, project: Project, source: SubmissionSource) -> str:
        """
        Submit ``source`` under ``project``.

        Args:
            project: Target project
            source: ArchiveSource or ScmSource

        Returns:
            Backend task id
        """
        if isinstance(source, ArchiveSource):
            return await self.submit_archive(project, source)
        elif isinstance(source, ScmSource):
            return await self.submit_scm(project, source)
        raise TypeError(f"Unsupported submission source: {type(source).__name__}")

    async def submit_archive(self, project: Project, source: ArchiveSource) -> str:
        """Upload an archive and return the new task id"""
        content_type = guess_content_type(source.file_name)
        self.logger.info(
            "submitting_archive",
            project=project.name,
            file_name=source.file_name,
            size=len(source.content),
            content_type=content_type,
        )

        response = await self.client.post_multipart(
            Endpoint.UPLOAD,
            fields=project.form_fields(),
            file_field="uploadFile",
            file_name=source.file_name,
            content=source.content,
            content_type=content_type,
        )
        return self._task_id_from(response, Endpoint.UPLOAD)

    async def submit_scm(self, project: Project, source: ScmSource) -> str:
        """Ask the backend to check out an SVN/Git repository and return the task id"""
        self.logger.info(
            "submitting_scm",
            project=project.name,
            remote=source.remote.name,
            url=source.url,
            branch=source.branch,
        )

        fields = project.form_fields()
        fields.update(source.form_fields())
        response = await self.client.post_form(Endpoint.UPLOAD_SCM, fields)
        return self._task_id_from(response, Endpoint.UPLOAD_SCM)

    def _task_id_from(self, response: Dict[str, Any], endpoint: str) -> str:
        url = self.client.url_for(endpoint)

        if is_success(response):
            task_id = response.get("taskId")
            if isinstance(task_id, str) and task_id:
                self.logger.info("task_submitted", task_id=task_id)
                return task_id
            self.logger.error("task_id_missing", url=url)
            raise MalformedResponseError(url, "status is 0 but taskId is missing")

        error_msg = response.get("errorMsg")
        if isinstance(error_msg, str):
            self.logger.error("submission_rejected", url=url, error=error_msg)
            raise BackendError(error_msg, url)

        self.logger.error("submission_failed", url=url, status=response.get("status"))
        raise SubmissionError(
            f"Submitting source code to {url} failed, check the URL and key"
        )
