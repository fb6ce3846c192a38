"""
Submission module - Creating scan tasks on the backend.

- Project / ArchiveSource / ScmSource: what to scan and where it comes from
- TaskSubmitter: archive upload and SVN/Git submission
"""

from .models import (
    Project,
    Template,
    ArchiveSource,
    ScmSource,
    ScmKind,
    SubmissionSource,
)
from .submitter import TaskSubmitter, guess_content_type


__all__ = [
    # Models
    "Project",
    "Template",
    "ArchiveSource",
    "ScmSource",
    "ScmKind",
    "SubmissionSource",
    # Submission
    "TaskSubmitter",
    "guess_content_type",
]
