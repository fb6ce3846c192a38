"""
Submission models - What gets scanned and where the code comes from.

A submission is a Project plus exactly one source. The source is a
discriminated union, so an archive and an SCM reference can never be
supplied together.
"""

from enum import Enum, IntEnum
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Template(str, Enum):
    """Backend rule-set selection policy"""
    DEFAULT = "default"
    HIGH = "high"
    USER_DEFINED = "user_defined"


class ScmKind(IntEnum):
    """Version-control system, sent as ``downloadType``"""
    SVN = 1
    GIT = 2


class Project(BaseModel):
    """
    Backend project a scan task is filed under.

    A ``user_defined`` template needs a rule id; constructing one without
    it raises a ValidationError, so the backend never sees such a request.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    language: str = Field(min_length=1)
    template: Template = Template.DEFAULT
    group: Optional[str] = None
    rule: Optional[str] = None

    @model_validator(mode="after")
    def _rule_required_for_user_defined(self) -> "Project":
        if self.template is Template.USER_DEFINED and not self.rule:
            raise ValueError("a rule id is required when template is 'user_defined'")
        return self

    def form_fields(self) -> dict:
        """Project fields shared by both submission endpoints"""
        fields = {
            "projectId": self.name,
            "langType": self.language,
            "projectLevel": self.template.value,
        }
        if self.group:
            fields["projectGroupId"] = self.group
        if self.template is Template.USER_DEFINED:
            fields["ruleId"] = self.rule
        return fields


class ArchiveSource(BaseModel):
    """Source code uploaded as an archive"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["archive"] = "archive"
    file_name: str = Field(min_length=1)
    content: bytes

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ArchiveSource":
        """Read an archive from disk"""
        path = Path(path)
        return cls(file_name=path.name, content=path.read_bytes())

    def __repr__(self) -> str:
        return f"ArchiveSource(file_name={self.file_name!r}, size={len(self.content)})"


class ScmSource(BaseModel):
    """Source code fetched by the backend from SVN or Git"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["scm"] = "scm"
    remote: ScmKind
    url: str = Field(min_length=1)
    user: str
    password: str = Field(repr=False)
    branch: Optional[str] = None

    def form_fields(self) -> dict:
        fields = {
            "downloadType": str(int(self.remote)),
            "svngitUrl": self.url,
            "svngitUserName": self.user,
            "svngitPassword": self.password,
        }
        if self.branch:
            fields["gitBranchName"] = self.branch
        return fields


SubmissionSource = Annotated[
    Union[ArchiveSource, ScmSource],
    Field(discriminator="kind"),
]
