"""Shared pydantic models — the contract between the task runner, the engine and the service."""

from enum import Enum
from fnmatch import fnmatchcase
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_serializer, model_serializer, model_validator
from pydantic.alias_generators import to_camel

DRAFT = "draft"


class Repository(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str  # service-native repository ID
    name: str  # github.com/owner/repo
    base_ref: str  # refs/heads/main
    rev: str  # commit the task ran against
    file_matches: list[str] = []  # paths matched by the search that selected this repo


class BatchChangeAttributes(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""


class CommitAuthor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str


class CommitTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    author: CommitAuthor | None = None


class PublishedKind(str, Enum):
    ABSENT = "absent"
    BOOLEAN = "boolean"
    DRAFT = "draft"


class PublishedValue(BaseModel):
    """Tri-state publication intent: absent, an explicit boolean, or draft.

    Absent means "let the service decide" and is a different wire value from
    ``False``; the two must never collapse into one representation.
    """

    model_config = ConfigDict(frozen=True)

    kind: PublishedKind = PublishedKind.ABSENT
    flag: bool = False

    @classmethod
    def absent(cls) -> "PublishedValue":
        return cls()

    @classmethod
    def of(cls, value: bool | str | None) -> "PublishedValue":
        if value is None:
            return cls.absent()
        if isinstance(value, bool):
            return cls(kind=PublishedKind.BOOLEAN, flag=value)
        if value == DRAFT:
            return cls(kind=PublishedKind.DRAFT)
        raise ValueError(f"invalid published value {value!r}: expected true, false or {DRAFT!r}")

    @property
    def is_absent(self) -> bool:
        return self.kind is PublishedKind.ABSENT

    def wire(self) -> bool | str | None:
        match self.kind:
            case PublishedKind.BOOLEAN:
                return self.flag
            case PublishedKind.DRAFT:
                return DRAFT
            case _:
                return None


class PublicationRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern: str  # glob over the repository name
    branch: str | None = None  # only applies to this branch when set
    value: StrictBool | Literal["draft"]

    def matches(self, repo_name: str, branch: str) -> bool:
        if self.branch is not None and _strip_heads(self.branch) != _strip_heads(branch):
            return False
        return fnmatchcase(repo_name, self.pattern)


class PublicationPolicy(BaseModel):
    """The ``published`` field of a changeset template.

    Accepts either a scalar (``true``, ``false``, ``"draft"``) which applies to
    every changeset, or an ordered list of single-entry mappings from a
    repository glob, optionally suffixed with ``@branch``, to a value::

        published = [
          { "github.com/acme/*" = false },
          { "github.com/acme/api@grouped-backend" = "draft" },
        ]

    When several rules match, the last one wins.
    """

    model_config = ConfigDict(frozen=True)

    rules: list[PublicationRule] = []

    @model_validator(mode="before")
    @classmethod
    def _from_raw(cls, data: Any) -> Any:
        if isinstance(data, (bool, str)):
            return {"rules": [{"pattern": "*", "value": data}]}
        if isinstance(data, list):
            rules = []
            for entry in data:
                if not isinstance(entry, dict) or len(entry) != 1:
                    raise ValueError(f"published rule must be a single-entry mapping, got {entry!r}")
                ((key, value),) = entry.items()
                pattern, sep, branch = str(key).partition("@")
                rules.append({"pattern": pattern, "branch": branch if sep else None, "value": value})
            return {"rules": rules}
        return data

    def value_for(self, repo_name: str, branch: str) -> PublishedValue:
        """Evaluate the policy for one changeset. No matching rule yields an absent value."""
        value: bool | str | None = None
        for rule in self.rules:
            if rule.matches(repo_name, branch):
                value = rule.value
        return PublishedValue.of(value)


class ChangesetTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    body: str = ""
    branch: str
    commit: CommitTemplate
    published: PublicationPolicy | None = None


class Group(BaseModel):
    model_config = ConfigDict(frozen=True)

    directory: str
    branch: str
    repository: str = ""  # empty applies to every repository


class TransformChanges(BaseModel):
    model_config = ConfigDict(frozen=True)

    group: list[Group] = []


class Task(BaseModel):
    """Everything known about one repository before its changeset specs are built."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    repository: Repository
    batch_change: BatchChangeAttributes
    template: ChangesetTemplate = Field(alias="changeset_template")  # [changeset_template] in task files
    transform_changes: TransformChanges | None = None


class ChangedFiles(BaseModel):
    model_config = ConfigDict(frozen=True)

    modified: list[str] = []
    added: list[str] = []
    deleted: list[str] = []
    renamed: list[str] = []


class ExecutionResult(BaseModel):
    """Output of running the transformation; produced upstream, read-only here."""

    model_config = ConfigDict(frozen=True)

    diff: str
    changed_files: ChangedFiles = ChangedFiles()
    outputs: dict[str, Any] = {}
    path: str = ""


class GitCommitDescription(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    message: str
    author_name: str = ""
    author_email: str = ""
    diff: str


class ChangesetSpec(BaseModel):
    """Descriptor of one proposed changeset, ready to send to the batch changes service."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    base_repository: str
    base_ref: str
    base_rev: str
    head_repository: str
    head_ref: str
    title: str
    body: str
    commits: list[GitCommitDescription]
    published: PublishedValue = PublishedValue()

    @field_serializer("published")
    def _published_wire(self, published: PublishedValue) -> bool | str | None:
        return published.wire()

    @model_serializer(mode="wrap")
    def _omit_absent_published(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        if self.published.is_absent:
            data.pop("published", None)
        return data

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def _strip_heads(ref: str) -> str:
    return ref.removeprefix("refs/heads/")
