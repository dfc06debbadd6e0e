"""Shared test fixtures."""

from collections.abc import Callable
from typing import Any

import pytest

from changespec.models import (
    BatchChangeAttributes,
    ChangesetTemplate,
    CommitTemplate,
    ExecutionResult,
    Group,
    Repository,
    Task,
    TransformChanges,
)
from samples import COMBINED_DIFF


@pytest.fixture
def repository() -> Repository:
    return Repository(
        id="UmVwb3NpdG9yeTox",
        name="github.com/acme/api",
        base_ref="refs/heads/main",
        rev="f00b4r",
        file_matches=["frontend/b.ts", "backend/a.go"],
    )


@pytest.fixture
def make_task(repository: Repository) -> Callable[..., Task]:
    """Build a Task; keyword arguments override changeset template fields."""

    def _make(groups: list[Group] | None = None, **template: Any) -> Task:
        fields: dict[str, Any] = {
            "title": "Bump ${{ batch_change.name }}",
            "body": "Updates ${{ repository.name }}",
            "branch": "main",
            "commit": CommitTemplate(message="Bump x and y"),
            "published": False,
        }
        fields.update(template)
        return Task(
            repository=repository,
            batch_change=BatchChangeAttributes(name="bump-deps", description="Bump all the things"),
            template=ChangesetTemplate.model_validate(fields),
            transform_changes=TransformChanges(group=groups) if groups is not None else None,
        )

    return _make


@pytest.fixture
def combined_result() -> ExecutionResult:
    return ExecutionResult(diff=COMBINED_DIFF, path="/work/acme-api")


@pytest.fixture
def backend_group() -> Group:
    return Group(directory="backend/", branch="grouped-backend")
