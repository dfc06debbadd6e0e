"""Tests for changespec.groups."""

import pytest

from changespec.errors import ChangesetValidationError
from changespec.groups import groups_for_repository, validate_groups
from changespec.models import Group, TransformChanges

REPO = "github.com/acme/api"


class TestGroupsForRepository:
    def test_none_config_is_empty(self) -> None:
        assert groups_for_repository(REPO, None) == []

    def test_empty_config_is_empty(self) -> None:
        assert groups_for_repository(REPO, TransformChanges()) == []

    def test_global_and_matching_groups_kept_in_order(self) -> None:
        transform = TransformChanges(
            group=[
                Group(directory="a/", branch="one"),
                Group(directory="b/", branch="two", repository="github.com/acme/web"),
                Group(directory="c/", branch="three", repository=REPO),
                Group(directory="d/", branch="four"),
            ]
        )
        groups = groups_for_repository(REPO, transform)
        assert [g.branch for g in groups] == ["one", "three", "four"]

    def test_repository_filter_is_exact(self) -> None:
        transform = TransformChanges(group=[Group(directory="a/", branch="one", repository="github.com/acme/ap")])
        assert groups_for_repository(REPO, transform) == []


class TestValidateGroups:
    def test_empty_groups_pass(self) -> None:
        validate_groups(REPO, "main", [])

    def test_distinct_branches_pass(self) -> None:
        validate_groups(
            REPO,
            "main",
            [Group(directory="a/", branch="one"), Group(directory="b/", branch="two")],
        )

    def test_duplicate_branch_fails(self) -> None:
        groups = [Group(directory="a/", branch="same"), Group(directory="b/", branch="same")]
        with pytest.raises(ChangesetValidationError, match="same branch 'same'") as exc_info:
            validate_groups(REPO, "main", groups)
        assert REPO in str(exc_info.value)

    def test_branch_equal_to_default_fails(self) -> None:
        with pytest.raises(ChangesetValidationError, match="same as branch 'main' in changesetTemplate"):
            validate_groups(REPO, "main", [Group(directory="a/", branch="main")])

    def test_first_violation_reported(self) -> None:
        groups = [
            Group(directory="a/", branch="main"),
            Group(directory="b/", branch="dup"),
            Group(directory="c/", branch="dup"),
        ]
        with pytest.raises(ChangesetValidationError, match="changesetTemplate"):
            validate_groups(REPO, "main", groups)
