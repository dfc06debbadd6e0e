"""Selection and validation of transformChanges groups."""

import logging

from changespec.errors import ChangesetValidationError
from changespec.models import Group, TransformChanges

logger = logging.getLogger(__name__)


def groups_for_repository(repo_name: str, transform: TransformChanges | None) -> list[Group]:
    """Return the groups that apply to repo_name, in declaration order.

    A group applies when its repository filter is empty or equals repo_name.
    """
    if transform is None:
        return []
    groups = [g for g in transform.group if not g.repository or g.repository == repo_name]
    logger.debug("%d of %d groups apply to %s", len(groups), len(transform.group), repo_name)
    return groups


def validate_groups(repo_name: str, default_branch: str, groups: list[Group]) -> None:
    """Raise ChangesetValidationError on the first group that would clash with another branch."""
    seen: set[str] = set()
    for g in groups:
        if g.branch in seen:
            raise ChangesetValidationError(
                f"transformChanges would lead to multiple changesets in repository {repo_name} "
                f"to have the same branch {g.branch!r}"
            )
        seen.add(g.branch)

        if g.branch == default_branch:
            raise ChangesetValidationError(
                f"transformChanges group branch for repository {repo_name} is the same as "
                f"branch {default_branch!r} in changesetTemplate"
            )
