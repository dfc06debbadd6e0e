"""Assembly of changeset specs from a task and its execution result."""

import logging

from changespec.diffs import group_file_diffs
from changespec.errors import OptionalPublishedUnsupportedError
from changespec.features import FeatureFlags
from changespec.groups import groups_for_repository, validate_groups
from changespec.models import (
    ChangesetSpec,
    CommitAuthor,
    ExecutionResult,
    GitCommitDescription,
    PublishedValue,
    Task,
)
from changespec.templating import ChangesetTemplateContext, Renderer, render_changeset_template_field

logger = logging.getLogger(__name__)

REF_PREFIX = "refs/heads/"

DEFAULT_AUTHOR = CommitAuthor(name="Sourcegraph", email="batch-changes@sourcegraph.com")


def ensure_ref_prefix(branch: str) -> str:
    if branch.startswith(REF_PREFIX):
        return branch
    return REF_PREFIX + branch


def resolve_published(task: Task, branch: str, features: FeatureFlags) -> PublishedValue:
    """Publication intent for one branch of task.

    Services without optional-published support treat a missing value as
    ``false``, so an absent result is coalesced to ``false`` for them, and a
    template without any ``published`` field is rejected.
    """
    policy = task.template.published
    if policy is None:
        if not features.allow_optional_published:
            raise OptionalPublishedUnsupportedError()
        return PublishedValue.absent()

    published = policy.value_for(task.repository.name, branch)
    if published.is_absent and not features.allow_optional_published:
        return PublishedValue.of(False)
    return published


def create_changeset_specs(
    task: Task,
    result: ExecutionResult,
    features: FeatureFlags,
    *,
    render: Renderer = render_changeset_template_field,
    default_author: CommitAuthor = DEFAULT_AUTHOR,
) -> list[ChangesetSpec]:
    """Build one changeset spec per branch the task's diff ends up on.

    Without applicable transformChanges groups there is exactly one spec, on
    the template branch, carrying the unmodified diff. Any render, validation
    or diff error aborts the whole call; no partial list is returned.
    """
    template = task.template
    repo = task.repository
    ctx = ChangesetTemplateContext.build(task.batch_change, repo, result)

    author_name = ""
    author_email = ""
    if template.commit.author is None:
        if features.include_auto_author_details:
            author_name = default_author.name
            author_email = default_author.email
    else:
        author_name = render("authorName", template.commit.author.name, ctx)
        author_email = render("authorEmail", template.commit.author.email, ctx)

    title = render("title", template.title, ctx)
    body = render("body", template.body, ctx)
    message = render("message", template.commit.message, ctx)
    default_branch = render("branch", template.branch, ctx)

    groups = groups_for_repository(repo.name, task.transform_changes)
    if groups:
        # Group branches are compared against the branch as written in the template.
        validate_groups(repo.name, template.branch, groups)
        diffs_by_branch = group_file_diffs(result.diff, default_branch, groups)
    else:
        diffs_by_branch = {default_branch: result.diff}

    specs: list[ChangesetSpec] = []
    for branch, diff in diffs_by_branch.items():
        specs.append(
            ChangesetSpec(
                base_repository=repo.id,
                base_ref=repo.base_ref,
                base_rev=repo.rev,
                head_repository=repo.id,
                head_ref=ensure_ref_prefix(branch),
                title=title,
                body=body,
                commits=[
                    GitCommitDescription(
                        message=message,
                        author_name=author_name,
                        author_email=author_email,
                        diff=diff,
                    )
                ],
                published=resolve_published(task, branch, features),
            )
        )

    logger.debug("built %d changeset specs for %s", len(specs), repo.name)
    return specs
