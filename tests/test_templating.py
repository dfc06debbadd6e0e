"""Tests for changespec.templating."""

import pytest

from changespec.errors import TemplateRenderError
from changespec.models import BatchChangeAttributes, ChangedFiles, ExecutionResult, Repository
from changespec.templating import ChangesetTemplateContext, render_changeset_template_field


@pytest.fixture
def ctx(repository: Repository) -> ChangesetTemplateContext:
    result = ExecutionResult(
        diff="",
        changed_files=ChangedFiles(modified=["backend/a.go"], added=["docs/new.md"]),
        outputs={"version": "1.2.3", "owners": ["alice", "bob"]},
        path="/work/acme-api",
    )
    return ChangesetTemplateContext.build(BatchChangeAttributes(name="bump-deps", description="Bump"), repository, result)


def test_plain_text_passes_through(ctx: ChangesetTemplateContext) -> None:
    assert render_changeset_template_field("title", "Bump dependencies", ctx) == "Bump dependencies"


def test_batch_change_and_repository(ctx: ChangesetTemplateContext) -> None:
    rendered = render_changeset_template_field("title", "${{ batch_change.name }} in ${{ repository.name }}", ctx)
    assert rendered == "bump-deps in github.com/acme/api"


def test_outputs(ctx: ChangesetTemplateContext) -> None:
    rendered = render_changeset_template_field("branch", "bump-${{ outputs.version }}", ctx)
    assert rendered == "bump-1.2.3"


def test_steps_and_filters(ctx: ChangesetTemplateContext) -> None:
    rendered = render_changeset_template_field(
        "body", "${{ steps.modified_files | join(', ') }} / ${{ steps.added_files | length }}", ctx
    )
    assert rendered == "backend/a.go / 1"


def test_search_result_paths_sorted(ctx: ChangesetTemplateContext) -> None:
    rendered = render_changeset_template_field("body", "${{ repository.search_result_paths | join(' ') }}", ctx)
    assert rendered == "backend/a.go frontend/b.ts"


def test_surrounding_whitespace_trimmed(ctx: ChangesetTemplateContext) -> None:
    assert render_changeset_template_field("message", "\n  Bump ${{ outputs.version }}\n\n", ctx) == "Bump 1.2.3"


def test_literal_double_braces_untouched(ctx: ChangesetTemplateContext) -> None:
    assert render_changeset_template_field("body", "use {{ mustache }}", ctx) == "use {{ mustache }}"


@pytest.mark.parametrize(
    "text",
    ["See {#123} for context", "Use {% raw %} blocks", "a {%- b", "closing %} and #} alone"],
)
def test_literal_block_and_comment_markers_untouched(ctx: ChangesetTemplateContext, text: str) -> None:
    assert render_changeset_template_field("body", text, ctx) == text


def test_dollar_prefixed_block(ctx: ChangesetTemplateContext) -> None:
    template = "${% for f in steps.modified_files %}${{ f }};${% endfor %}"
    assert render_changeset_template_field("body", template, ctx) == "".join(
        f"{f};" for f in ctx.steps.modified_files
    )


def test_undefined_variable_fails(ctx: ChangesetTemplateContext) -> None:
    with pytest.raises(TemplateRenderError, match="'title'") as exc_info:
        render_changeset_template_field("title", "${{ outputs.missing }}", ctx)
    assert exc_info.value.field == "title"


def test_syntax_error_fails(ctx: ChangesetTemplateContext) -> None:
    with pytest.raises(TemplateRenderError):
        render_changeset_template_field("body", "${{ repository.name ", ctx)


def test_context_not_mutated_by_render(ctx: ChangesetTemplateContext) -> None:
    before = ctx.model_dump()
    render_changeset_template_field("body", "${{ outputs.owners.append('eve') }}", ctx)
    assert ctx.model_dump() == before
