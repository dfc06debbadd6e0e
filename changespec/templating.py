"""Changeset template rendering.

Template fields (title, body, commit message, branch, author) use Jinja2 with
``${{ ... }}`` as the variable delimiter (blocks and comments are ``${% %}``
and ``${# #}``), so literal ``{{``, ``{%`` and ``{#`` in a body are left
alone. Available variables:

- ``batch_change.name`` / ``batch_change.description``
- ``steps.modified_files`` / ``added_files`` / ``deleted_files`` /
  ``renamed_files`` / ``path``
- ``outputs.<name>``
- ``repository.name`` / ``repository.search_result_paths``

Unknown variables are render errors, not empty strings.
"""

from typing import Any, Protocol

from jinja2 import Environment, StrictUndefined, TemplateError
from pydantic import BaseModel, ConfigDict

from changespec.errors import TemplateRenderError
from changespec.models import BatchChangeAttributes, ExecutionResult, Repository

_ENV = Environment(
    variable_start_string="${{",
    variable_end_string="}}",
    block_start_string="${%",
    block_end_string="%}",
    comment_start_string="${#",
    comment_end_string="#}",
    undefined=StrictUndefined,
    autoescape=False,
)


class StepsContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    modified_files: list[str] = []
    added_files: list[str] = []
    deleted_files: list[str] = []
    renamed_files: list[str] = []
    path: str = ""


class TemplatingRepo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    search_result_paths: list[str] = []


class ChangesetTemplateContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    batch_change: BatchChangeAttributes
    steps: StepsContext
    outputs: dict[str, Any] = {}
    repository: TemplatingRepo

    @classmethod
    def build(
        cls,
        batch_change: BatchChangeAttributes,
        repository: Repository,
        result: ExecutionResult,
    ) -> "ChangesetTemplateContext":
        changes = result.changed_files
        return cls(
            batch_change=batch_change,
            steps=StepsContext(
                modified_files=changes.modified,
                added_files=changes.added,
                deleted_files=changes.deleted,
                renamed_files=changes.renamed,
                path=result.path,
            ),
            outputs=result.outputs,
            repository=TemplatingRepo(name=repository.name, search_result_paths=sorted(repository.file_matches)),
        )

    def variables(self) -> dict[str, Any]:
        return self.model_dump()


class Renderer(Protocol):
    def __call__(self, field: str, template: str, ctx: ChangesetTemplateContext) -> str: ...


def render_changeset_template_field(field: str, template: str, ctx: ChangesetTemplateContext) -> str:
    """Render one template field, trimming surrounding whitespace.

    Raises :class:`TemplateRenderError` naming ``field`` on syntax errors and
    undefined variables.
    """
    try:
        rendered = _ENV.from_string(template).render(ctx.variables())
    except TemplateError as exc:
        raise TemplateRenderError(field, str(exc)) from exc
    return rendered.strip()
