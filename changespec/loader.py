"""Reading tasks and execution results from disk.

A task file is TOML::

    [repository]
    id = "UmVwb3NpdG9yeTox"
    name = "github.com/acme/api"
    base_ref = "refs/heads/main"
    rev = "f00b4r"

    [batch_change]
    name = "bump-deps"

    [changeset_template]
    title = "Bump dependencies"
    branch = "bump-deps"
    published = false

    [changeset_template.commit]
    message = "Bump dependencies"

    [[transform_changes.group]]
    directory = "backend/"
    branch = "bump-deps-backend"
"""

import sys
from pathlib import Path
from typing import Any

import tomlkit
from pydantic import ValidationError
from tomlkit.exceptions import TOMLKitError

from changespec.diffs import changed_files
from changespec.errors import TaskFileError
from changespec.models import ExecutionResult, Task


def load_task(path: Path) -> Task:
    try:
        doc = tomlkit.parse(path.read_text(encoding="utf-8"))
    except (OSError, TOMLKitError) as exc:
        raise TaskFileError(f"cannot read task file {path}: {exc}") from exc
    try:
        return Task.model_validate(doc.unwrap())
    except ValidationError as exc:
        raise TaskFileError(f"invalid task file {path}:\n{exc}") from exc


def read_diff(path: Path) -> str:
    """Read a diff file; ``-`` reads stdin."""
    if str(path) == "-":
        return sys.stdin.read()
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TaskFileError(f"cannot read diff {path}: {exc}") from exc


def load_execution_result(diff_path: Path, outputs: dict[str, Any] | None = None, path: str = "") -> ExecutionResult:
    diff = read_diff(diff_path)
    return ExecutionResult(diff=diff, changed_files=changed_files(diff), outputs=outputs or {}, path=path)


def load_outputs(path: Path) -> dict[str, Any]:
    """Read a TOML file holding the outputs bag exposed to templates as ``outputs``."""
    try:
        return tomlkit.parse(path.read_text(encoding="utf-8")).unwrap()
    except (OSError, TOMLKitError) as exc:
        raise TaskFileError(f"cannot read outputs file {path}: {exc}") from exc
