"""Splitting a combined multi-file diff into one diff per branch."""

import logging
from collections.abc import Iterable
from io import StringIO

from unidiff import PatchedFile, PatchSet
from unidiff.errors import UnidiffParseError

from changespec.errors import DiffParseError, DiffPrintError
from changespec.models import ChangedFiles, Group

logger = logging.getLogger(__name__)

DEV_NULL = "/dev/null"


def parse_file_diffs(complete_diff: str) -> list[PatchedFile]:
    """Parse a combined diff into per-file diffs, in their original order."""
    try:
        file_diffs = list(PatchSet(StringIO(complete_diff)))
    except UnidiffParseError as exc:
        raise DiffParseError(str(exc)) from exc
    # PatchSet skips text it does not recognise; a non-empty diff must yield files
    if not file_diffs and complete_diff.strip():
        raise DiffParseError("no file diffs found in non-empty input")
    return file_diffs


def print_file_diffs(branch: str, file_diffs: Iterable[PatchedFile]) -> str:
    try:
        return "".join(str(f) for f in file_diffs)
    except (TypeError, ValueError) as exc:
        raise DiffPrintError(branch, str(exc)) from exc


def effective_path(file_diff: PatchedFile) -> str:
    """New name of the file as it appears in the diff, or the old one for deletions."""
    name = file_diff.target_file
    if name == DEV_NULL:
        name = file_diff.source_file
    return name


def group_file_diffs(complete_diff: str, default_branch: str, groups: list[Group]) -> dict[str, str]:
    """Split complete_diff into one diff per branch according to groups.

    A file belongs to the group whose directory is contained in its path. The
    match is a plain substring test, so ``api`` also matches ``docs/api-notes.md``.
    When several directories match, the one declared last wins.

    Files matching no group go to default_branch, which is always present in
    the result (with an empty diff if nothing is left for it). Groups without
    any matching file are absent. Branches are ordered default first, then by
    their first file in the diff.
    """
    file_diffs = parse_file_diffs(complete_diff)

    # Built together: every entry in dirs has a branch in branches_by_directory.
    branches_by_directory: dict[str, str] = {}
    dirs: list[str] = []
    for g in groups:
        branches_by_directory[g.directory] = g.branch
        dirs.append(g.directory)

    by_branch: dict[str, list[PatchedFile]] = {default_branch: []}
    for f in file_diffs:
        name = effective_path(f)

        matching_dir = ""
        for d in dirs:
            if d in name:
                matching_dir = d

        if not matching_dir:
            by_branch[default_branch].append(f)
            continue

        branch = branches_by_directory.get(matching_dir)
        if branch is None:
            raise RuntimeError(f"no branch registered for matched directory {matching_dir!r}")
        by_branch.setdefault(branch, []).append(f)

    logger.debug(
        "split %d file diffs into %s",
        len(file_diffs),
        {branch: len(files) for branch, files in by_branch.items()},
    )
    return {branch: print_file_diffs(branch, files) for branch, files in by_branch.items()}


def changed_files(complete_diff: str) -> ChangedFiles:
    """Classify the files touched by a combined diff."""
    modified: list[str] = []
    added: list[str] = []
    deleted: list[str] = []
    renamed: list[str] = []
    for f in parse_file_diffs(complete_diff):
        if f.is_added_file:
            added.append(f.path)
        elif f.is_removed_file:
            deleted.append(f.path)
        elif f.is_rename:
            renamed.append(f.path)
        else:
            modified.append(f.path)
    return ChangedFiles(modified=modified, added=added, deleted=deleted, renamed=renamed)
