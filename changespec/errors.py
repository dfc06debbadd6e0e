"""Error types raised while assembling changeset specs."""


class ChangespecError(Exception):
    """Base class for every error the engine reports to its caller."""


class ChangesetValidationError(ChangespecError):
    """User input that cannot produce valid changeset specs. Not retryable."""


class OptionalPublishedUnsupportedError(ChangesetValidationError):
    def __init__(self) -> None:
        super().__init__(
            'This Sourcegraph version requires the "published" field to be specified in the batch spec; '
            "upgrade to version 3.30.0 or later to be able to omit the published field and control "
            "publication from the UI."
        )


class TemplateRenderError(ChangespecError):
    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        super().__init__(f"rendering changeset template field {field!r} failed: {reason}")


class DiffGroupingError(ChangespecError):
    """Splitting a combined diff into per-branch diffs failed."""


class DiffParseError(DiffGroupingError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"parsing multi file diff failed: {reason}")


class DiffPrintError(DiffGroupingError):
    def __init__(self, branch: str, reason: str) -> None:
        self.branch = branch
        super().__init__(f"printing multi file diff failed for branch {branch!r}: {reason}")


class TaskFileError(ChangespecError):
    """Task file is missing, malformed, or fails validation."""
