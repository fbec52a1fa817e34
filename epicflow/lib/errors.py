"""
Error types for the epic lifecycle.

Every lifecycle operation fails with one of these. Commands print the
message (and captured tool output, where there is one) and exit non-zero.
Nothing is retried automatically.
"""


class EpicflowError(Exception):
    """Base class for lifecycle errors."""
    exit_code = 1


class MissingPRD(EpicflowError):
    """The referenced epic has no PRD document."""
    exit_code = 2

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"No PRD found for epic '{slug}'")


class PreflightFailed(EpicflowError):
    """Repository state does not allow the transition."""

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(f"Preflight failed: {reason}" + (f" ({detail})" if detail else ""))


class ExternalStepFailed(EpicflowError):
    """A delegated tool returned non-success."""

    def __init__(self, step: str, output: str):
        self.step = step
        self.output = output
        super().__init__(f"Step '{step}' failed")


class MissingInput(EpicflowError):
    """A required answer or PR link was not supplied."""
    exit_code = 2

    def __init__(self, field: str, hint: str = ""):
        self.field = field
        self.hint = hint
        super().__init__(f"Missing required input: {field}" + (f" - {hint}" if hint else ""))


class AlreadyExists(EpicflowError):
    """Refusing to overwrite an existing document or branch."""
    exit_code = 2

    def __init__(self, what: str):
        self.what = what
        super().__init__(f"Already exists: {what}")
