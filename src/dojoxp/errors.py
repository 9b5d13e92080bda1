"""Error taxonomy shared by the ledger, activity gates and moderation engine.

Duplicate submissions and reached caps are NOT errors: they come back as
regular results with ``duplicate=True`` / ``capped=True``.
"""

from __future__ import annotations


class DojoError(Exception):
    """Base class for engine errors. ``status_code`` drives the HTTP mapping."""

    status_code: int = 500
    retryable: bool = False

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(DojoError):
    """Malformed or missing identifier. Raised before any store access."""

    status_code = 400


class NotFound(DojoError):
    """Student, challenge or video does not exist. No mutation attempted."""

    status_code = 404


class TerminalStateError(DojoError):
    """A decision was made on a submission that is already approved or rejected."""

    status_code = 409


class StoreFailure(DojoError):
    """The enclosing transaction was aborted and fully rolled back."""

    status_code = 503
    retryable = True


class Misconfiguration(DojoError):
    """A correctness-critical dependency (schema, storage backend) is absent."""

    status_code = 500
