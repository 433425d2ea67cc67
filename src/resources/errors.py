"""
Reconciliation errors.

Every error carries the resource kind, the identifier and, for remote
failures, the remote status and message verbatim.
"""

from typing import Any, List, Optional


class ReconcileError(Exception):
    """Base class for all reconciliation failures."""

    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
        identifier: Optional[str] = None,
        status: Optional[int] = None,
        remote_message: Optional[str] = None,
    ):
        self.message = message
        self.kind = kind
        self.identifier = identifier
        self.status = status
        self.remote_message = remote_message
        super().__init__(message)


class ValidationError(ReconcileError):
    """Desired spec violates the kind's field constraints. No remote call was made."""

    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
        identifier: Optional[str] = None,
        errors: Optional[List[str]] = None,
    ):
        super().__init__(message, kind=kind, identifier=identifier)
        self.errors = errors or []


class RemoteReadError(ReconcileError):
    """Fetch failed for a reason other than not-found."""


class RemoteWriteError(ReconcileError):
    """Create, update or delete failed for a reason other than a handled conflict."""


class StateMismatchError(RemoteWriteError):
    """Read after a write does not reflect the values just written."""

    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
        identifier: Optional[str] = None,
        mismatches: Optional[List[Any]] = None,
    ):
        super().__init__(message, kind=kind, identifier=identifier)
        self.mismatches = mismatches or []


class AdoptionError(ReconcileError):
    """Create reported a conflict but the conflicting object could not be fetched."""
