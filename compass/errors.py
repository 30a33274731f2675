"""
Error types for the maintenance toolkit.

The matching and deduplication code never raises for empty results; these
exceptions describe failures of configuration and of the backing store.
"""

from dataclasses import dataclass, field


class CompassError(Exception):
    """Base class for toolkit errors."""


class ConfigurationError(CompassError):
    """Required credentials, paths or tables are missing or invalid."""


class StoreError(CompassError):
    """Request-level failure talking to the backing store."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        ids: list[str] | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.ids = list(ids or [])
        self.status_code = status_code

    def __str__(self) -> str:
        base = super().__str__()
        parts = []
        if self.operation:
            parts.append(f"operation={self.operation}")
        if self.ids:
            parts.append(f"ids={','.join(self.ids)}")
        return f"{base} ({'; '.join(parts)})" if parts else base


class NotFoundError(StoreError):
    """A requested entity does not exist."""


class PermissionDeniedError(StoreError):
    """The store rejected the request by policy (RLS, missing role, bad key)."""


class VerificationMismatch(StoreError):
    """A delete reported success but the rows are still present."""


@dataclass
class BatchError:
    """One failed batch or id, with the underlying message."""

    ids: list[str]
    message: str
    kind: str = "error"

    def to_dict(self) -> dict:
        return {"ids": list(self.ids), "message": self.message, "kind": self.kind}


@dataclass
class BatchResult:
    """Outcome of a batched delete or update."""

    succeeded: list[str] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)

    @property
    def failed_ids(self) -> list[str]:
        return [i for err in self.errors for i in err.ids]

    @property
    def ok(self) -> bool:
        return not self.errors

    def merge(self, other: "BatchResult") -> None:
        self.succeeded.extend(other.succeeded)
        self.errors.extend(other.errors)


class PartialBatchFailure(CompassError):
    """Some ids in a batch operation failed; every failure carries its ids."""

    def __init__(self, operation: str, result: BatchResult):
        self.operation = operation
        self.result = result
        failed = len(result.failed_ids)
        super().__init__(
            f"{operation}: {failed} id(s) failed, {len(result.succeeded)} succeeded"
        )
