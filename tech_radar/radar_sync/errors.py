"""Error taxonomy for radar synchronisation."""
from __future__ import annotations


class RadarSyncError(Exception):
    """Base class for every failure that halts a sync run."""


class ValidationError(RadarSyncError):
    """The submitted form is incomplete or unusable."""

    MISSING_FIELD = "missing_field"
    INVALID_TITLE = "invalid_title"

    def __init__(self, kind: str, missing_field: str | None = None) -> None:
        self.kind = kind
        self.missing_field = missing_field
        if kind == self.MISSING_FIELD:
            message = f"Missing required field: {missing_field}"
        else:
            message = "Invalid technology name: cannot generate a valid filename"
        super().__init__(message)

    @classmethod
    def missing(cls, label: str) -> ValidationError:
        return cls(cls.MISSING_FIELD, missing_field=label)

    @classmethod
    def invalid_title(cls) -> ValidationError:
        return cls(cls.INVALID_TITLE)


class StructuralError(RadarSyncError):
    """The stored document cannot be merged into without guessing."""

    def __init__(self, reason: str, path: str | None = None) -> None:
        self.reason = reason
        self.path = path
        prefix = f"{path}: " if path else ""
        super().__init__(f"{prefix}ambiguous merge: {reason}")


class ConcurrentModification(RadarSyncError):
    """The revision token used for a write no longer matches the store."""

    def __init__(self, path: str, detail: str | None = None) -> None:
        self.path = path
        message = f"{path} was modified concurrently"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class StoreUnavailable(RadarSyncError):
    """Transport, authentication or unexpected failure from the store."""
