# errors.py
"""Error kinds raised (or recorded) by the inspection pipeline."""

from __future__ import annotations

__all__ = [
    "InspectionPipelineError",
    "SourceFetchError",
    "NormalizationError",
    "ValidationFailure",
    "UnseenCategoryError",
    "EmptyPartitionError",
]


class InspectionPipelineError(Exception):
    """Base class for every pipeline error."""


class SourceFetchError(InspectionPipelineError):
    """Remote download failed or returned an unexpected table shape."""


class NormalizationError(InspectionPipelineError, ValueError):
    """A raw field could not be coerced to its canonical type.

    Recorded in the normalizer's failure ledger rather than raised; the row
    is later removed by the completeness filter.
    """

    def __init__(self, field: str, value: object, reason: str, row: int | None = None):
        self.field = field
        self.value = value
        self.reason = reason
        self.row = row
        super().__init__(f"{field}={value!r}: {reason}")


class ValidationFailure(InspectionPipelineError, AssertionError):
    """A persisted analysis table broke one named invariant."""

    def __init__(self, check: str, message: str):
        self.check = check
        self.message = message
        super().__init__(f"[{check}] {message}")


class UnseenCategoryError(InspectionPipelineError, ValueError):
    """Prediction requested for a categorical level absent from training."""

    def __init__(self, column: str, levels):
        self.column = column
        self.levels = sorted(str(v) for v in levels)
        super().__init__(
            f"Column '{column}' has levels unseen during training: {', '.join(self.levels)}"
        )


class EmptyPartitionError(InspectionPipelineError, ValueError):
    """A train or test subset came out empty."""
