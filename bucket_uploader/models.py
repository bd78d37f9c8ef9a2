"""
Module containing data models for the upload pipeline.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Outcome(str, Enum):
    """Terminal state of a single candidate."""
    SKIPPED_IGNORED = "skipped-ignored"
    SKIPPED_EXCLUDED = "skipped-excluded"
    SKIPPED_UNRESOLVABLE_TYPE = "skipped-unresolvable-type"
    SKIPPED_FILTERED = "skipped-filtered"
    DRY_RUN = "dry-run"
    UPLOADED = "uploaded"
    FAILED = "failed"

    @property
    def is_skipped(self) -> bool:
        return self.value.startswith("skipped-")


@dataclass
class UploadDecision:
    """Represents what happened to one candidate file."""
    file_path: str
    outcome: Outcome
    key: Optional[str] = None
    content_type: Optional[str] = None
    content_encoding: Optional[str] = None
    size_bytes: Optional[int] = None
    etag: Optional[str] = None
    error: Optional[Exception] = None


@dataclass
class BatchResult:
    """Aggregate of every decision made during one run.

    Only the first failure observed is kept as ``first_error``; the
    individual failures remain available on their decisions.
    """
    total_files: int
    decisions: List[UploadDecision] = field(default_factory=list)
    first_error: Optional[Exception] = None

    def record(self, decision: UploadDecision) -> None:
        """Add a finished decision to the batch.

        Args:
            decision: Decision in a terminal state
        """
        self.decisions.append(decision)
        if decision.outcome is Outcome.FAILED and self.first_error is None:
            self.first_error = decision.error

    @property
    def completed(self) -> bool:
        """Check whether every candidate reached a terminal outcome.

        Returns:
            True if there is one decision per listed file
        """
        return len(self.decisions) == self.total_files

    @property
    def succeeded(self) -> bool:
        """Check whether the batch finished without any failure.

        Returns:
            True if no decision failed
        """
        return self.first_error is None

    @property
    def uploaded(self) -> int:
        """Number of candidates stored in the bucket."""
        return len(self.by_outcome(Outcome.UPLOADED))

    @property
    def failed(self) -> int:
        """Number of candidates that failed."""
        return len(self.by_outcome(Outcome.FAILED))

    @property
    def dry_run(self) -> int:
        """Number of candidates that would have been uploaded."""
        return len(self.by_outcome(Outcome.DRY_RUN))

    @property
    def skipped(self) -> int:
        """Number of candidates skipped for any reason."""
        return sum(1 for d in self.decisions if d.outcome.is_skipped)

    def by_outcome(self, outcome: Outcome) -> List[UploadDecision]:
        """Get the decisions with a given outcome.

        Args:
            outcome: Outcome to select

        Returns:
            Matching decisions in completion order
        """
        return [d for d in self.decisions if d.outcome is outcome]

    def keys(self, outcome: Outcome = Outcome.UPLOADED) -> List[str]:
        """Get the final keys of every decision with the given outcome."""
        return sorted(d.key for d in self.by_outcome(outcome) if d.key is not None)

    def raise_for_failure(self) -> None:
        """Raise the first failure of the batch, if any."""
        if self.first_error is not None:
            raise self.first_error
