"""Models for the outcome of a CI run."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

OutcomeStatus = Literal["success", "success_with_skips", "failure", "error", "timeout"]


@dataclass(frozen=True, kw_only=True)
class RunOutcome:
    """Classified result of monitoring a single test plan.

    ``error`` means polling gave up after repeated fetch failures and
    ``timeout`` means the optional deadline passed before the plan finished.
    """

    status: OutcomeStatus
    elapsed_ms: float
    elapsed: str
    plan_id: int | None = None
    plan_url: str | None = None
    failed: Sequence[str] = field(default_factory=tuple)
    skipped: Sequence[str] = field(default_factory=tuple)
    message: str | None = None
