"""Pydantic models for Test Collab API responses."""

from enum import IntEnum
from typing import Any

from pydantic import Field, field_validator

from qa_copilot_ci.models.base import Model


class PlanStatus(IntEnum):
    """Lifecycle status of a test plan."""

    DRAFT = 0
    READY = 1
    FINISHED = 2
    FINISHED_WITH_FAILURES = 3

    @property
    def is_terminal(self) -> bool:
        """Whether execution of the plan has ended."""
        return self in TERMINAL_PLAN_STATUSES


TERMINAL_PLAN_STATUSES: frozenset[PlanStatus] = frozenset(
    [PlanStatus.FINISHED, PlanStatus.FINISHED_WITH_FAILURES]
)


class CaseStatus(IntEnum):
    """Execution status of a test case inside a plan."""

    PASSED = 1
    FAILED = 2
    SKIPPED = 3
    BLOCKED = 4
    UNEXECUTED = 5


def coerce_status_code(value: Any) -> int:
    """Accept an int or a numeric string, reject everything else."""
    if isinstance(value, bool):
        raise ValueError(f"unrecognized status {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError(f"unrecognized status {value!r}")


class OverallResults(Model):
    """Aggregate case counts of a plan."""

    passed: int = 0
    failed: int = 0
    unexecuted: int = 0
    skipped: int = 0
    blocked: int = 0


class PlanResults(Model):
    """Results block of a plan."""

    overall: OverallResults = Field(default_factory=OverallResults)


class TestPlan(Model):
    """A test plan as returned by ``GET testplans/{id}``."""

    __test__ = False

    id: int
    status: PlanStatus
    title: str = ""
    results: PlanResults = Field(default_factory=PlanResults)

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, value: Any) -> int:
        """Normalize numeric strings before enum validation."""
        return coerce_status_code(value)


class TestPlanCase(Model):
    """A test case attached to a plan."""

    __test__ = False

    id: int
    status: CaseStatus
    title: str

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, value: Any) -> int:
        """Normalize numeric strings before enum validation."""
        return coerce_status_code(value)


class ProjectSettings(Model):
    """Feature toggles of a project."""

    id: int
    automation_enabled: bool = False


class CustomField(Model):
    """A custom field defined on a project."""

    id: int
    name: str
    field_type: str


class Tag(Model):
    """A test case tag."""

    id: int
    name: str


class User(Model):
    """Account behind a project membership."""

    id: int
    username: str
    name: str = ""


class ProjectUser(Model):
    """Membership of a user in a project."""

    id: int
    user: User


class CreatedResource(Model):
    """Response of a create call."""

    id: int


class CountResponse(Model):
    """Response of a count call."""

    count: int


class BulkAddResponse(Model):
    """Response of the bulk add call."""

    added: int

