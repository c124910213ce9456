"""Polling of a test plan until it finishes, and classification of its cases."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field, replace

from qa_copilot_ci.client import TestCollabClient
from qa_copilot_ci.config import CIConfig
from qa_copilot_ci.errors import QACopilotError
from qa_copilot_ci.formatting import humanize_duration, plan_url
from qa_copilot_ci.models.result import OutcomeStatus, RunOutcome
from qa_copilot_ci.models.testcollab import (
    CaseStatus,
    PlanStatus,
    TestPlan,
    TestPlanCase,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class PollState:
    """Bookkeeping for one polling run, replaced on every iteration."""

    started_at: float
    last_status: PlanStatus | None = None
    consecutive_errors: int = 0


@dataclass(frozen=True, kw_only=True)
class CaseBreakdown:
    """Titles of the cases that failed or were skipped."""

    failed: Sequence[str]
    skipped: Sequence[str]


def partition_cases(cases: Sequence[TestPlanCase]) -> CaseBreakdown:
    """Split cases into failed and skipped titles.

    Any other status counts as neither, including blocked and unexecuted.
    """
    return CaseBreakdown(
        failed=tuple(c.title for c in cases if c.status == CaseStatus.FAILED),
        skipped=tuple(c.title for c in cases if c.status == CaseStatus.SKIPPED),
    )


def classify(breakdown: CaseBreakdown) -> OutcomeStatus:
    """Overall status of a finished plan. Failures win over skips."""
    if breakdown.failed:
        return "failure"
    if breakdown.skipped:
        return "success_with_skips"
    return "success"


@dataclass(frozen=True, kw_only=True)
class StatusPoller:
    """Waits for a plan to reach a terminal status.

    Each iteration fetches the plan. A successful fetch resets the error
    count; a non-terminal status waits ``poll_interval`` before the next
    fetch. A failed fetch waits ``retry_interval`` instead and after
    ``max_retries`` consecutive failures polling is abandoned. Once the plan
    is terminal, all of its cases are fetched before classification.
    """

    client: TestCollabClient
    config: CIConfig
    sleep: Callable[[float], Awaitable[None]] = field(
        default=asyncio.sleep, repr=False
    )
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    async def wait_for_completion(self, plan_id: int) -> RunOutcome:
        """Poll the plan until it finishes, polling is abandoned or time runs out."""
        state = PollState(started_at=self.clock())
        log.info("Waiting for test plan %d to finish...", plan_id)

        while True:
            try:
                plan = await self.client.get_plan(plan_id)
                cases = await self._fetch_cases_if_terminal(plan)
            except QACopilotError as exc:
                state = replace(state, consecutive_errors=state.consecutive_errors + 1)
                log.warning(
                    "Failed to fetch status of plan %d (%d/%d): %s",
                    plan_id,
                    state.consecutive_errors,
                    self.config.max_retries,
                    exc,
                )
                if state.consecutive_errors >= self.config.max_retries:
                    log.error(
                        "Giving up on plan %d after %d failed attempts",
                        plan_id,
                        state.consecutive_errors,
                    )
                    return self._outcome(
                        state,
                        plan_id,
                        "error",
                        message=f"Status polling failed {state.consecutive_errors} "
                        f"times in a row: {exc}",
                    )
                if self._deadline_passed(state):
                    return self._timed_out(state, plan_id)
                await self.sleep(self.config.retry_interval)
                continue

            state = replace(state, consecutive_errors=0, last_status=plan.status)

            if cases is not None:
                breakdown = partition_cases(cases)
                log.info(
                    "Plan %d finished with status=%s (%d case(s))",
                    plan_id,
                    plan.status.name,
                    len(cases),
                )
                return self._outcome(
                    state,
                    plan_id,
                    classify(breakdown),
                    failed=breakdown.failed,
                    skipped=breakdown.skipped,
                )

            overall = plan.results.overall
            log.info(
                "Plan %d status=%s passed=%d failed=%d skipped=%d blocked=%d "
                "unexecuted=%d",
                plan_id,
                plan.status.name,
                overall.passed,
                overall.failed,
                overall.skipped,
                overall.blocked,
                overall.unexecuted,
            )

            if self._deadline_passed(state):
                return self._timed_out(state, plan_id)

            await self.sleep(self.config.poll_interval)

    async def _fetch_cases_if_terminal(
        self, plan: TestPlan
    ) -> Sequence[TestPlanCase] | None:
        if not plan.status.is_terminal:
            return None
        return await self.client.get_all_plan_cases(plan.id, self.config.page_size)

    def _elapsed_ms(self, state: PollState) -> float:
        return (self.clock() - state.started_at) * 1000

    def _deadline_passed(self, state: PollState) -> bool:
        if self.config.max_wait is None:
            return False
        return self._elapsed_ms(state) >= self.config.max_wait * 1000

    def _timed_out(self, state: PollState, plan_id: int) -> RunOutcome:
        log.error(
            "Plan %d did not finish within %s seconds", plan_id, self.config.max_wait
        )
        last = state.last_status.name if state.last_status is not None else "unknown"
        return self._outcome(
            state,
            plan_id,
            "timeout",
            message=f"Plan did not finish within {self.config.max_wait} seconds "
            f"(last status: {last})",
        )

    def _outcome(
        self,
        state: PollState,
        plan_id: int,
        status: OutcomeStatus,
        *,
        failed: Sequence[str] = (),
        skipped: Sequence[str] = (),
        message: str | None = None,
    ) -> RunOutcome:
        elapsed_ms = self._elapsed_ms(state)
        return RunOutcome(
            status=status,
            elapsed_ms=elapsed_ms,
            elapsed=humanize_duration(elapsed_ms),
            plan_id=plan_id,
            plan_url=plan_url(self.config.api_url, self.config.project_id, plan_id),
            failed=failed,
            skipped=skipped,
            message=message,
        )
