"""Final report and exit code for a CI run."""

import logging
from collections.abc import Mapping
from typing import Any

from qa_copilot_ci.models.result import OutcomeStatus, RunOutcome

STATUS_SYMBOLS: Mapping[OutcomeStatus, str] = {
    "success": "✅",
    "success_with_skips": "⚠️",
    "failure": "❌",
    "error": "❗",
    "timeout": "⏱️",
}

STATUS_HEADLINES: Mapping[OutcomeStatus, str] = {
    "success": "All test cases passed",
    "success_with_skips": "Test cases passed, some were skipped",
    "failure": "Some test cases failed",
    "error": "Could not determine the test plan result",
    "timeout": "Test plan did not finish in time",
}

SUCCESS_STATUSES: frozenset[OutcomeStatus] = frozenset(
    ["success", "success_with_skips"]
)


def exit_code(outcome: RunOutcome) -> int:
    """Process exit code for an outcome."""
    return 0 if outcome.status in SUCCESS_STATUSES else 1


def log_report(log: logging.Logger, outcome: RunOutcome) -> None:
    """Log a formatted multi-section report of the run."""
    level = {
        "success": logging.INFO,
        "success_with_skips": logging.WARNING,
    }.get(outcome.status, logging.ERROR)

    log.info("=" * 80)
    log.info("QA Copilot Results:")
    log.info("=" * 80)
    log.log(
        level,
        "%s %s: %s",
        STATUS_SYMBOLS[outcome.status],
        outcome.status.upper(),
        STATUS_HEADLINES[outcome.status],
    )
    log.info("Elapsed: %s", outcome.elapsed)

    if outcome.failed:
        log.error("Failed test cases (%d):", len(outcome.failed))
        for title in outcome.failed:
            log.error("  - %s", title)

    if outcome.skipped:
        log.warning("Skipped test cases (%d):", len(outcome.skipped))
        for title in outcome.skipped:
            log.warning("  - %s", title)

    if outcome.message:
        log.log(level, "Message: %s", outcome.message)
    if outcome.plan_url:
        log.info("Test plan: %s", outcome.plan_url)
    log.info("=" * 80)


def format_output(outcome: RunOutcome) -> dict[str, Any]:
    """Format an outcome for JSON output."""
    return {
        "status": outcome.status,
        "exit_code": exit_code(outcome),
        "plan_id": outcome.plan_id,
        "plan_url": outcome.plan_url,
        "elapsed": outcome.elapsed,
        "elapsed_ms": round(outcome.elapsed_ms),
        "failed": list(outcome.failed),
        "skipped": list(outcome.skipped),
        "message": outcome.message,
    }
