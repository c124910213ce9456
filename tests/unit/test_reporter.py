"""Tests for reporter module."""

import logging

import pytest

from qa_copilot_ci.reporter import exit_code, format_output, log_report
from qa_copilot_ci.testing.factories import RunOutcomeFactory

PLAN_URL = "https://app.testcollab.io/project/17/test_plans/4242/view"


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("success", 0),
        ("success_with_skips", 0),
        ("failure", 1),
        ("error", 1),
        ("timeout", 1),
    ],
)
def test_exit_code(status: str, expected: int) -> None:
    """Only clean and skipped-only runs exit with zero."""
    assert exit_code(RunOutcomeFactory.build(status=status)) == expected


def test_log_report_success(caplog: pytest.LogCaptureFixture) -> None:
    """Logs elapsed time and plan link for a clean run."""
    outcome = RunOutcomeFactory.build(plan_id=4242, plan_url=PLAN_URL)

    with caplog.at_level(logging.INFO):
        log_report(logging.getLogger(), outcome)

    assert "QA Copilot Results:" in caplog.text
    assert "✅ SUCCESS: All test cases passed" in caplog.text
    assert "Elapsed: 1 minute 30 seconds" in caplog.text
    assert f"Test plan: {PLAN_URL}" in caplog.text
    assert "Failed test cases" not in caplog.text


def test_log_report_failure(caplog: pytest.LogCaptureFixture) -> None:
    """Lists failed and skipped case titles."""
    outcome = RunOutcomeFactory.build(
        status="failure",
        failed=("Checkout", "Payment"),
        skipped=("Search",),
        plan_url=PLAN_URL,
    )

    with caplog.at_level(logging.INFO):
        log_report(logging.getLogger(), outcome)

    assert "❌ FAILURE: Some test cases failed" in caplog.text
    assert "Failed test cases (2):" in caplog.text
    assert "  - Checkout" in caplog.text
    assert "  - Payment" in caplog.text
    assert "Skipped test cases (1):" in caplog.text
    assert "  - Search" in caplog.text
    headline = next(r for r in caplog.records if "FAILURE" in r.getMessage())
    assert headline.levelno == logging.ERROR


def test_log_report_skips_are_warnings(caplog: pytest.LogCaptureFixture) -> None:
    """Surfaces a run with skipped cases as a warning."""
    outcome = RunOutcomeFactory.build(status="success_with_skips", skipped=("Search",))

    with caplog.at_level(logging.INFO):
        log_report(logging.getLogger(), outcome)

    headline = next(
        r for r in caplog.records if "SUCCESS_WITH_SKIPS" in r.getMessage()
    )
    assert headline.levelno == logging.WARNING
    assert "  - Search" in caplog.text


def test_log_report_error_message(caplog: pytest.LogCaptureFixture) -> None:
    """Logs the message of an aborted run."""
    outcome = RunOutcomeFactory.build(
        status="error", message="Status polling failed 5 times in a row"
    )

    with caplog.at_level(logging.INFO):
        log_report(logging.getLogger(), outcome)

    assert "❗ ERROR" in caplog.text
    assert "Message: Status polling failed 5 times in a row" in caplog.text


def test_format_output() -> None:
    """Formats an outcome as a JSON-ready dict."""
    outcome = RunOutcomeFactory.build(
        status="failure",
        plan_id=4242,
        plan_url=PLAN_URL,
        elapsed_ms=90000.4,
        failed=("Checkout",),
    )

    assert format_output(outcome) == {
        "status": "failure",
        "exit_code": 1,
        "plan_id": 4242,
        "plan_url": PLAN_URL,
        "elapsed": "1 minute 30 seconds",
        "elapsed_ms": 90000,
        "failed": ["Checkout"],
        "skipped": [],
        "message": None,
    }
