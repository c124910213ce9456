"""CLI entry point for the QA Copilot CI helper."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence

from qa_copilot_ci.client import TestCollabClient
from qa_copilot_ci.config import CIConfig, load_config
from qa_copilot_ci.errors import QACopilotError, ValidationError
from qa_copilot_ci.formatting import humanize_duration
from qa_copilot_ci.models.result import RunOutcome
from qa_copilot_ci.orchestrator import PlanCreationOrchestrator
from qa_copilot_ci.poller import StatusPoller
from qa_copilot_ci.reporter import exit_code, format_output, log_report


def canned_outcome() -> RunOutcome:
    """Canned outcome reported when no API call is made."""
    return RunOutcome(
        status="success",
        elapsed_ms=0,
        elapsed=humanize_duration(0),
        message="Test mode enabled - no API calls were made",
    )


async def run(config: CIConfig) -> int:
    """Create the test plan, wait for it and return the exit code."""
    log = logging.getLogger("qa_copilot_ci")

    log.info(
        "Triggering QA Copilot for build %s at %s", config.build_id, config.app_url
    )

    if config.test_mode:
        log.info("Running in test mode - no API calls will be made")
        outcome = canned_outcome()
    else:
        try:
            async with TestCollabClient.from_config(config) as client:
                orchestrator = PlanCreationOrchestrator(client=client, config=config)
                plan_id = await orchestrator.create_plan(
                    config.build_id, config.app_url
                )
                poller = StatusPoller(client=client, config=config)
                outcome = await poller.wait_for_completion(plan_id)
        except QACopilotError as exc:
            log.error("Failed to run QA Copilot: %s", exc)
            outcome = RunOutcome(
                status="error",
                elapsed_ms=0,
                elapsed=humanize_duration(0),
                message=str(exc),
            )

    log_report(log, outcome)
    print(json.dumps(format_output(outcome), indent=2))

    return exit_code(outcome)


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the ``qac`` command.

    Every option falls back to its ``QAC_*`` environment variable.
    """
    parser = argparse.ArgumentParser(
        prog="qac",
        description="Run QA Copilot test plans on Test Collab from CI",
    )
    parser.add_argument(
        "--build", dest="build_id", help="Build ID from the CI pipeline"
    )
    parser.add_argument(
        "--app-url", "--app_url", dest="app_url", help="Application URL to test"
    )
    parser.add_argument(
        "--project-id",
        "--tc_project_id",
        dest="project_id",
        help="Test Collab project ID",
    )
    parser.add_argument("--api-key", "--api_key", dest="api_key", help="API key")
    parser.add_argument(
        "--api-url", "--api_url", dest="api_url", help="Custom API endpoint URL"
    )
    parser.add_argument(
        "--test-mode",
        "--test_mode",
        dest="test_mode",
        action="store_true",
        default=None,
        help="Run without making actual API calls",
    )
    parser.add_argument(
        "--max-wait",
        dest="max_wait",
        type=float,
        help="Give up if the plan has not finished after this many seconds",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    cli_values = vars(args)
    cli_values.pop("verbose")
    try:
        config = load_config(cli_values)
    except ValidationError as exc:
        logging.getLogger("qa_copilot_ci").error("%s", exc)
        sys.exit(1)

    sys.exit(asyncio.run(run(config)))


if __name__ == "__main__":  # pragma: no cover
    main()
