"""CLI entry point for driving Azure DevOps test runs."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from testrun_connect.config import ReporterConfig
from testrun_connect.reporter import RunReporter

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_REMOTE_ERROR = 1
EXIT_CONFIG_ERROR = 2


def load_config(config_json: str) -> ReporterConfig:
    """Parse reporter configuration from a JSON document.

    Raises:
        ValueError: If the document is not valid JSON
        ValidationError: If required configuration values are missing

    """
    return ReporterConfig.model_validate(json.loads(config_json))


async def start_run(
    config: ReporterConfig,
    plan_id: str,
    suite_id: str,
    name: str | None = None,
) -> int:
    """Create a run and print its id, return exit code."""
    async with RunReporter.from_config(config) as reporter:
        result = await reporter.start_run(plan_id, suite_id, name)

    print(json.dumps({"run_id": result.run_id, "status": result.status}))
    return EXIT_OK if result.run_id is not None else EXIT_REMOTE_ERROR


async def end_run(
    config: ReporterConfig, run_id: int, report_path: Path | None = None
) -> int:
    """Complete a run, attaching the report if given, return exit code."""
    async with RunReporter.from_config(config) as reporter:
        try:
            result = await reporter.end_run(run_id, report_path)
        except OSError as exc:
            log.error("Cannot attach report %s: %s", report_path, exc)
            return EXIT_REMOTE_ERROR

    print(json.dumps({"run_id": result.run_id, "status": result.status}))
    return EXIT_OK if result.ok else EXIT_REMOTE_ERROR


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Report automated test runs to Azure DevOps Test Management"
    )
    parser.add_argument(
        "--config",
        required=True,
        help="JSON configuration (token, organization, project, owner)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    start = commands.add_parser("start-run", help="Create an automated test run")
    start.add_argument("--plan", required=True, help="Test plan id")
    start.add_argument("--suite", required=True, help="Test suite id")
    start.add_argument("--name", default=None, help="Run name")

    end = commands.add_parser("end-run", help="Complete a test run")
    end.add_argument("--run", type=int, required=True, help="Test run id")
    end.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Report file to attach to the run",
    )

    return parser


def main() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    try:
        config = load_config(args.config)
    except ValueError as exc:
        log.error("Invalid configuration: %s", exc)
        sys.exit(EXIT_CONFIG_ERROR)

    if args.command == "start-run":
        coro = start_run(config, args.plan, args.suite, args.name)
    else:
        coro = end_run(config, args.run, args.report)

    sys.exit(asyncio.run(coro))


if __name__ == "__main__":  # pragma: no cover
    main()
