"""CLI entry point for the shell test runner."""

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from shell_test_runner.config import DEFAULT_RESULTS_ROOT, RunnerConfig
from shell_test_runner.errors import SetupError, SyntaxCheckError
from shell_test_runner.orchestrator import TestOrchestrator

VERBOSE_ENV_VAR = "SHELL_TEST_RUNNER_VERBOSE"

TRUTHY_VALUES = frozenset({"1", "true", "yes", "on"})


def verbose_from_env(environ: Mapping[str, str]) -> bool:
    """Read the externally set verbosity flag."""
    return environ.get(VERBOSE_ENV_VAR, "").strip().lower() in TRUTHY_VALUES


async def run(config: RunnerConfig, paths: Sequence[Path]) -> int:
    """Run all tests under ``paths`` and return the exit code."""
    log = logging.getLogger("shell_test_runner")

    orchestrator = TestOrchestrator.from_config(config)
    try:
        summary = await orchestrator.run(paths)
    except SetupError as e:
        log.error("Cannot initialize test run: %s", e)
        return 1
    except SyntaxCheckError as e:
        log.error("%s", e)
        print(f"Syntax error in {e.path}:\n{e.output}")
        return 1

    log.info("Results kept in %s", config.results_root)
    return 0 if summary.succeeded else 1


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Run shell script unit tests")
    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        help="Test files or directories to search (default: current directory)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=verbose_from_env(os.environ),
        help=(
            "Print every test outcome and trace test execution "
            f"(or set {VERBOSE_ENV_VAR}=1)"
        ),
    )
    parser.add_argument(
        "--results-dir",
        type=Path,
        default=DEFAULT_RESULTS_ROOT,
        help="Directory keeping per-test results (default: %(default)s)",
    )
    parser.add_argument(
        "--keep-previous",
        action="store_true",
        help="Move the previous run's results aside instead of deleting them",
    )
    parser.add_argument(
        "--match",
        default=None,
        help="Only run tests whose name contains this text",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    config = RunnerConfig(
        results_root=args.results_dir,
        verbose=args.verbose,
        match=args.match,
        cleanup="keep-previous" if args.keep_previous else "on-start",
    )
    sys.exit(asyncio.run(run(config, args.paths)))


if __name__ == "__main__":  # pragma: no cover
    main()
