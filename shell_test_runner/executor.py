"""Run a single shell test function in its own process group."""

import asyncio
import logging
import os
import signal
import sys
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from importlib.resources import as_file, files
from pathlib import Path

from shell_test_runner.config import RunnerConfig
from shell_test_runner.errors import ResultStoreError, TestNameError
from shell_test_runner.models.result import TestResult
from shell_test_runner.reporting import Reporter
from shell_test_runner.store import (
    STATUS_FAILURE,
    STATUS_SUCCESS,
    ResultStore,
    TestDir,
    read_record,
    read_status,
    record_failure,
    record_success,
)

log = logging.getLogger(__name__)

NO_EXIT_STATUS_MESSAGE = "no exit status: did the test die?"
NO_ASSERTIONS_MESSAGE = "no assertions made"

# Lets the child interpreter import this package even when it is not installed.
PACKAGE_ROOT = Path(__file__).resolve().parent.parent


def validate_test_name(name: str) -> None:
    """Check a test name can be used as a result record name.

    Raises:
        TestNameError: If the name is empty or contains whitespace

    """
    if not name:
        raise TestNameError("Test name is empty")
    if any(char.isspace() for char in name):
        raise TestNameError(f"Test name '{name}' contains whitespace")


def classify(test_dir: TestDir) -> str | None:
    """Decide the outcome of a finished test from its result record.

    Returns:
        The failure message, or None if the test succeeded

    """
    record = read_record(test_dir)
    if record.error_message is not None:
        return record.error_message.rstrip("\n")
    if record.exit_code is None:
        return NO_EXIT_STATUS_MESSAGE
    if record.exit_code != 0:
        return f"test exited with status {record.exit_code}"
    if not record.assertions:
        return NO_ASSERTIONS_MESSAGE
    return None


def _child_environment() -> Mapping[str, str]:
    env = dict(os.environ)
    python_path = env.get("PYTHONPATH")
    env["PYTHONPATH"] = (
        f"{PACKAGE_ROOT}{os.pathsep}{python_path}" if python_path else str(PACKAGE_ROOT)
    )
    return env


def _kill_process_group(pgid: int) -> None:
    """Kill whatever the test left running in its process group."""
    try:
        os.killpg(pgid, signal.SIGKILL)
    except ProcessLookupError:
        return
    except PermissionError:
        log.warning("Cannot clean up process group %d", pgid)
        return
    log.info("Killed leftover processes of process group %d", pgid)


@dataclass(frozen=True, kw_only=True)
class TestExecutor:
    """Runs test functions one at a time and records their outcome."""

    __test__ = False

    config: RunnerConfig
    store: ResultStore
    reporter: Reporter
    python: str = field(default=sys.executable)

    async def run_test(self, name: str, source: Path) -> TestResult:
        """Run one test function from ``source`` and classify its outcome.

        Invalid or duplicate test names are reported as ``error`` results
        without touching any existing result record.
        """
        started = time.monotonic()
        try:
            validate_test_name(name)
            if not source.name:
                raise TestNameError(f"Test '{name}' has no source file")
            test_dir = self.store.create(name)
        except (TestNameError, ResultStoreError) as e:
            log.error("Cannot run test %r from %s: %s", name, source, e)
            return self._report(
                TestResult(
                    name=name,
                    source=source,
                    status="error",
                    duration=time.monotonic() - started,
                    message=str(e),
                )
            )

        returncode = await self._spawn(name, source, test_dir)
        log.info("Test %s exited with return code %s", name, returncode)

        if (message := classify(test_dir)) is None:
            record_success(test_dir)
        else:
            record_failure(test_dir, f"{message}\n")

        duration = time.monotonic() - started
        status = read_status(test_dir)
        if status == STATUS_SUCCESS:
            result = TestResult(
                name=name, source=source, status="success", duration=duration
            )
        elif status == STATUS_FAILURE:
            result = TestResult(
                name=name,
                source=source,
                status="failure",
                duration=duration,
                message=message,
            )
        else:
            result = TestResult(
                name=name,
                source=source,
                status="error",
                duration=duration,
                message=f"unexpected status {status!r}",
            )
        return self._report(result)

    async def _spawn(self, name: str, source: Path, test_dir: TestDir) -> int:
        """Run the driver for one test and wait for its process group.

        The process group is killed when the wait ends, including when the
        wait is cancelled.
        """
        # Tests may change directory, so the driver only gets absolute paths.
        test_path = test_dir.path.resolve()
        with (
            as_file(files("shell_test_runner.harness") / "driver.sh") as driver,
            test_dir.stdout.open("wb") as stdout,
        ):
            args = [
                str(driver),
                self.python,
                str(test_path),
                str(test_path / test_dir.exit_code.name),
                str(source),
                name,
            ]
            if self.config.verbose:
                args.append(str(test_path / test_dir.stderr.name))
            else:
                test_dir.stderr.touch()

            process = await asyncio.create_subprocess_exec(
                self.config.shell,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=stdout,
                stderr=asyncio.subprocess.STDOUT,
                env=_child_environment(),
                start_new_session=True,
            )
            log.info("Spawned test %s as process %d", name, process.pid)
            try:
                return await process.wait()
            finally:
                # The root leads the session, so its pid is the process group id.
                _kill_process_group(process.pid)

    def _report(self, result: TestResult) -> TestResult:
        self.reporter.test_finished(result)
        return result
