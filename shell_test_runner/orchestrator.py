"""Test orchestrator driving discovery, execution and summarizing of a run."""

import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from shell_test_runner.config import RunnerConfig
from shell_test_runner.discovery import discover_tests, find_test_files
from shell_test_runner.errors import SetupError
from shell_test_runner.executor import TestExecutor
from shell_test_runner.models.result import TestResult
from shell_test_runner.models.test_case import TestRegistry
from shell_test_runner.reporting import Reporter
from shell_test_runner.store import STATUS_FAILURE, STATUS_SUCCESS, ResultStore

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class FileResult:
    """Results of the tests defined in one test file."""

    source: Path
    results: Sequence[TestResult]


@dataclass(frozen=True, kw_only=True)
class RunSummary:
    """Counts for a whole run, recomputed from the result store."""

    total: int
    passed: int
    failed: int
    errors: int

    @property
    def succeeded(self) -> bool:
        """A run succeeds only if it ran something and nothing went wrong."""
        return self.total > 0 and self.failed == 0 and self.errors == 0


@dataclass(frozen=True, kw_only=True)
class TestOrchestrator:
    """Runs every test found under the given paths, one at a time."""

    __test__ = False

    config: RunnerConfig
    store: ResultStore
    executor: TestExecutor
    reporter: Reporter

    @classmethod
    def from_config(
        cls, config: RunnerConfig, reporter: Reporter | None = None
    ) -> "TestOrchestrator":
        """Wire up the store and executor for a configuration."""
        reporter = reporter or Reporter(verbose=config.verbose)
        store = ResultStore(root=config.results_root.resolve())
        executor = TestExecutor(config=config, store=store, reporter=reporter)
        return cls(config=config, store=store, executor=executor, reporter=reporter)

    def prepare(self) -> None:
        """Check the environment and reset the result store.

        Raises:
            SetupError: If the shell is missing or the store cannot be reset

        """
        if shutil.which(self.config.shell) is None:
            raise SetupError(f"Required executable '{self.config.shell}' not found")
        self.store.prepare(self.config.cleanup)

    async def run(self, paths: Sequence[Path]) -> RunSummary:
        """Discover and run all tests, then print the summary.

        Args:
            paths: Files or directories to search; the current directory when
                empty

        Returns:
            Summary of the run

        Raises:
            SetupError: If the run environment cannot be initialized
            SyntaxCheckError: If a test file does not parse; no further
                tests are run

        """
        self.prepare()

        test_files = find_test_files(paths or [Path(".")], self.config.file_suffix)
        log.info("Found %d test file(s)", len(test_files))

        file_results: list[FileResult] = []
        for test_file in test_files:
            registry = await discover_tests(self.config, test_file)
            file_results.append(await self.run_registry(test_file, registry))

        summary = self.summarize(file_results)
        self.reporter.summary(
            summary.total, summary.passed, summary.failed, summary.errors
        )
        return summary

    async def run_registry(self, source: Path, registry: TestRegistry) -> FileResult:
        """Run the registered tests of one file in registration order."""
        results: list[TestResult] = []
        for case in registry:
            result = await self.executor.run_test(case.name, case.source)
            self.reporter.progress(result)
            results.append(result)
        return FileResult(source=source, results=results)

    def summarize(self, file_results: Sequence[FileResult]) -> RunSummary:
        """Count outcomes from the recorded statuses in the result store.

        Tests rejected before a record was created, and records with a status
        other than SUCCESS or FAILURE, count as errors.
        """
        total = passed = failed = 0
        for record in self.store.records():
            total += 1
            if record.status == STATUS_SUCCESS:
                passed += 1
            elif record.status == STATUS_FAILURE:
                failed += 1
            else:
                self.reporter.internal_error(
                    f"test {record.name} has unexpected status {record.status!r}"
                )

        errors = sum(
            1
            for file_result in file_results
            for result in file_result.results
            if result.status == "error"
        )
        return RunSummary(total=total, passed=passed, failed=failed, errors=errors)
