"""Tests for the test orchestrator."""

import io
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest

from shell_test_runner.config import RunnerConfig
from shell_test_runner.errors import SetupError, SyntaxCheckError
from shell_test_runner.executor import TestExecutor
from shell_test_runner.models.test_case import TestRegistry
from shell_test_runner.orchestrator import FileResult, RunSummary, TestOrchestrator
from shell_test_runner.reporting import Reporter
from shell_test_runner.store import ResultStore, record_failure, record_success
from shell_test_runner.testing.factories import TestResultFactory


@pytest.fixture
def output() -> io.StringIO:
    """Collect reporter output."""
    return io.StringIO()


@pytest.fixture
def executor_mock() -> Mock:
    """Create mock executor."""
    return Mock(spec=TestExecutor)


@pytest.fixture
def orchestrator(
    tmp_path: Path, executor_mock: Mock, output: io.StringIO
) -> TestOrchestrator:
    """Create orchestrator with a mock executor."""
    config = RunnerConfig(results_root=tmp_path / "results")
    return TestOrchestrator(
        config=config,
        store=ResultStore(root=config.results_root),
        executor=executor_mock,
        reporter=Reporter(stream=output),
    )


class TestRunSummary:
    """Tests for RunSummary.succeeded."""

    @pytest.mark.parametrize(
        ("summary", "expected"),
        [
            (RunSummary(total=2, passed=2, failed=0, errors=0), True),
            (RunSummary(total=0, passed=0, failed=0, errors=0), False),
            (RunSummary(total=2, passed=1, failed=1, errors=0), False),
            (RunSummary(total=1, passed=1, failed=0, errors=1), False),
        ],
    )
    def test_succeeded(self, summary: RunSummary, expected: bool) -> None:
        """Succeeds only when tests ran and none failed."""
        assert summary.succeeded is expected


class TestRunRegistry:
    """Tests for run_registry."""

    async def test_runs_tests_in_order(
        self,
        orchestrator: TestOrchestrator,
        executor_mock: Mock,
        output: io.StringIO,
    ) -> None:
        """Runs each registered test and prints progress characters."""
        source = Path("sample_test")
        registry = TestRegistry()
        registry.register("test_a", source)
        registry.register("test_b", source)
        registry.register("test_c", source)
        executor_mock.run_test.side_effect = [
            TestResultFactory.build(name="test_a", status="success"),
            TestResultFactory.build(name="test_b", status="failure"),
            TestResultFactory.build(name="test_c", status="error"),
        ]

        file_result = await orchestrator.run_registry(source, registry)

        assert [r.name for r in file_result.results] == ["test_a", "test_b", "test_c"]
        assert [c.args for c in executor_mock.run_test.call_args_list] == [
            ("test_a", source),
            ("test_b", source),
            ("test_c", source),
        ]
        assert output.getvalue() == ".FE"


class TestSummarize:
    """Tests for summarize."""

    def test_counts_recorded_statuses(self, orchestrator: TestOrchestrator) -> None:
        """Recomputes counts from the result store."""
        store = orchestrator.store
        store.prepare()
        record_success(store.create("test_a"))
        record_success(store.create("test_b"))
        record_failure(store.create("test_c"), "boom\n")

        summary = orchestrator.summarize([])

        assert summary == RunSummary(total=3, passed=2, failed=1, errors=0)

    def test_counts_rejected_tests_as_errors(
        self, orchestrator: TestOrchestrator
    ) -> None:
        """Error results without a record still count."""
        orchestrator.store.prepare()
        file_results = [
            FileResult(
                source=Path("sample_test"),
                results=[TestResultFactory.build(name="test bad", status="error")],
            )
        ]

        summary = orchestrator.summarize(file_results)

        assert summary == RunSummary(total=0, passed=0, failed=0, errors=1)

    def test_reports_unknown_status(
        self, orchestrator: TestOrchestrator, output: io.StringIO
    ) -> None:
        """Surfaces records with unexpected status values."""
        store = orchestrator.store
        store.prepare()
        test_dir = store.create("test_odd")
        test_dir.status.write_text("MAYBE\n")

        summary = orchestrator.summarize([])

        assert summary.total == 1
        assert summary.passed == 0
        assert summary.failed == 0
        assert "INTERNAL ERROR: test test_odd has unexpected status 'MAYBE'" in (
            output.getvalue()
        )


class TestRun:
    """Tests for run."""

    async def test_warns_when_no_tests(
        self, orchestrator: TestOrchestrator, tmp_path: Path, output: io.StringIO
    ) -> None:
        """Prints a warning and fails when nothing ran."""
        empty = tmp_path / "empty"
        empty.mkdir()

        summary = await orchestrator.run([empty])

        assert summary.succeeded is False
        assert "WARNING: RAN NO TESTS" in output.getvalue()

    async def test_stops_on_syntax_error(
        self, orchestrator: TestOrchestrator, executor_mock: Mock, tmp_path: Path
    ) -> None:
        """Propagates syntax errors before running any test."""
        with (
            patch(
                "shell_test_runner.orchestrator.find_test_files",
                return_value=[tmp_path / "a_test", tmp_path / "b_test"],
            ),
            patch(
                "shell_test_runner.orchestrator.discover_tests",
                new_callable=AsyncMock,
                side_effect=SyntaxCheckError("a_test", "syntax error"),
            ),
            pytest.raises(SyntaxCheckError),
        ):
            await orchestrator.run([tmp_path])

        executor_mock.run_test.assert_not_called()

    async def test_missing_shell_is_setup_error(self, tmp_path: Path) -> None:
        """Refuses to start without the shell executable."""
        config = RunnerConfig(
            results_root=tmp_path / "results", shell="no-such-shell-here"
        )
        reporter = Reporter(stream=io.StringIO())
        orchestrator = TestOrchestrator.from_config(config, reporter)

        with pytest.raises(SetupError, match="no-such-shell-here"):
            await orchestrator.run([tmp_path])

        assert not config.results_root.exists()

    async def test_prepare_resets_store(
        self, orchestrator: TestOrchestrator, tmp_path: Path
    ) -> None:
        """Clears results of the previous run at start."""
        store = orchestrator.store
        store.prepare()
        store.create("test_old")
        empty = tmp_path / "empty"
        empty.mkdir()

        await orchestrator.run([empty])

        assert list(store.records()) == []


def test_from_config_resolves_results_root(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keeps results under an absolute root whatever the working directory."""
    monkeypatch.chdir(tmp_path)
    config = RunnerConfig(results_root=Path("relative-results"))

    orchestrator = TestOrchestrator.from_config(config, Reporter(stream=io.StringIO()))

    assert orchestrator.store.root == tmp_path.resolve() / "relative-results"
