"""Fixtures for integration tests running real shells."""

import io
import shutil
import textwrap
from pathlib import Path
from typing import Protocol

import pytest

from shell_test_runner.config import RunnerConfig
from shell_test_runner.executor import TestExecutor
from shell_test_runner.reporting import Reporter
from shell_test_runner.store import ResultStore


class WriteScriptFn(Protocol):
    """Protocol for test script creation function."""

    def __call__(self, body: str, *, name: str = "sample_test") -> Path:
        """Write a shell test file and return its path."""


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Skip integration tests when bash is not installed."""
    if shutil.which("bash") is not None:
        return
    skip = pytest.mark.skip(reason="bash is not installed")
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(skip)


@pytest.fixture
def write_script(tmp_path: Path) -> WriteScriptFn:
    """Return a function writing shell test files into a scripts directory."""
    scripts = tmp_path / "scripts"
    scripts.mkdir()

    def _write(body: str, *, name: str = "sample_test") -> Path:
        path = scripts / name
        path.write_text("#!/bin/bash\n" + textwrap.dedent(body).lstrip("\n"))
        path.chmod(0o755)
        return path

    return _write


@pytest.fixture
def config(tmp_path: Path) -> RunnerConfig:
    """Create configuration with a temporary results root."""
    return RunnerConfig(results_root=tmp_path / "results")


@pytest.fixture
def store(config: RunnerConfig) -> ResultStore:
    """Create a prepared result store."""
    result_store = ResultStore(root=config.results_root)
    result_store.prepare()
    return result_store


@pytest.fixture
def output() -> io.StringIO:
    """Collect reporter output."""
    return io.StringIO()


@pytest.fixture
def executor(
    config: RunnerConfig, store: ResultStore, output: io.StringIO
) -> TestExecutor:
    """Create executor running tests with the real driver."""
    return TestExecutor(config=config, store=store, reporter=Reporter(stream=output))
