"""Fixtures for unit tests."""

from pathlib import Path

import pytest

from shell_test_runner.harness.context import AssertionContext
from shell_test_runner.store import ResultStore, TestDir


@pytest.fixture
def store(tmp_path: Path) -> ResultStore:
    """Create a prepared result store in a temporary directory."""
    result_store = ResultStore(root=tmp_path / "results")
    result_store.prepare()
    return result_store


@pytest.fixture
def test_dir(store: ResultStore) -> TestDir:
    """Create the result record of a test named test_example."""
    return store.create("test_example")


@pytest.fixture
def context(test_dir: TestDir) -> AssertionContext:
    """Create an assertion context that never signals any process."""
    return AssertionContext(
        test_dir=test_dir,
        frames=(
            "at ./sample_test:4 (helper)",
            "at ./sample_test:8 (test_example)",
        ),
    )
