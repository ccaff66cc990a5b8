"""Configuration for a test run."""

import tempfile
from pathlib import Path

from pydantic import Field

from shell_test_runner.models.base import Model
from shell_test_runner.store import CleanupPolicy

DEFAULT_RESULTS_ROOT = Path(tempfile.gettempdir()) / "shell-test-runner"


class RunnerConfig(Model):
    """Configuration shared by the orchestrator and executor."""

    results_root: Path = Field(
        default=DEFAULT_RESULTS_ROOT,
        description="Directory holding one result record per test",
    )
    verbose: bool = Field(default=False, description="Echo every test outcome")
    file_suffix: str = Field(default="_test", description="Test file name suffix")
    test_prefix: str = Field(default="test", description="Test function prefix")
    match: str | None = Field(
        default=None, description="Only run tests whose name contains this text"
    )
    shell: str = Field(default="bash", description="Shell used to run test files")
    # "on-start" wipes the results root before a run and keeps it afterwards;
    # "keep-previous" first moves the last run's results aside.
    cleanup: CleanupPolicy = "on-start"
