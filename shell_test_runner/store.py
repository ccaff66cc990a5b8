"""Filesystem-backed store of per-test result records.

Every test gets its own directory under the results root. The directory is
written by exactly one process tree at a time, so plain file writes are
enough; the only rule is that a record is created once per run and its
status, once written, is never replaced.
"""

import logging
import shutil
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from shell_test_runner.errors import DuplicateTestError, ResultStoreError, SetupError

log = logging.getLogger(__name__)

STATUS_SUCCESS = "SUCCESS"
STATUS_FAILURE = "FAILURE"

CleanupPolicy = Literal["on-start", "keep-previous"]


@dataclass(frozen=True, kw_only=True)
class TestDir:
    """Paths of the files making up one result record."""

    __test__ = False

    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def status(self) -> Path:
        return self.path / "status"

    @property
    def error_message(self) -> Path:
        return self.path / "error_message"

    @property
    def exit_code(self) -> Path:
        return self.path / "exit_code"

    @property
    def stdout(self) -> Path:
        return self.path / "stdout"

    @property
    def stderr(self) -> Path:
        return self.path / "stderr"

    @property
    def assertions(self) -> Path:
        return self.path / "assertions"


@dataclass(frozen=True, kw_only=True)
class ResultRecord:
    """Parsed contents of a test directory."""

    name: str
    status: str | None = None
    error_message: str | None = None
    exit_code: int | None = None
    assertions: Sequence[str] = ()
    stdout: str = ""


def _read_optional(path: Path) -> str | None:
    try:
        return path.read_text()
    except FileNotFoundError:
        return None


def _write_exclusive(path: Path, content: str) -> bool:
    """Write a file only if it does not exist yet."""
    try:
        with path.open("x") as handle:
            handle.write(content)
    except FileExistsError:
        return False
    return True


def read_status(test_dir: TestDir) -> str | None:
    """Return the recorded status, or None while the test is in flight."""
    if (status := _read_optional(test_dir.status)) is None:
        return None
    return status.strip()


def read_exit_code(test_dir: TestDir) -> int | None:
    """Return the exit code the test process recorded, if any."""
    if (text := _read_optional(test_dir.exit_code)) is None:
        return None
    try:
        return int(text.strip())
    except ValueError:
        log.warning("Ignoring malformed exit code %r in %s", text, test_dir.path)
        return None


def read_assertions(test_dir: TestDir) -> Sequence[str]:
    """Return every assertion entry in call order."""
    if (text := _read_optional(test_dir.assertions)) is None:
        return ()
    return tuple(text.splitlines())


def append_assertion(test_dir: TestDir, entry: str) -> None:
    """Append one entry to the assertion log."""
    # One line per entry; embedded newlines would split it.
    line = entry.replace("\n", "\\n")
    with test_dir.assertions.open("a") as handle:
        handle.write(f"{line}\n")


def record_failure(test_dir: TestDir, message: str) -> bool:
    """Mark a test failed unless an outcome was already recorded.

    Returns:
        True if this call recorded the failure, False if another writer got
        there first

    """
    if test_dir.status.exists():
        return False
    if not _write_exclusive(test_dir.error_message, message):
        return False
    return _write_exclusive(test_dir.status, f"{STATUS_FAILURE}\n")


def record_success(test_dir: TestDir) -> bool:
    """Mark a test successful unless an outcome was already recorded."""
    if test_dir.error_message.exists():
        return False
    return _write_exclusive(test_dir.status, f"{STATUS_SUCCESS}\n")


def read_record(test_dir: TestDir) -> ResultRecord:
    """Load a result record from disk."""
    return ResultRecord(
        name=test_dir.name,
        status=read_status(test_dir),
        error_message=_read_optional(test_dir.error_message),
        exit_code=read_exit_code(test_dir),
        assertions=read_assertions(test_dir),
        stdout=_read_optional(test_dir.stdout) or "",
    )


@dataclass(frozen=True, kw_only=True)
class ResultStore:
    """Result records of a single run, one directory per test name."""

    root: Path

    @property
    def previous_root(self) -> Path:
        return self.root.with_name(f"{self.root.name}.previous")

    def prepare(self, policy: CleanupPolicy = "on-start") -> None:
        """Clear the results root for a new run.

        Results are kept after the run for inspection and only cleared when
        the next run starts. With ``keep-previous`` the old results are moved
        to ``previous_root`` instead of being deleted.

        Raises:
            SetupError: If the results root cannot be cleared or created

        """
        try:
            if self.root.exists():
                if policy == "keep-previous":
                    if self.previous_root.exists():
                        shutil.rmtree(self.previous_root)
                    log.info("Keeping previous results in %s", self.previous_root)
                    self.root.rename(self.previous_root)
                else:
                    log.info("Clearing previous results in %s", self.root)
                    shutil.rmtree(self.root)
            self.root.mkdir(parents=True)
        except OSError as e:
            raise SetupError(f"Cannot prepare results root {self.root}: {e}") from e

    def path_for(self, test_name: str) -> TestDir:
        return TestDir(path=self.root / test_name)

    def create(self, test_name: str) -> TestDir:
        """Create the result record directory for a test.

        Raises:
            DuplicateTestError: If a record for this name already exists
            ResultStoreError: If the directory cannot be created

        """
        test_dir = self.path_for(test_name)
        try:
            test_dir.path.mkdir()
        except FileExistsError as e:
            raise DuplicateTestError(
                f"Test '{test_name}' already ran in this run"
            ) from e
        except OSError as e:
            raise ResultStoreError(
                f"Cannot create result record for '{test_name}': {e}"
            ) from e
        test_dir.assertions.touch()
        return test_dir

    def records(self) -> Iterator[ResultRecord]:
        """Yield every result record in the store, sorted by test name."""
        if not self.root.is_dir():
            return
        for path in sorted(self.root.iterdir()):
            if path.is_dir():
                yield read_record(TestDir(path=path))
