"""Console output of a test run."""

import sys
from dataclasses import dataclass, field
from typing import TextIO

from shell_test_runner.models.result import TestResult

PROGRESS_SYMBOLS = {
    "success": ".",
    "failure": "F",
    "error": "E",
}


@dataclass(kw_only=True)
class Reporter:
    """Prints per-test outcomes, progress characters and the run summary.

    Quiet mode prints a progress character per test and only the messages of
    failed tests; verbose mode prints one line per test instead.
    """

    verbose: bool = False
    stream: TextIO = field(default_factory=lambda: sys.stdout)
    _line_open: bool = False

    def _line(self, text: str) -> None:
        if self._line_open:
            self.stream.write("\n")
            self._line_open = False
        self.stream.write(f"{text}\n")
        self.stream.flush()

    def test_finished(self, result: TestResult) -> None:
        """Print the outcome of a test as soon as it is known."""
        if result.status == "error":
            self._line(f"{result.name} ERROR: {result.message}")
        elif self.verbose:
            if result.passed:
                self._line(f"{result.name} PASSED")
            else:
                self._line(f"{result.name} FAILED: {result.message}")
        elif not result.passed:
            self._line(f"{result.name}: {result.message}")

    def progress(self, result: TestResult) -> None:
        """Print the progress character for a test in quiet mode."""
        if self.verbose:
            return
        self.stream.write(PROGRESS_SYMBOLS[result.status])
        self.stream.flush()
        self._line_open = True

    def internal_error(self, message: str) -> None:
        self._line(f"INTERNAL ERROR: {message}")

    def summary(self, total: int, passed: int, failed: int, errors: int) -> None:
        """Print the closing summary line."""
        if total == 0 and errors == 0:
            self._line("WARNING: RAN NO TESTS")
            return
        line = f"Ran {total} tests. {passed} passed. {failed} failed."
        if errors:
            line = f"{line} {errors} errors."
        self._line(line)
