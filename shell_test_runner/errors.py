"""Exceptions raised by the test runner."""


class ShellTestRunnerError(Exception):
    """Base class for all runner errors."""


class SetupError(ShellTestRunnerError):
    """Raised when the run environment cannot be initialized."""


class SyntaxCheckError(ShellTestRunnerError):
    """Raised when a test file fails the shell syntax check."""

    def __init__(self, path: str, output: str) -> None:
        super().__init__(f"Syntax check failed for {path}: {output}")
        self.path = path
        self.output = output


class TestNameError(ShellTestRunnerError):
    """Raised for an empty or whitespace-containing test name."""

    __test__ = False


class ResultStoreError(ShellTestRunnerError):
    """Raised when a result record cannot be created or read."""


class DuplicateTestError(ResultStoreError):
    """Raised when a result record already exists for a test name."""
