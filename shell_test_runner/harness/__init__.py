"""Child-side assertion harness for shell tests."""

from shell_test_runner.harness.context import AssertionContext, TestAborted, fail

__all__ = ["AssertionContext", "TestAborted", "fail"]
