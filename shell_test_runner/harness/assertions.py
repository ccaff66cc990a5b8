"""Assertion predicates available to shell tests.

Every assertion records its attempt before checking anything, so the audit
trail also lists assertions that passed. A failing assertion calls
:func:`~shell_test_runner.harness.context.fail`; a passing one returns True.
"""

import re
import shlex
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from shell_test_runner.harness.context import AssertionContext, fail, record_attempt


@dataclass(frozen=True, kw_only=True)
class ShellArray:
    """A shell variable passed to ``assert_array_equals``."""

    name: str
    is_array: bool
    elements: Sequence[str] = ()


def assert_equals(
    context: AssertionContext,
    expected: str,
    actual: str,
    *,
    description: str | None = None,
) -> bool:
    """Check two strings are equal."""
    record_attempt(context, "assert_equals", expected, actual)
    if expected != actual:
        message = f"expected '{expected}' but was '{actual}'"
        fail(context, f"{description}: {message}" if description else message)
    return True


def assert_contains(context: AssertionContext, needle: str, haystack: str) -> bool:
    """Check ``haystack`` contains ``needle`` literally."""
    record_attempt(context, "assert_contains", needle, haystack)
    if needle not in haystack:
        fail(context, f"expected '{haystack}' to contain '{needle}'")
    return True


def assert_does_not_contain(
    context: AssertionContext, needle: str, haystack: str
) -> bool:
    """Check ``haystack`` does not contain ``needle`` literally."""
    record_attempt(context, "assert_does_not_contain", needle, haystack)
    if needle in haystack:
        fail(context, f"expected '{haystack}' not to contain '{needle}'")
    return True


def assert_matches(context: AssertionContext, pattern: str, actual: str) -> bool:
    """Check ``actual`` matches the regular expression ``pattern`` anywhere."""
    record_attempt(context, "assert_matches", pattern, actual)
    try:
        matched = re.search(pattern, actual) is not None
    except re.error as e:
        fail(context, f"invalid regular expression '{pattern}': {e}")
    if not matched:
        fail(context, f"expected '{actual}' to match '{pattern}'")
    return True


def assert_condition(
    context: AssertionContext, condition: bool, message: str
) -> bool:
    """Fail with ``message`` unless a condition checked by the caller holds."""
    if not condition:
        fail(context, message)
    return True


def assert_array_equals(
    context: AssertionContext, expected: ShellArray, actual: ShellArray
) -> bool:
    """Check two shell arrays hold the same elements in the same order.

    The lengths are compared first, then each element; the first difference
    fails the test through :func:`assert_equals`.
    """
    record_attempt(context, "assert_array_equals", expected.name, actual.name)
    for array in (expected, actual):
        assert_condition(context, array.is_array, f"'{array.name}' is not an array")

    assert_equals(
        context,
        str(len(expected.elements)),
        str(len(actual.elements)),
        description=f"arrays '{expected.name}' and '{actual.name}' differ in length",
    )
    for index, (want, got) in enumerate(
        zip(expected.elements, actual.elements, strict=True)
    ):
        assert_equals(
            context,
            want,
            got,
            description=(
                f"arrays '{expected.name}' and '{actual.name}' differ at index {index}"
            ),
        )
    return True


def assert_succeeds(
    context: AssertionContext,
    command: Sequence[str],
    status: int,
    *,
    name: str = "assert_succeeds",
) -> bool:
    """Check a command the shell already ran exited with status 0."""
    record_attempt(context, name, *command)
    if status != 0:
        fail(
            context,
            f"command failed with exit status {status}: {shlex.join(command)}",
        )
    return True


def assert_fails(
    context: AssertionContext,
    command: Sequence[str],
    status: int,
    *,
    name: str = "assert_fails",
) -> bool:
    """Check a command the shell already ran exited with a non-zero status."""
    record_attempt(context, name, *command)
    if status == 0:
        fail(
            context,
            f"command succeeded but was expected to fail: {shlex.join(command)}",
        )
    return True


def assert_exit_value_equals(
    context: AssertionContext,
    expected: int,
    command: Sequence[str],
    status: int,
) -> bool:
    """Check a command exited with exactly the ``expected`` status."""
    record_attempt(context, "assert_exit_value_equals", expected, *command)
    if status != expected:
        fail(
            context,
            f"expected exit status {expected} but was {status}: {shlex.join(command)}",
        )
    return True


def assert_file_does_not_exist(context: AssertionContext, path: str) -> bool:
    """Check nothing exists at ``path``, relative to the test's working directory."""
    record_attempt(context, "assert_file_does_not_exist", path)
    if Path(path).exists():
        fail(context, f"expected file '{path}' not to exist")
    return True
