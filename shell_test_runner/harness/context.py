"""Assertion context and the fail primitive.

A failed assertion raises :class:`TestAborted`. The exception is only caught
where the assertion command line hands control back to the test shell, which
then stops the test's process group with a signal. Raising from arbitrarily
deep helper calls therefore always ends the test.
"""

import logging
import os
import shlex
import signal
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import NoReturn

from shell_test_runner.store import TestDir, append_assertion, record_failure

log = logging.getLogger(__name__)

MAX_STACK_DEPTH = 20


@dataclass(frozen=True, kw_only=True)
class AssertionContext:
    """Where an assertion reports to and who called it.

    Attributes:
        test_dir: Result record of the running test
        root_pid: Process id of the test's root process, which also names its
            process group; None when there is no process to abort
        frames: Shell call stack at the assertion, innermost first, already
            rendered as ``at <source>:<line> (<function>)``

    """

    test_dir: TestDir
    root_pid: int | None = None
    frames: Sequence[str] = field(default_factory=tuple)


class TestAborted(Exception):
    """Raised by :func:`fail` to stop the current test."""

    __test__ = False

    def __init__(self, message: str, *, recorded: bool) -> None:
        super().__init__(message)
        self.message = message
        self.recorded = recorded


def record_attempt(context: AssertionContext, name: str, *args: object) -> None:
    """Append an assertion attempt to the test's audit trail."""
    append_assertion(context.test_dir, shlex.join([name, *map(str, args)]))


def format_stack(frames: Sequence[str]) -> str:
    return "\n".join(frames[:MAX_STACK_DEPTH])


def fail(context: AssertionContext, message: str) -> NoReturn:
    """Mark the running test failed and abort it.

    Only the first failure of a test is recorded; later calls leave the
    existing outcome alone.

    Raises:
        TestAborted: Always

    """
    record_attempt(context, "fail", message)

    details = message
    if stack := format_stack(context.frames):
        details = f"{message}\n{stack}"
    recorded = record_failure(context.test_dir, f"{details}\n")
    if recorded:
        log.debug("Recorded failure for %s: %s", context.test_dir.name, message)

    raise TestAborted(message, recorded=recorded)


def abort_test_process(root_pid: int) -> None:
    """Send SIGTERM to every process of the test rooted at ``root_pid``.

    The executor starts each test in its own session, so the root process id
    is also the process group id. Anything outside that group is never
    signalled; if the root does not lead its own group only the root itself
    is terminated.
    """
    # The caller is itself a member of the group.
    signal.signal(signal.SIGTERM, signal.SIG_IGN)
    try:
        if os.getpgid(root_pid) == root_pid:
            os.killpg(root_pid, signal.SIGTERM)
        else:
            os.kill(root_pid, signal.SIGTERM)
    except ProcessLookupError:
        log.debug("Test process %d already exited", root_pid)
