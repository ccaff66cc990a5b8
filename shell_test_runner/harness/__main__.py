"""Command line the shell driver calls for every assertion.

Usage::

    python -m shell_test_runner.harness --test-dir DIR [--root-pid PID]
        [--frame FRAME ...] ASSERTION [ARG ...]

Exits 0 when the assertion holds and 1 when it fails. A failure that is the
first one recorded for the test also terminates the test's process group.
"""

import argparse
import sys
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import NoReturn

from shell_test_runner.harness import assertions
from shell_test_runner.harness.assertions import ShellArray
from shell_test_runner.harness.context import (
    AssertionContext,
    TestAborted,
    abort_test_process,
    fail,
)
from shell_test_runner.store import TestDir

Handler = Callable[[AssertionContext, str, Sequence[str]], bool]


def _usage(context: AssertionContext, name: str, usage: str) -> NoReturn:
    fail(context, f"usage: {name} {usage}")


def _status(context: AssertionContext, name: str, usage: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        _usage(context, name, usage)


def parse_shell_arrays(args: Sequence[str]) -> tuple[ShellArray, ShellArray]:
    """Decode the two arrays the shell shim describes.

    Each side is laid out as ``NAME KIND COUNT ELEMENT...`` where KIND is
    ``array`` for an indexed array and anything else otherwise.

    Raises:
        ValueError: If the layout is malformed

    """
    arrays: list[ShellArray] = []
    position = 0
    for _ in range(2):
        name, kind, count = args[position : position + 3]
        size = int(count)
        elements = tuple(args[position + 3 : position + 3 + size])
        if len(elements) != size:
            raise ValueError(f"Array '{name}' is missing elements")
        arrays.append(
            ShellArray(name=name, is_array=kind == "array", elements=elements)
        )
        position += 3 + size
    if position != len(args):
        raise ValueError("Unexpected trailing array arguments")
    return arrays[0], arrays[1]


def _two_strings(
    predicate: Callable[[AssertionContext, str, str], bool], usage: str
) -> Handler:
    def handler(context: AssertionContext, name: str, args: Sequence[str]) -> bool:
        if len(args) != 2:
            _usage(context, name, usage)
        return predicate(context, args[0], args[1])

    return handler


def _command(predicate: Callable[..., bool]) -> Handler:
    # The shim runs the command itself and passes its status first.
    def handler(context: AssertionContext, name: str, args: Sequence[str]) -> bool:
        if len(args) < 2:
            _usage(context, name, "COMMAND [ARG...]")
        status = _status(context, name, "COMMAND [ARG...]", args[0])
        return predicate(context, args[1:], status, name=name)

    return handler


def _exit_value_equals(
    context: AssertionContext, name: str, args: Sequence[str]
) -> bool:
    usage = "EXPECTED_STATUS COMMAND [ARG...]"
    if len(args) < 3:
        _usage(context, name, usage)
    expected = _status(context, name, usage, args[0])
    status = _status(context, name, usage, args[1])
    return assertions.assert_exit_value_equals(context, expected, args[2:], status)


def _array_equals(context: AssertionContext, name: str, args: Sequence[str]) -> bool:
    try:
        expected, actual = parse_shell_arrays(args)
    except ValueError:
        _usage(context, name, "EXPECTED_ARRAY_NAME ACTUAL_ARRAY_NAME")
    return assertions.assert_array_equals(context, expected, actual)


def _file_does_not_exist(
    context: AssertionContext, name: str, args: Sequence[str]
) -> bool:
    if len(args) != 1:
        _usage(context, name, "PATH")
    return assertions.assert_file_does_not_exist(context, args[0])


def _fail(context: AssertionContext, name: str, args: Sequence[str]) -> bool:
    if not args:
        _usage(context, name, "MESSAGE")
    fail(context, " ".join(args))


HANDLERS: Mapping[str, Handler] = {
    "assert_equals": _two_strings(assertions.assert_equals, "EXPECTED ACTUAL"),
    "assert_contains": _two_strings(assertions.assert_contains, "NEEDLE HAYSTACK"),
    "assert_does_not_contain": _two_strings(
        assertions.assert_does_not_contain, "NEEDLE HAYSTACK"
    ),
    "assert_matches": _two_strings(assertions.assert_matches, "PATTERN ACTUAL"),
    "assert_array_equals": _array_equals,
    "assert_succeeds": _command(assertions.assert_succeeds),
    "assert_true": _command(assertions.assert_succeeds),
    "assert_fails": _command(assertions.assert_fails),
    "assert_false": _command(assertions.assert_fails),
    "assert_exit_value_equals": _exit_value_equals,
    "assert_file_does_not_exist": _file_does_not_exist,
    "fail": _fail,
}


def split_assertion(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split the command line into options and ``ASSERTION [ARG ...]``.

    Every option takes exactly one value, so the assertion name is the first
    word in an option-name position that does not start with a dash. The
    assertion arguments never reach argparse, which would otherwise treat a
    literal ``--`` or a dash-prefixed value specially.
    """
    index = 0
    while index < len(argv) and argv[index].startswith("-"):
        index += 2
    return list(argv[:index]), list(argv[index:])


def main(argv: Sequence[str] | None = None) -> int:
    """Run one assertion and return the process exit code."""
    parser = argparse.ArgumentParser(
        prog="python -m shell_test_runner.harness",
        usage=(
            "%(prog)s --test-dir DIR [--root-pid PID] [--frame FRAME ...] "
            "ASSERTION [ARG ...]"
        ),
        description="Run a single assertion for a shell test",
    )
    parser.add_argument("--test-dir", type=Path, required=True)
    parser.add_argument("--root-pid", type=int, default=None)
    parser.add_argument("--frame", dest="frames", action="append", default=[])
    parser.add_argument("assertion", choices=sorted(HANDLERS))

    options, command = split_assertion(sys.argv[1:] if argv is None else argv)
    args = parser.parse_args([*options, *command[:1]])
    context = AssertionContext(
        test_dir=TestDir(path=args.test_dir),
        root_pid=args.root_pid,
        frames=tuple(args.frames),
    )

    try:
        HANDLERS[args.assertion](context, args.assertion, command[1:])
    except TestAborted as e:
        if e.recorded and context.root_pid is not None:
            abort_test_process(context.root_pid)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
