"""Find shell test files and the test functions they define."""

import asyncio
import logging
import re
from collections.abc import Sequence
from pathlib import Path

from shell_test_runner.config import RunnerConfig
from shell_test_runner.errors import SyntaxCheckError
from shell_test_runner.models.test_case import TestRegistry

logger = logging.getLogger(__name__)

SHELL_SHEBANG = re.compile(r"^#!.*\b(?:ba|da|k|z)?sh\b")

# Source the file quietly, then list the functions it defined.
LIST_FUNCTIONS_SCRIPT = """
case $1 in */*) ;; *) set -- "./$1" ;; esac
source "$1" >/dev/null 2>&1 </dev/null
declare -F
"""


def is_shell_script(path: Path) -> bool:
    """Check whether a file starts with a shell shebang line."""
    try:
        with path.open("rb") as handle:
            first_line = handle.readline(256)
    except OSError:
        return False
    return SHELL_SHEBANG.match(first_line.decode(errors="replace")) is not None


def is_test_file(path: Path, suffix: str) -> bool:
    """Check whether a file is a shell test file by name and content."""
    return path.is_file() and path.name.endswith(suffix) and is_shell_script(path)


def find_test_files(paths: Sequence[Path], suffix: str) -> Sequence[Path]:
    """Collect test files from files and directory trees.

    Args:
        paths: Files or directories to search; directories are walked
            recursively
        suffix: File name suffix test files must end with

    Returns:
        Unique test files, in the order the paths were given and sorted
        within each directory tree

    """
    found: list[Path] = []
    for path in paths:
        if path.is_dir():
            candidates = sorted(path.rglob(f"*{suffix}"))
        elif path.exists():
            candidates = [path]
        else:
            logger.warning("Skipping missing path %s", path)
            continue

        for candidate in candidates:
            if candidate not in found and is_test_file(candidate, suffix):
                found.append(candidate)
    return found


async def check_syntax(shell: str, path: Path) -> None:
    """Parse a test file without running it.

    Raises:
        SyntaxCheckError: If the shell reports a syntax error

    """
    process = await asyncio.create_subprocess_exec(
        shell,
        "-n",
        str(path),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
    )
    stdout, _ = await process.communicate()

    if process.returncode != 0:
        raise SyntaxCheckError(str(path), stdout.decode(errors="replace").strip())


async def list_functions(shell: str, path: Path) -> Sequence[str]:
    """List the functions a test file defines once sourced."""
    process = await asyncio.create_subprocess_exec(
        shell,
        "-c",
        LIST_FUNCTIONS_SCRIPT,
        "shell-test-runner",
        str(path),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
        start_new_session=True,
    )
    stdout, _ = await process.communicate()

    names: list[str] = []
    for line in stdout.decode(errors="replace").splitlines():
        # Lines look like "declare -f name".
        parts = line.split()
        if len(parts) == 3 and parts[0] == "declare":
            names.append(parts[2])
    return names


async def discover_tests(config: RunnerConfig, path: Path) -> TestRegistry:
    """Syntax-check a test file and register its test functions.

    Raises:
        SyntaxCheckError: If the file does not parse

    """
    await check_syntax(config.shell, path)

    registry = TestRegistry()
    for name in await list_functions(config.shell, path):
        if not name.startswith(config.test_prefix):
            continue
        if config.match is not None and config.match not in name:
            continue
        registry.register(name, path)

    logger.info("Found %d test(s) in %s", len(registry), path)
    return registry
