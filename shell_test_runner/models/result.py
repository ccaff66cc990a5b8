"""Models for test execution results."""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

Outcome = Literal["success", "failure", "error"]


@dataclass(frozen=True, kw_only=True)
class TestResult:
    """Result of a single test function run by the executor.

    ``error`` marks problems that are not the test's own fault: an invalid or
    duplicate test name, or a result record in an inconsistent state.
    """

    __test__ = False

    name: str
    source: Path
    status: Outcome
    duration: float
    message: str | None = None

    @property
    def passed(self) -> bool:
        """Whether the test succeeded."""
        return self.status == "success"
