"""Check tree types."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable


class CheckStatus(Enum):
    """Outcome of evaluating a single check."""

    PASS = "pass"
    FAIL = "fail"
    INDETERMINATE = "indeterminate"
    SKIP = "skip"


class Optionality(Enum):
    """Whether a check counts towards the overall verdict."""

    REQUIRED = auto()
    OPTIONAL = auto()


class Operation(Enum):
    """How a check is carried out."""

    AUTOMATIC = auto()
    MANUAL = auto()


class Emphasis(Enum):
    """Presentational severity of a reported outcome."""

    POSITIVE = auto()
    BLOCKING = auto()
    ADVISORY = auto()
    INFO = auto()


@dataclass
class CheckResult:
    """Result of a single probe."""

    status: CheckStatus
    reason: str = ""
    details: list[str] = field(default_factory=list)


Probe = Callable[[], CheckResult]
Remediation = Callable[[CheckResult, "Reporter"], None]


@dataclass
class CheckNode:
    """One check in a forest.

    Children are only evaluated when this node passes.
    """

    label: str
    action: str
    probe: Probe | None = None
    optionality: Optionality = Optionality.REQUIRED
    operation: Operation = Operation.AUTOMATIC
    remediation: Remediation | None = None
    children: list["CheckNode"] = field(default_factory=list)

    @property
    def is_manual(self) -> bool:
        return self.operation == Operation.MANUAL

    def evaluate(self) -> CheckResult:
        """Run the probe once; manual checks are always indeterminate."""
        result = self.probe() if self.probe else CheckResult(CheckStatus.INDETERMINATE)
        if self.is_manual and result.status != CheckStatus.INDETERMINATE:
            result = CheckResult(CheckStatus.INDETERMINATE, result.reason, result.details)
        return result

    def walk(self):
        """Yield this node and all descendants, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


def emphasis_for(
    status: CheckStatus, optionality: Optionality, operation: Operation
) -> Emphasis:
    """Derive how loudly an outcome should be rendered."""
    if status == CheckStatus.PASS:
        return Emphasis.POSITIVE
    if status == CheckStatus.SKIP:
        return Emphasis.INFO
    if status == CheckStatus.INDETERMINATE or operation == Operation.MANUAL:
        return Emphasis.ADVISORY
    if optionality == Optionality.OPTIONAL:
        return Emphasis.ADVISORY
    return Emphasis.BLOCKING
