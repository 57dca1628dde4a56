"""TDX host check framework."""

from .host import HostPaths, LinuxHost
from .runner import Verdict, run_all_checks, run_forest
from .types import CheckNode, CheckResult, CheckStatus, Operation, Optionality

__all__ = [
    "CheckNode",
    "CheckResult",
    "CheckStatus",
    "HostPaths",
    "LinuxHost",
    "Operation",
    "Optionality",
    "Verdict",
    "run_all_checks",
    "run_forest",
]
