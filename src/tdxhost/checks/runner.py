"""Depth-first execution of check forests."""

import logging
from dataclasses import dataclass

from .host import LinuxHost
from .tree import build_optional_forest, build_required_forest
from .types import CheckNode, CheckStatus, Optionality

logger = logging.getLogger(__name__)


@dataclass
class Verdict:
    """Aggregate outcome of a full run."""

    required_passed: bool
    optional_passed: bool

    @property
    def passed(self) -> bool:
        return self.required_passed


def skip_subtree(nodes: list[CheckNode], reporter) -> None:
    """Report every node below a failed required check as skipped."""
    for node in nodes:
        for skipped in node.walk():
            logger.debug("Skipping %s", skipped.label)
            reporter.report_skipped(skipped)


def run_node(node: CheckNode, reporter) -> bool:
    """Evaluate one node and decide what happens to its children.

    A pass runs the children. A required failure reports them as skipped
    and fails the subtree; an optional failure is advisory, so the
    children still run and the node does not count against the verdict.
    Indeterminate nodes are treated as leaves: their children are neither
    evaluated nor reported.

    Returns False when a required node in the evaluated subtree failed.
    """
    result = node.evaluate()
    logger.debug("%s: %s", node.label, result.status.value)
    reporter.report(node, result)
    if node.remediation:
        node.remediation(result, reporter)

    if result.status == CheckStatus.PASS:
        return run_forest(node.children, reporter)
    if result.status == CheckStatus.FAIL:
        if node.optionality == Optionality.OPTIONAL:
            return run_forest(node.children, reporter)
        skip_subtree(node.children, reporter)
        return False
    return True


def run_forest(forest: list[CheckNode], reporter) -> bool:
    """Run every tree in order; True if no required check failed."""
    passed = True
    for node in forest:
        if not run_node(node, reporter):
            passed = False
    return passed


def run_all_checks(host: LinuxHost, reporter) -> Verdict:
    """Run the required forest, then the optional forest."""
    required = build_required_forest(host)
    optional = build_optional_forest(host)

    reporter.section("Required checks")
    required_passed = run_forest(required, reporter)
    reporter.section("Optional checks")
    optional_passed = run_forest(optional, reporter)

    logger.info(
        "Required checks %s, optional checks %s",
        "passed" if required_passed else "failed",
        "passed" if optional_passed else "failed",
    )
    return Verdict(required_passed, optional_passed)
