"""Console rendering of check outcomes."""

from collections import Counter

from rich.console import Console
from rich.markup import escape

from tdxhost.checks.types import (
    CheckNode,
    CheckResult,
    CheckStatus,
    Emphasis,
    Optionality,
    emphasis_for,
)
from tdxhost.platform import Platform

MANUAL_REASON = "Unable to check in program. Please check manually."

STATUS_LABELS = {
    CheckStatus.PASS: "OK",
    CheckStatus.FAIL: "FAILED",
    CheckStatus.INDETERMINATE: "TBD",
    CheckStatus.SKIP: "SKIPPED",
}

DEFAULT_STYLES = {
    Emphasis.POSITIVE: "green",
    Emphasis.BLOCKING: "red",
    Emphasis.ADVISORY: "yellow",
    Emphasis.INFO: "magenta",
}


class Reporter:
    """Prints one line per check as the forest is walked."""

    def __init__(
        self,
        console: Console | None = None,
        styles: dict[Emphasis, str] | None = None,
    ):
        self.console = console or Console(highlight=False)
        self.styles = styles or DEFAULT_STYLES
        self.counts: Counter[CheckStatus] = Counter()

    def _line(self, state: str, action: str, style: str) -> None:
        self.console.print(f"\\[ [{style}]{state}[/{style}] ] {escape(action)}")

    def platform(self, platform: Platform) -> None:
        self.console.print(f"OS:      {escape(platform.os_name)}")
        self.console.print(f"Kernel:  {escape(platform.kernel_version)}")
        self.console.print(f"Arch:    {escape(platform.machine)}")

    def section(self, title: str) -> None:
        self.console.print()
        self.console.print(f"[bold]{escape(title)}[/bold]")

    def report(self, node: CheckNode, result: CheckResult) -> None:
        self.counts[result.status] += 1
        emphasis = emphasis_for(result.status, node.optionality, node.operation)
        style = self.styles[emphasis]
        self._line(STATUS_LABELS[result.status], node.action, style)

        if result.status == CheckStatus.PASS:
            return
        reason = MANUAL_REASON if node.is_manual else result.reason
        if reason:
            self.console.print(f"\tReason: {escape(reason)}", style=style)

    def report_skipped(self, node: CheckNode) -> None:
        self.counts[CheckStatus.SKIP] += 1
        self._line(STATUS_LABELS[CheckStatus.SKIP], node.label, self.styles[Emphasis.INFO])

    def note(self, text: str, indent: int = 1) -> None:
        """Print remediation guidance below a check."""
        self.console.print("\t" * indent + escape(text))

    def summary(self, passed: bool) -> None:
        counts = ", ".join(
            f"{STATUS_LABELS[status]}: {self.counts[status]}" for status in CheckStatus
        )
        emphasis = Emphasis.POSITIVE if passed else Emphasis.BLOCKING
        style = self.styles[emphasis]
        verdict = "ALL REQUIRED CHECKS PASSED" if passed else "REQUIRED CHECKS FAILED"
        self.console.print()
        self.console.print(f"[{style} bold]{verdict}[/{style} bold]")
        self.console.print(counts)
