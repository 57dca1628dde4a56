import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from tdxhost.checks import LinuxHost, run_all_checks
from tdxhost.errors import UnsupportedHostError
from tdxhost.platform import detect_platform
from tdxhost.ui import Reporter

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(package_name="tdxhost")
def main():
    """Utilities for managing the host TDX environment."""
    setup_logging()


@main.command()
def ok():
    """Probe system for TDX support."""
    host = LinuxHost()
    try:
        platform = detect_platform(host)
    except UnsupportedHostError as e:
        raise click.ClickException(str(e)) from e
    logger.info("Detected platform: %s", platform)

    reporter = Reporter()
    reporter.platform(platform)
    verdict = run_all_checks(host, reporter)
    reporter.summary(verdict.passed)

    raise SystemExit(0 if verdict.passed else 1)


if __name__ == "__main__":
    main()
