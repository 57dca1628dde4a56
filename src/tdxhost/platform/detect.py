"""Platform detection logic."""

import os

from tdxhost.checks.host import LinuxHost
from tdxhost.checks.probes import parse_pretty_name
from tdxhost.errors import ProbeError, UnsupportedHostError

from .types import Platform


def detect_platform(host: LinuxHost | None = None) -> Platform:
    """Detect the host and refuse to continue on unsupported ones."""
    host = host or LinuxHost()
    uname = os.uname()

    try:
        os_release = host.read_os_release()
    except ProbeError as e:
        raise UnsupportedHostError(str(e)) from e
    os_name = parse_pretty_name(os_release)
    if os_name is None:
        raise UnsupportedHostError("PRETTY_NAME for os-release does not exist")

    platform = Platform(
        system=uname.sysname,
        machine=uname.machine,
        os_name=os_name,
        kernel_version=uname.release,
    )
    if not platform.is_linux:
        raise UnsupportedHostError(f"Unsupported OS: {platform.system}")
    if not platform.is_x86:
        raise UnsupportedHostError(
            f"Unsupported architecture: {platform.machine}. Only x86_64 is supported."
        )
    return platform
