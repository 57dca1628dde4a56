"""Raw host observations used by the probes.

Every reader raises ProbeError when the signal cannot be obtained.
"""

import fcntl
import logging
import os
import struct
import subprocess
from dataclasses import dataclass
from pathlib import Path

from tdxhost.errors import ProbeError

logger = logging.getLogger(__name__)

# _IO(KVMIO, 0x00)
KVM_GET_API_VERSION = 0xAE00


@dataclass(frozen=True)
class HostPaths:
    """Filesystem locations of host interfaces."""

    os_release: str = "/etc/os-release"
    msr: str = "/dev/cpu/{cpu}/msr"
    cpuid: str = "/dev/cpu/{cpu}/cpuid"
    kvm: str = "/dev/kvm"
    kvm_params: str = "/sys/module/kvm_intel/parameters"


class LinuxHost:
    """Access to the live Linux host."""

    def __init__(self, paths: HostPaths | None = None):
        self.paths = paths or HostPaths()

    def read_os_release(self) -> str:
        try:
            return Path(self.paths.os_release).read_text()
        except OSError as e:
            raise ProbeError(f"Cannot read {self.paths.os_release}: {e}") from e

    def _pread(self, path: str, size: int, offset: int) -> bytes:
        try:
            fd = os.open(path, os.O_RDONLY)
        except OSError as e:
            raise ProbeError(f"Cannot open {path}: {e.strerror}") from e
        try:
            data = os.pread(fd, size, offset)
        except OSError as e:
            raise ProbeError(f"Cannot read {path} at {offset:#x}: {e.strerror}") from e
        finally:
            os.close(fd)
        if len(data) != size:
            raise ProbeError(f"Short read from {path} at {offset:#x}")
        return data

    def read_msr(self, address: int, cpu: int = 0) -> int:
        """Return the 64-bit value of an MSR on a logical processor."""
        path = self.paths.msr.format(cpu=cpu)
        (value,) = struct.unpack("<Q", self._pread(path, 8, address))
        logger.debug("MSR %#x on cpu%d = %#018x", address, cpu, value)
        return value

    def cpuid(self, leaf: int, cpu: int = 0) -> tuple[int, int, int, int]:
        """Return (eax, ebx, ecx, edx) for a CPUID leaf."""
        path = self.paths.cpuid.format(cpu=cpu)
        regs = struct.unpack("<4I", self._pread(path, 16, leaf))
        logger.debug("CPUID leaf %#x on cpu%d = %s", leaf, cpu, regs)
        return regs

    def run(self, command: list[str]) -> str:
        """Run a command and return its stdout."""
        logger.debug("Command: %s", " ".join(command))
        try:
            result = subprocess.run(command, capture_output=True, text=True)
        except OSError as e:
            raise ProbeError(f"Cannot run {command[0]}: {e.strerror}") from e
        if result.returncode != 0:
            logger.info("Command failed: %s: %s", command, result.stderr.strip())
            raise ProbeError(
                f"{command[0]} exited with status {result.returncode}"
            )
        return result.stdout

    def read_param(self, module_param: str) -> str:
        """Return the trimmed value of a kvm_intel module parameter."""
        path = Path(self.paths.kvm_params) / module_param
        try:
            value = path.read_text().strip()
        except OSError as e:
            raise ProbeError(f"Cannot read {path}: {e.strerror}") from e
        logger.debug("%s = %r", path, value)
        return value

    def kvm_api_version(self) -> int:
        """Open the KVM device and query its API version."""
        try:
            fd = os.open(self.paths.kvm, os.O_RDWR | os.O_CLOEXEC)
        except OSError as e:
            raise ProbeError(f"Cannot open {self.paths.kvm}: {e.strerror}") from e
        try:
            return fcntl.ioctl(fd, KVM_GET_API_VERSION)
        except OSError as e:
            raise ProbeError(f"KVM_GET_API_VERSION failed: {e.strerror}") from e
        finally:
            os.close(fd)
