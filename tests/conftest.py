from io import StringIO

import pytest
from rich.console import Console

from tdxhost.errors import ProbeError
from tdxhost.ui import Reporter

GOOD_OS_RELEASE = 'NAME="Ubuntu"\nPRETTY_NAME="Ubuntu 24.04 LTS"\nID=ubuntu\n'


def _vendor_regs(vendor: str) -> tuple[int, int, int, int]:
    raw = vendor.encode()
    ebx, edx, ecx = (int.from_bytes(raw[i : i + 4], "little") for i in (0, 4, 8))
    return 0x23, ebx, ecx, edx


class FakeHost:
    """In-memory stand-in for LinuxHost.

    A missing key makes the matching reader raise ProbeError.
    """

    def __init__(self):
        self.os_release = GOOD_OS_RELEASE
        self.vendor = "GenuineIntel"
        self.msrs = {
            0x3A: 1 << 18,
            0x1401: 1 << 11,
            0x982: (1 << 1) | (1 << 31),
            0x981: 0x3F << 36,
            0xCE: 0,
        }
        self.dmesg = "[    1.0] virt/tdx: module initialized\n"
        self.params = {"sgx": "Y", "tdx": "Y"}
        self.kvm_version = 12
        self.calls: list[tuple] = []

    def read_os_release(self) -> str:
        self.calls.append(("os_release",))
        if self.os_release is None:
            raise ProbeError("Cannot read /etc/os-release")
        return self.os_release

    def read_msr(self, address: int, cpu: int = 0) -> int:
        self.calls.append(("msr", address))
        if address not in self.msrs:
            raise ProbeError(f"Cannot read MSR {address:#x}")
        return self.msrs[address]

    def cpuid(self, leaf: int, cpu: int = 0) -> tuple[int, int, int, int]:
        self.calls.append(("cpuid", leaf))
        if self.vendor is None:
            raise ProbeError("Cannot open /dev/cpu/0/cpuid")
        return _vendor_regs(self.vendor)

    def run(self, command: list[str]) -> str:
        self.calls.append(("run", tuple(command)))
        if self.dmesg is None:
            raise ProbeError("dmesg exited with status 1")
        return self.dmesg

    def read_param(self, module_param: str) -> str:
        self.calls.append(("param", module_param))
        if module_param not in self.params:
            raise ProbeError(f"Cannot read {module_param}")
        return self.params[module_param]

    def kvm_api_version(self) -> int:
        self.calls.append(("kvm",))
        if self.kvm_version is None:
            raise ProbeError("Cannot open /dev/kvm")
        return self.kvm_version


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def output():
    return StringIO()


@pytest.fixture
def reporter(output):
    console = Console(file=output, no_color=True, highlight=False, width=200)
    return Reporter(console=console)
