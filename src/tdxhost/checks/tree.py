"""Check forests.

Forest shape, ordering and flags are declared as tables. A row whose
parent is None is a root; other rows hang below the named parent in
table order.
"""

from dataclasses import dataclass
from functools import partial
from typing import Callable

from . import probes
from .host import LinuxHost
from .types import (
    CheckNode,
    CheckResult,
    Operation,
    Optionality,
    Remediation,
)

REQUIRED = Optionality.REQUIRED
OPTIONAL = Optionality.OPTIONAL
AUTO = Operation.AUTOMATIC
MANUAL = Operation.MANUAL


def print_details(result: CheckResult, reporter) -> None:
    for line in result.details:
        reporter.note(line)


def print_supported_oses(result: CheckResult, reporter) -> None:
    print_details(result, reporter)
    reporter.note("The following OSs are supported:")
    for os_name in probes.SUPPORTED_OSES:
        reporter.note(os_name, indent=2)
    reporter.note("There is no guarantee to other OS distros")


@dataclass(frozen=True)
class CheckSpec:
    """One row of a check table."""

    label: str
    action: str
    probe: Callable[[LinuxHost], CheckResult] | None = None
    parent: str | None = None
    optionality: Optionality = REQUIRED
    operation: Operation = AUTO
    remediation: Remediation | None = None


REQUIRED_CHECKS: list[CheckSpec] = [
    CheckSpec(
        "CPU vendor",
        "Check CPU manufacturer is Intel (required)",
        probes.check_cpu_vendor,
    ),
    CheckSpec(
        "OS distro",
        "Check OS: The distro and version are correct (required)",
        probes.check_os,
        parent="CPU vendor",
        remediation=print_supported_oses,
    ),
    CheckSpec(
        "SGX enabled",
        "Check BIOS: SGX = Enabled (required)",
        probes.check_sgx_enabled,
        parent="OS distro",
    ),
    CheckSpec(
        "TDX enabled",
        "Check BIOS: TDX = Enabled (required)",
        probes.check_tdx_enabled,
        parent="SGX enabled",
        remediation=print_details,
    ),
    CheckSpec(
        "TDX module",
        "Check TDX Module: The module is initialized (required)",
        probes.check_tdx_module,
        parent="TDX enabled",
    ),
    CheckSpec(
        "TME enabled",
        "Check BIOS: TME = Enabled (required)",
        probes.check_tme_enabled,
        parent="TDX enabled",
    ),
    CheckSpec(
        "TME-MT",
        "Check BIOS: TME-MT = Enabled (required)",
        probes.check_tme_mt,
        parent="TDX enabled",
        operation=MANUAL,
    ),
    CheckSpec(
        "TDX key split",
        "Check BIOS: TDX Key Split != 0 (required)",
        probes.check_tdx_key_split,
        parent="TDX enabled",
    ),
    CheckSpec(
        "SGX registration server",
        "Check BIOS: SGX registration server (required)",
        probes.check_sgx_reg_server,
        parent="TDX enabled",
        operation=MANUAL,
        remediation=print_details,
    ),
    CheckSpec(
        "KVM supported",
        "Check KVM: The virtualization device is accessible (required)",
        probes.check_kvm_supported,
    ),
    CheckSpec(
        "KVM SGX parameter",
        "Check KVM: kvm_intel sgx parameter = Y (required)",
        partial(probes.check_kvm_param, param="sgx"),
        parent="KVM supported",
    ),
    CheckSpec(
        "KVM TDX parameter",
        "Check KVM: kvm_intel tdx parameter = Y (required)",
        partial(probes.check_kvm_param, param="tdx"),
        parent="KVM supported",
    ),
]

OPTIONAL_CHECKS: list[CheckSpec] = [
    CheckSpec(
        "BIOS memory map",
        "Check BIOS: Volatile Memory should be 1LM (optional)",
        optionality=OPTIONAL,
        operation=MANUAL,
    ),
    CheckSpec(
        "TME bypass",
        "Check BIOS: TME Bypass = Enabled (optional)",
        probes.check_tme_bypass,
        optionality=OPTIONAL,
    ),
    CheckSpec(
        "SEAM loader",
        "Check BIOS: SEAM Loader = Enabled (optional)",
        optionality=OPTIONAL,
        operation=MANUAL,
    ),
]


def build_forest(table: list[CheckSpec], host: LinuxHost) -> list[CheckNode]:
    """Turn a check table into a forest bound to a host."""
    nodes: dict[str, CheckNode] = {}
    forest: list[CheckNode] = []
    for spec in table:
        if spec.label in nodes:
            raise ValueError(f"Duplicate check label: {spec.label}")
        node = CheckNode(
            label=spec.label,
            action=spec.action,
            probe=partial(spec.probe, host) if spec.probe else None,
            optionality=spec.optionality,
            operation=spec.operation,
            remediation=spec.remediation,
        )
        if spec.parent is None:
            forest.append(node)
        elif spec.parent in nodes:
            nodes[spec.parent].children.append(node)
        else:
            raise ValueError(f"Check {spec.label} names unknown parent {spec.parent}")
        nodes[spec.label] = node
    return forest


def build_required_forest(host: LinuxHost) -> list[CheckNode]:
    return build_forest(REQUIRED_CHECKS, host)


def build_optional_forest(host: LinuxHost) -> list[CheckNode]:
    return build_forest(OPTIONAL_CHECKS, host)
