"""Probe functions.

Each probe makes one observation of the host and reduces it to a
CheckResult. ProbeError never escapes a probe; it becomes a FAIL.
"""

import logging

from tdxhost.errors import ProbeError

from .host import LinuxHost
from .types import CheckResult, CheckStatus

logger = logging.getLogger(__name__)

SUPPORTED_OSES: tuple[str, ...] = (
    "Ubuntu 22.04.1 LTS",
    "Red Hat Enterprise Linux 8.7 (Ootpa)",
    "CentOS Stream 9",
    "Ubuntu 24.04 LTS",
)

INTEL_VENDOR = "GenuineIntel"
TDX_MODULE_MARKER = "virt/tdx: module initialized"

IA32_FEATURE_CONTROL = 0x3A
IA32_SEAMRR_PHYS_MASK = 0x1401
IA32_TME_CAPABILITY = 0x981
IA32_TME_ACTIVATE = 0x982
MSR_PLATFORM_INFO = 0xCE
TDX_ERROR_CODE = 0xA0

SGX_ENABLE_BIT = 18
SEAMRR_ENABLE_BIT = 11
TME_ENABLE_BIT = 1
TME_BYPASS_BIT = 31
SGX_SBX_SERVER_BIT = 27

# MK_TME_MAX_KEYS
KEY_SPLIT_LOW, KEY_SPLIT_HIGH = 36, 50


def bit_set(value: int, bit: int) -> bool:
    return bool((value >> bit) & 1)


def bit_field(value: int, low: int, high: int) -> int:
    """Extract bits low..high (inclusive) of value."""
    return (value >> low) & ((1 << (high - low + 1)) - 1)


def _fail(e: ProbeError) -> CheckResult:
    logger.debug("Probe failed: %s", e)
    return CheckResult(CheckStatus.FAIL, str(e))


def _msr_bit(host: LinuxHost, address: int, bit: int, fail_msg: str) -> CheckResult:
    try:
        value = host.read_msr(address)
    except ProbeError as e:
        return _fail(e)
    if bit_set(value, bit):
        return CheckResult(CheckStatus.PASS)
    return CheckResult(CheckStatus.FAIL, fail_msg)


def parse_pretty_name(os_release: str) -> str | None:
    """Return PRETTY_NAME from os-release text, unquoted."""
    for line in os_release.splitlines():
        if line.startswith("PRETTY_NAME="):
            return line.split("=", 1)[1].strip().strip('"').strip("'")
    return None


def check_cpu_vendor(host: LinuxHost) -> CheckResult:
    try:
        _eax, ebx, ecx, edx = host.cpuid(0)
    except ProbeError as e:
        return _fail(e)
    vendor = b"".join(r.to_bytes(4, "little") for r in (ebx, edx, ecx))
    vendor_str = vendor.decode("ascii", errors="replace")
    if vendor_str == INTEL_VENDOR:
        return CheckResult(CheckStatus.PASS, details=[f"CPU vendor: {vendor_str}"])
    return CheckResult(CheckStatus.FAIL, f"CPU vendor is {vendor_str}, not {INTEL_VENDOR}")


def check_os(host: LinuxHost) -> CheckResult:
    try:
        pretty_name = parse_pretty_name(host.read_os_release())
    except ProbeError as e:
        return _fail(e)
    if pretty_name is None:
        return CheckResult(CheckStatus.FAIL, "PRETTY_NAME not found in os-release")

    details = [f"Your current OS is: {pretty_name}"]
    if pretty_name in SUPPORTED_OSES:
        return CheckResult(CheckStatus.PASS, details=details)
    return CheckResult(
        CheckStatus.FAIL, "Your OS distro is not supported yet.", details=details
    )


def check_sgx_enabled(host: LinuxHost) -> CheckResult:
    return _msr_bit(
        host,
        IA32_FEATURE_CONTROL,
        SGX_ENABLE_BIT,
        "SGX is not enabled in BIOS (MSR 0x3A bit 18 is clear)",
    )


def check_tdx_enabled(host: LinuxHost) -> CheckResult:
    result = _msr_bit(
        host,
        IA32_SEAMRR_PHYS_MASK,
        SEAMRR_ENABLE_BIT,
        "TDX is not enabled in BIOS (MSR 0x1401 bit 11 is clear)",
    )
    if result.status == CheckStatus.FAIL:
        try:
            code = host.read_msr(TDX_ERROR_CODE)
        except ProbeError as e:
            logger.debug("No TDX error code: %s", e)
        else:
            result.details.append(f"TDX error code (MSR 0xA0): {code:#x}")
    return result


def check_tme_enabled(host: LinuxHost) -> CheckResult:
    return _msr_bit(
        host,
        IA32_TME_ACTIVATE,
        TME_ENABLE_BIT,
        "TME is not enabled in BIOS (MSR 0x982 bit 1 is clear)",
    )


def check_tme_mt(host: LinuxHost) -> CheckResult:
    # TME-MT is indistinguishable from TME in this register.
    result = check_tme_enabled(host)
    if result.status == CheckStatus.PASS:
        return CheckResult(CheckStatus.INDETERMINATE, "TME is enabled")
    return result


def check_tme_bypass(host: LinuxHost) -> CheckResult:
    return _msr_bit(
        host,
        IA32_TME_ACTIVATE,
        TME_BYPASS_BIT,
        "TME Bypass is disabled. It is recommended to enable it for better "
        "performance of non-TD workloads.",
    )


def check_tdx_key_split(host: LinuxHost) -> CheckResult:
    try:
        value = host.read_msr(IA32_TME_CAPABILITY)
    except ProbeError as e:
        return _fail(e)
    max_keys = bit_field(value, KEY_SPLIT_LOW, KEY_SPLIT_HIGH)
    if max_keys:
        return CheckResult(CheckStatus.PASS, details=[f"MK-TME max keys: {max_keys}"])
    return CheckResult(
        CheckStatus.FAIL, "No keys available to split between TME and TDX"
    )


def check_sgx_reg_server(host: LinuxHost) -> CheckResult:
    try:
        value = host.read_msr(MSR_PLATFORM_INFO)
    except ProbeError as e:
        return CheckResult(CheckStatus.INDETERMINATE, str(e))
    if bit_set(value, SGX_SBX_SERVER_BIT):
        server = "SGX registration server is SBX (pre-production)"
    else:
        server = "SGX registration server is LIV (production)"
    return CheckResult(CheckStatus.INDETERMINATE, details=[server])


def check_tdx_module(host: LinuxHost) -> CheckResult:
    try:
        log = host.run(["dmesg"])
    except ProbeError as e:
        return _fail(e)
    if TDX_MODULE_MARKER in log:
        return CheckResult(CheckStatus.PASS)
    return CheckResult(
        CheckStatus.FAIL, f"'{TDX_MODULE_MARKER}' not found in the kernel log"
    )


def check_kvm_supported(host: LinuxHost) -> CheckResult:
    try:
        version = host.kvm_api_version()
    except ProbeError as e:
        return _fail(e)
    if version >= 0:
        return CheckResult(CheckStatus.PASS, details=[f"KVM API version: {version}"])
    return CheckResult(CheckStatus.FAIL, f"KVM API version query returned {version}")


def check_kvm_param(host: LinuxHost, param: str) -> CheckResult:
    try:
        value = host.read_param(param)
    except ProbeError as e:
        return _fail(e)
    if value in ("1", "Y"):
        return CheckResult(CheckStatus.PASS)
    return CheckResult(
        CheckStatus.FAIL, f"kvm_intel parameter '{param}' is {value!r}"
    )
