import pytest

from tdxhost.checks import probes
from tdxhost.checks.types import CheckStatus

PASS = CheckStatus.PASS
FAIL = CheckStatus.FAIL
TBD = CheckStatus.INDETERMINATE


def test_bit_field_extracts_inclusive_range():
    assert probes.bit_field(0b1011000, 3, 6) == 0b1011
    assert probes.bit_field(0x7FFF << 36, 36, 50) == 0x7FFF
    assert probes.bit_field(1 << 51, 36, 50) == 0


@pytest.mark.parametrize(
    "text, expected",
    [
        ('PRETTY_NAME="CentOS Stream 9"\n', "CentOS Stream 9"),
        ("ID=ubuntu\nPRETTY_NAME='Ubuntu 24.04 LTS'\n", "Ubuntu 24.04 LTS"),
        ("NAME=Ubuntu\n", None),
    ],
)
def test_parse_pretty_name(text, expected):
    assert probes.parse_pretty_name(text) == expected


class TestCpuVendor:
    def test_intel(self, host):
        assert probes.check_cpu_vendor(host).status == PASS

    def test_other_vendor(self, host):
        host.vendor = "AuthenticAMD"
        result = probes.check_cpu_vendor(host)
        assert result.status == FAIL
        assert "AuthenticAMD" in result.reason

    def test_cpuid_unavailable(self, host):
        host.vendor = None
        result = probes.check_cpu_vendor(host)
        assert result.status == FAIL
        assert "cpuid" in result.reason


class TestOs:
    def test_supported(self, host):
        result = probes.check_os(host)
        assert result.status == PASS
        assert result.details == ["Your current OS is: Ubuntu 24.04 LTS"]

    def test_every_supported_os_matches(self, host):
        for name in probes.SUPPORTED_OSES:
            host.os_release = f'PRETTY_NAME="{name}"\n'
            assert probes.check_os(host).status == PASS

    def test_version_must_match_exactly(self, host):
        host.os_release = 'PRETTY_NAME="Ubuntu 22.04.3 LTS"\n'
        result = probes.check_os(host)
        assert result.status == FAIL
        assert result.reason == "Your OS distro is not supported yet."

    def test_missing_pretty_name(self, host):
        host.os_release = "ID=ubuntu\n"
        assert probes.check_os(host).status == FAIL

    def test_unreadable(self, host):
        host.os_release = None
        assert probes.check_os(host).status == FAIL


@pytest.mark.parametrize(
    "check, address, bit",
    [
        (probes.check_sgx_enabled, 0x3A, 18),
        (probes.check_tdx_enabled, 0x1401, 11),
        (probes.check_tme_enabled, 0x982, 1),
    ],
)
class TestMsrBitChecks:
    def test_bit_set(self, host, check, address, bit):
        host.msrs[address] = 1 << bit
        assert check(host).status == PASS

    def test_bit_clear(self, host, check, address, bit):
        host.msrs[address] = ~(1 << bit) & 0xFFFFFFFFFFFFFFFF
        result = check(host)
        assert result.status == FAIL
        assert f"{address:#x}".lower() in result.reason.lower()

    def test_unreadable(self, host, check, address, bit):
        del host.msrs[address]
        assert check(host).status == FAIL


def test_tdx_disabled_reports_error_code(host):
    host.msrs[0x1401] = 0
    host.msrs[0xA0] = 0xC0000B00
    result = probes.check_tdx_enabled(host)
    assert result.status == FAIL
    assert result.details == ["TDX error code (MSR 0xA0): 0xc0000b00"]


def test_tdx_disabled_without_error_code(host):
    host.msrs[0x1401] = 0
    result = probes.check_tdx_enabled(host)
    assert result.status == FAIL
    assert result.details == []


def test_tme_mt_never_passes(host):
    host.msrs[0x982] = 1 << 1
    assert probes.check_tme_mt(host).status == TBD
    host.msrs[0x982] = 0
    assert probes.check_tme_mt(host).status == FAIL


def test_tme_bypass_enabled(host):
    host.msrs[0x982] = (1 << 31) | (1 << 1)
    assert probes.check_tme_bypass(host).status == PASS


def test_tme_bypass_disabled_recommends_enabling(host):
    host.msrs[0x982] = 1 << 1
    result = probes.check_tme_bypass(host)
    assert result.status == FAIL
    assert "TME Bypass is disabled" in result.reason
    assert "recommended to enable" in result.reason


def test_tme_bypass_unreadable(host):
    del host.msrs[0x982]
    assert probes.check_tme_bypass(host).status == FAIL


def test_tdx_key_split(host):
    host.msrs[0x981] = 1 << 36
    assert probes.check_tdx_key_split(host).status == PASS
    host.msrs[0x981] = (1 << 35) | (1 << 51)
    assert probes.check_tdx_key_split(host).status == FAIL


@pytest.mark.parametrize(
    "value, server", [(1 << 27, "SBX"), (0, "LIV")]
)
def test_sgx_reg_server_selects_message(host, value, server):
    host.msrs[0xCE] = value
    result = probes.check_sgx_reg_server(host)
    assert result.status == TBD
    assert server in result.details[0]


class TestTdxModule:
    def test_initialized(self, host):
        assert probes.check_tdx_module(host).status == PASS
        assert ("run", ("dmesg",)) in host.calls

    def test_not_in_log(self, host):
        host.dmesg = "[    1.0] virt/tdx: module initialization failed\n"
        assert probes.check_tdx_module(host).status == FAIL

    def test_dmesg_fails(self, host):
        host.dmesg = None
        result = probes.check_tdx_module(host)
        assert result.status == FAIL
        assert "dmesg" in result.reason


class TestKvm:
    def test_device_accessible(self, host):
        assert probes.check_kvm_supported(host).status == PASS

    def test_negative_version(self, host):
        host.kvm_version = -1
        assert probes.check_kvm_supported(host).status == FAIL

    def test_device_missing(self, host):
        host.kvm_version = None
        assert probes.check_kvm_supported(host).status == FAIL

    @pytest.mark.parametrize("value", ["1", "Y"])
    def test_param_enabled(self, host, value):
        host.params["tdx"] = value
        assert probes.check_kvm_param(host, "tdx").status == PASS

    @pytest.mark.parametrize("value", ["0", "N", "y", ""])
    def test_param_disabled(self, host, value):
        host.params["tdx"] = value
        assert probes.check_kvm_param(host, "tdx").status == FAIL

    def test_param_missing(self, host):
        del host.params["sgx"]
        assert probes.check_kvm_param(host, "sgx").status == FAIL
