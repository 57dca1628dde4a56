"""Platform type definitions."""

from dataclasses import dataclass

SUPPORTED_MACHINES = ("x86_64",)


@dataclass(frozen=True)
class Platform:
    """Detected host information."""

    system: str
    machine: str
    os_name: str
    kernel_version: str = ""

    @property
    def is_linux(self) -> bool:
        return self.system == "Linux"

    @property
    def is_x86(self) -> bool:
        return self.machine in SUPPORTED_MACHINES

    def __str__(self) -> str:
        return f"{self.os_name} ({self.system} {self.kernel_version}, {self.machine})"
