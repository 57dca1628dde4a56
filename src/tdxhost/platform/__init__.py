"""Platform detection for TDX host checks."""

from .detect import detect_platform
from .types import Platform

__all__ = ["detect_platform", "Platform"]
