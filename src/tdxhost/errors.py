"""Exceptions raised by tdxhost."""


class TdxHostError(Exception):
    """Base class for tdxhost errors."""


class ProbeError(TdxHostError):
    """A raw host signal could not be obtained."""


class UnsupportedHostError(TdxHostError):
    """The host cannot run the checks at all."""
