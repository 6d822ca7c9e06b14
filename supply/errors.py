"""
Error types raised while loading configuration or computing supply figures.
Every failure surfaces as one of these, never as a "0" supply value.
"""

class SupplyError(Exception):
    """Base class for all supply computation errors"""


class ConfigurationError(SupplyError):
    """Invalid or inconsistent startup configuration. Fatal at startup."""


class TransportError(SupplyError):
    """Batch call, block lookup or RPC connection failure. Aborts the request."""


class DecodeError(SupplyError):
    """Batch results do not line up with the calls that were issued."""


class InvalidVestingParameters(SupplyError):
    """Out-of-bounds pool parameters. Recovered per entry by the vesting calculator."""
