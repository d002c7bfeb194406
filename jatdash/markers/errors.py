"""Exception hierarchy for the marker protocol layer.

Decoding failures never escape the scanner: each one is caught per
occurrence and the offending marker is dropped. Config errors do
propagate to the caller.
"""
from __future__ import annotations


class MarkerError(Exception):
    """Base exception for all marker protocol errors."""


class PayloadDecodeError(MarkerError):
    """A marker payload could not be decoded into its typed record."""
    def __init__(self, marker_type: str, position: int, reason: str):
        self.marker_type = marker_type
        self.position = position
        self.reason = reason
        super().__init__(
            f"Cannot decode {marker_type} marker at {position}: {reason}"
        )


class ConfigError(MarkerError):
    """A configuration value is missing or out of range."""
    def __init__(self, key: str, value: object, reason: str):
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config {key}={value!r}: {reason}")
