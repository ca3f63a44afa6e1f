from __future__ import annotations


class PairsError(Exception):
    """Base class for errors raised by the pairs core."""


class ConfigurationError(PairsError, ValueError):
    """Invalid board dimensions or engine settings. Raised before any state is touched."""


class RecordError(PairsError, ValueError):
    """A save record is malformed, incomplete or inconsistent with its own dimensions."""
