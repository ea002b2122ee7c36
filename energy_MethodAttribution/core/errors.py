# energy_MethodAttribution/core/errors.py
from __future__ import annotations


class AttributionError(Exception):
    """Base class for every error raised by the attribution engine."""


class EmptyInputError(AttributionError, ValueError):
    """The power table has no header or no data rows."""


class MissingColumnsError(AttributionError, ValueError):
    """No usable energy/power column could be resolved from the header."""

    def __init__(self, message: str, header: str = ""):
        super().__init__(f"{message}:\n{header}" if header else message)
        self.header = header


class CorruptSampleSourceError(AttributionError, IOError):
    """The execution-sample source could not be read to the end."""
