"""Exception hierarchy for pipeline configuration and rebuild failures.

Malformed *data* never raises: it degrades to an absent value. These
exceptions cover malformed *pipeline inputs* (which must fail before any
recompute) and failed rebuilds.
"""

from typing import List, Optional


class RegistryError(Exception):
    """Base exception for the ASC registry pipeline."""
    pass


class ParseError(RegistryError):
    """Raised when an input file cannot be read at all."""
    pass


class SchemaMismatchError(ParseError):
    """Raised when an input table is missing required columns."""

    def __init__(self, source: str, missing_columns: List[str]):
        self.source = source
        self.missing_columns = sorted(missing_columns)
        super().__init__(
            f"{source}: missing required columns {self.missing_columns}"
        )


class RegionDefinitionError(RegistryError):
    """Raised when region definitions reference unknown or no state codes."""

    def __init__(self, message: str, region: Optional[str] = None, invalid_codes: Optional[List[str]] = None):
        super().__init__(message)
        self.region = region
        self.invalid_codes = invalid_codes or []


class RefreshError(RegistryError):
    """Raised when a rebuild fails; the previous generation stays published."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Rebuild failed during stage '{stage}': {cause}")
