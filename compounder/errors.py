"""Exception types shared by the engine boundary and the rate service."""

from __future__ import annotations

from dataclasses import dataclass


class CompounderError(Exception):
    """Base class for compounder errors."""


@dataclass(slots=True, frozen=True)
class FieldError:
    path: str  # e.g. "principal" or "tiers[2].rate"
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class ValidationError(CompounderError, ValueError):
    """A calculation request failed boundary validation.

    Carries every field-level problem found, not just the first one.
    """

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        super().__init__("; ".join(str(e) for e in errors))


class ConfigurationError(CompounderError, OSError):
    """A required setting (e.g. the provider API key) is missing."""


class DataUnavailableError(CompounderError):
    """The rate provider failed or returned unusable data."""
