"""Exceptions raised by the Dose Cadence engine."""

from __future__ import annotations

from collections.abc import Iterable


class DoseCadenceError(Exception):
    """Base class for engine errors."""


class InvalidProtocol(DoseCadenceError):
    """A protocol record failed validation.

    All messages are kept on ``errors`` so a caller can show every problem
    at once.
    """

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors: list[str] = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid protocol")


class UnsupportedRule(DoseCadenceError):
    """The schedule rule has no deterministic calculation (custom rules)."""
