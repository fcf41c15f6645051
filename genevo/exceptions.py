from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from genevo.evolution.engine.validation import ConfigFailureReason


class GenevoError(Exception):
    """Base for all genevo exceptions."""

    pass


# High-level families
class ConfigurationError(GenevoError):
    """Run configuration violates a rule checked before the first generation."""

    def __init__(self, reason: ConfigFailureReason | None, message: str):
        super().__init__(message)
        self.reason = reason


class EvolutionError(GenevoError):
    """Evolution process failures."""

    pass


# Evolution subtypes
class OperatorSelectionError(EvolutionError):
    """Random draw fell outside every operator range."""

    pass


class PopulationSizeError(EvolutionError):
    """A reproduction step produced the wrong number of individuals."""

    pass


class EngineDefunctError(EvolutionError):
    """Engine already failed and must be reconstructed."""

    pass


class InvalidStateTransitionError(EvolutionError):
    """Engine state change not allowed from the current state."""

    pass
