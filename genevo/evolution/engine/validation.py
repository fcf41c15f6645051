from __future__ import annotations

from enum import Enum
import math
from typing import Optional

from pydantic import BaseModel, Field

from genevo.evolution.engine.config import (
    AutoReproduction,
    CustomBreedReproduction,
    CustomMutateReproduction,
    GeneticConfig,
    SortPolicy,
)
from genevo.exceptions import ConfigurationError

PROBABILITY_TOLERANCE = 1e-9


class ConfigFailureReason(str, Enum):
    """Specific rule a run configuration violated."""

    MISSING_CONFIG = "missing_config"
    INVALID_POPULATION_SIZE = "invalid_population_size"
    NO_REPRODUCTION_STRATEGY = "no_reproduction_strategy"
    PROBABILITY_SUM = "probability_sum"
    MISSING_CUSTOM_OPERATOR = "missing_custom_operator"
    MISSING_COMPARATOR = "missing_comparator"


class ConfigValidationResult(BaseModel):
    """Outcome of checking a GeneticConfig before the first generation."""

    is_valid: bool = Field(description="Whether the config passed every rule")
    reason: Optional[ConfigFailureReason] = Field(
        default=None, description="First rule that failed"
    )
    summary: Optional[str] = Field(default=None, description="One-line verdict")
    detailed_message: str | None = Field(
        default=None,
        description="Human-readable explanation of the failure",
        repr=False,
    )

    @classmethod
    def failure(
        cls,
        reason: ConfigFailureReason,
        summary: str,
        details: str | None = None,
    ) -> "ConfigValidationResult":
        return cls(
            is_valid=False,
            reason=reason,
            summary=summary,
            detailed_message=details,
        )

    def raise_for_failure(self) -> None:
        if not self.is_valid:
            raise ConfigurationError(
                self.reason,
                f"{self.summary}: {self.detailed_message}"
                if self.detailed_message
                else self.summary,
            )


def validate_config(config: GeneticConfig | None) -> ConfigValidationResult:
    """Check the run rules that pydantic field constraints cannot express."""

    if config is None:
        return ConfigValidationResult.failure(
            ConfigFailureReason.MISSING_CONFIG,
            "No configuration supplied",
        )

    if config.population_size <= 0:
        return ConfigValidationResult.failure(
            ConfigFailureReason.INVALID_POPULATION_SIZE,
            "Population size must be positive",
            f"population_size={config.population_size}",
        )

    settings = config.reproduction
    if settings is None:
        return ConfigValidationResult.failure(
            ConfigFailureReason.NO_REPRODUCTION_STRATEGY,
            "No reproduction strategy enabled",
            "Set reproduction to auto, custom_breed or custom_mutate",
        )

    if isinstance(settings, AutoReproduction):
        total = settings.total_probability()
        if not math.isclose(total, 1.0, rel_tol=0.0, abs_tol=PROBABILITY_TOLERANCE):
            return ConfigValidationResult.failure(
                ConfigFailureReason.PROBABILITY_SUM,
                "Mutation and breed probabilities must sum to 1",
                f"sum={total!r} over {len(settings.mutations)} mutation(s) "
                f"and {len(settings.breeds)} breed(s)",
            )
    elif isinstance(settings, CustomBreedReproduction):
        if not callable(settings.breed):
            return ConfigValidationResult.failure(
                ConfigFailureReason.MISSING_CUSTOM_OPERATOR,
                "Custom breed enabled without a breed function",
            )
    elif isinstance(settings, CustomMutateReproduction):
        if not callable(settings.mutate):
            return ConfigValidationResult.failure(
                ConfigFailureReason.MISSING_CUSTOM_OPERATOR,
                "Custom mutate enabled without a mutate function",
            )

    if config.sort.policy == SortPolicy.CUSTOM and not callable(config.sort.comparator):
        return ConfigValidationResult.failure(
            ConfigFailureReason.MISSING_COMPARATOR,
            "Custom sort policy requires a comparator",
        )

    return ConfigValidationResult(
        is_valid=True,
        summary=f"population_size={config.population_size}, reproduction={settings.kind}",
    )
