"""Probability partition over the configured mutation and breeding operators."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from genevo.evolution.engine.config import AutoReproduction
from genevo.exceptions import OperatorSelectionError

__all__ = ["OperatorKind", "OperatorRange", "OperatorDistribution"]


class OperatorKind(str, Enum):
    MUTATION = "mutation"
    BREED = "breed"


class OperatorRange(BaseModel):
    """Half-open interval ``[start, end)`` owned by one operator."""

    kind: OperatorKind
    start: float = Field(ge=0)
    end: float = Field(ge=0)
    operator: Callable[..., Any]
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    def covers(self, value: float) -> bool:
        return self.start <= value < self.end


class OperatorDistribution:
    """Cumulative ranges over [0, 1): mutations first, then breeds, in declared order."""

    def __init__(self, ranges: list[OperatorRange]):
        self.ranges = ranges

    @classmethod
    def from_settings(cls, settings: AutoReproduction) -> "OperatorDistribution":
        ranges: list[OperatorRange] = []
        current = 0.0
        for mutation in settings.mutations:
            ranges.append(
                OperatorRange(
                    kind=OperatorKind.MUTATION,
                    start=current,
                    end=current + mutation.probability,
                    operator=mutation.mutate,
                )
            )
            current += mutation.probability
        for breed in settings.breeds:
            ranges.append(
                OperatorRange(
                    kind=OperatorKind.BREED,
                    start=current,
                    end=current + breed.probability,
                    operator=breed.breed,
                )
            )
            current += breed.probability

        logger.debug(
            "[OperatorDistribution] Built {} range(s): {}",
            len(ranges),
            " | ".join(f"{r.kind.value}[{r.start:.3f},{r.end:.3f})" for r in ranges),
        )
        return cls(ranges)

    def select(self, value: float) -> OperatorRange:
        """Return the first range containing *value*.

        Raises:
            OperatorSelectionError: no range covers the draw, e.g. a rounding
                gap just below 1.0.
        """
        for operator_range in self.ranges:
            if operator_range.covers(value):
                return operator_range
        upper = self.ranges[-1].end if self.ranges else 0.0
        raise OperatorSelectionError(
            f"Draw {value!r} not covered by any of {len(self.ranges)} operator "
            f"range(s) (upper bound {upper!r})"
        )

    def __len__(self) -> int:
        return len(self.ranges)
