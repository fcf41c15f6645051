from __future__ import annotations

from typing import Any, Generic, NamedTuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class FitnessRecord(NamedTuple, Generic[T]):
    """An individual paired with its fitness score."""

    individual: T
    fitness: float


class GenerationInfo(BaseModel):
    """Snapshot of the current generation handed to lifecycle hooks."""

    generation_num: int = Field(ge=0, description="Generations produced so far")
    generation: list[Any] = Field(
        default_factory=list, description="Current population, in engine order"
    )
    model_config = ConfigDict(arbitrary_types_allowed=True)


class GenerationFitnessInfo(GenerationInfo):
    """Generation snapshot including the latest fitness records."""

    fitness: list[Any] = Field(
        default_factory=list,
        description="FitnessRecord list from the latest scoring pass, sorted",
    )
