from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SortPolicy(str, Enum):
    """Ordering applied to fitness records after every scoring pass."""

    HIGH_FIRST = "high_first"
    LOW_FIRST = "low_first"
    CUSTOM = "custom"


class SortConfig(BaseModel):
    policy: SortPolicy = Field(default=SortPolicy.HIGH_FIRST)
    comparator: Optional[Callable[..., Any]] = Field(
        default=None,
        description="cmp-style comparator over two FitnessRecords, used with CUSTOM",
    )
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class WeightedMutation(BaseModel):
    """Mutation operator: ``mutate(individual, last_fitness) -> child``."""

    probability: float = Field(ge=0)
    mutate: Callable[..., Any]
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class WeightedBreed(BaseModel):
    """Breeding operator: ``breed(record, neighbour_record) -> child``."""

    probability: float = Field(ge=0)
    breed: Callable[..., Any]
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class AutoReproduction(BaseModel):
    """Pick one weighted operator per individual from a probability partition."""

    kind: Literal["auto"] = "auto"
    mutations: list[WeightedMutation] = Field(default_factory=list)
    breeds: list[WeightedBreed] = Field(default_factory=list)
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    def total_probability(self) -> float:
        return sum(m.probability for m in self.mutations) + sum(
            b.probability for b in self.breeds
        )


class CustomBreedReproduction(BaseModel):
    """Hand the whole fitness record list to one breeding function."""

    kind: Literal["custom_breed"] = "custom_breed"
    breed: Optional[Callable[..., Any]] = None
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class CustomMutateReproduction(BaseModel):
    """Hand the whole fitness record list to one mutation function."""

    kind: Literal["custom_mutate"] = "custom_mutate"
    mutate: Optional[Callable[..., Any]] = None
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


ReproductionSettings = Annotated[
    Union[AutoReproduction, CustomBreedReproduction, CustomMutateReproduction],
    Field(discriminator="kind"),
]


class EngineCallbacks(BaseModel):
    """Optional lifecycle hooks. Any of them may be a coroutine function.

    Generation-level hooks receive a GenerationInfo or GenerationFitnessInfo
    snapshot. ``on_custom_breed`` fires in custom-breed mode just before the
    breed function runs; its snapshot holds the generation being replaced,
    taken before any kill-worst replacement, while the breed function itself
    receives the replaced records.
    """

    before_next_generation: Optional[Callable[..., Any]] = None
    on_custom_breed: Optional[Callable[..., Any]] = None
    after_next_generation: Optional[Callable[..., Any]] = None
    before_generation_fitness_evaluated: Optional[Callable[..., Any]] = None
    after_generation_fitness_evaluated: Optional[Callable[..., Any]] = None
    before_fitness_evaluated: Optional[Callable[..., Any]] = None
    after_fitness_evaluated: Optional[Callable[..., Any]] = None
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)


class GeneticConfig(BaseModel):
    """Configuration options controlling EvolutionEngine behaviour."""

    population_size: int = Field(description="Individuals kept by every generation")
    sort: SortConfig = Field(default_factory=SortConfig)
    generate: Callable[..., Any] = Field(
        description="Produces one new individual; may be a coroutine function"
    )
    fitness: Callable[..., Any] = Field(
        description="Scores one individual; may be a coroutine function"
    )
    reproduction: Optional[ReproductionSettings] = Field(
        default=None, description="Exactly one reproduction strategy"
    )
    kill_worst_fraction: Optional[float] = Field(
        default=None,
        gt=0,
        le=1,
        description="Fraction of the worst individuals replaced by mirrored best ones",
    )
    callbacks: EngineCallbacks = Field(default_factory=EngineCallbacks)
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)
