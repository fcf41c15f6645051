from __future__ import annotations

from collections import deque
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field


class EngineMetrics(BaseModel):
    """Counters describing the progress of a run."""

    total_generations: int = Field(
        default=0, description="Total number of generations produced"
    )
    individuals_evaluated: int = Field(
        default=0, description="Total number of fitness evaluations"
    )
    best_fitness: float | None = Field(
        default=None, description="First record's fitness after the latest sort"
    )
    mean_fitness: float | None = Field(
        default=None, description="Mean fitness of the latest scoring pass"
    )
    last_generation_time: datetime | None = Field(
        default=None, description="Timestamp of last completed generation"
    )
    mean_fitness_history: deque = Field(
        default_factory=lambda: deque(maxlen=5),
        description="Rolling window of mean fitness per scoring pass",
    )

    @computed_field
    @property
    def avg_recent_mean_fitness(self) -> float | None:
        """Average of the rolling mean-fitness window."""
        if not self.mean_fitness_history:
            return None
        return sum(self.mean_fitness_history) / len(self.mean_fitness_history)

    def record_pass(self, scores: list[float], best: float | None) -> None:
        self.individuals_evaluated += len(scores)
        self.best_fitness = best
        if scores:
            self.mean_fitness = sum(scores) / len(scores)
            self.mean_fitness_history.append(self.mean_fitness)

    def to_dict(self) -> dict[str, int | float | str | None]:
        return {
            "total_generations": self.total_generations,
            "individuals_evaluated": self.individuals_evaluated,
            "best_fitness": self.best_fitness,
            "mean_fitness": self.mean_fitness,
            "last_generation_time": self.last_generation_time,
            "avg_recent_mean_fitness": self.avg_recent_mean_fitness,
        }

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")
