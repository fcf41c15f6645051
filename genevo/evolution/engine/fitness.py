from __future__ import annotations

from functools import cmp_to_key
from typing import Any, Callable, Generic, Sequence, TypeVar

from loguru import logger

from genevo.evolution.engine.config import EngineCallbacks, SortConfig, SortPolicy
from genevo.evolution.models import FitnessRecord
from genevo.utils.callbacks import call, fire

__all__ = ["FitnessEvaluator", "sort_records"]

T = TypeVar("T")


def sort_records(
    records: Sequence[FitnessRecord[T]], sort: SortConfig
) -> list[FitnessRecord[T]]:
    """Return a new list ordered by the configured policy (stable).

    The custom comparator is trusted to define a strict weak ordering.
    """
    if sort.policy == SortPolicy.HIGH_FIRST:
        return sorted(records, key=lambda r: r.fitness, reverse=True)
    if sort.policy == SortPolicy.LOW_FIRST:
        return sorted(records, key=lambda r: r.fitness)
    return sorted(records, key=cmp_to_key(sort.comparator))


class FitnessEvaluator(Generic[T]):
    """Scores a generation one individual at a time, then sorts the records.

    Each fitness call is awaited to completion before the next one starts, so
    per-individual hooks observe scores in generation order.
    """

    def __init__(
        self,
        fitness_fn: Callable[..., Any],
        sort: SortConfig,
        callbacks: EngineCallbacks,
    ):
        self.fitness_fn = fitness_fn
        self.sort = sort
        self.callbacks = callbacks

    async def evaluate(self, generation: Sequence[T]) -> list[FitnessRecord[T]]:
        records: list[FitnessRecord[T]] = []
        for index, individual in enumerate(generation):
            await fire(self.callbacks.before_fitness_evaluated, individual)
            score = float(await call(self.fitness_fn, individual))
            records.append(FitnessRecord(individual, score))
            logger.debug("[FitnessEvaluator] #{} fitness={}", index, score)
            await fire(self.callbacks.after_fitness_evaluated, individual, score)
        return sort_records(records, self.sort)
