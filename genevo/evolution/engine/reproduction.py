"""Helpers producing the next generation from scored records."""

from __future__ import annotations

import random
from typing import Any, Callable, Sequence, TypeVar

from loguru import logger

from genevo.evolution.engine.distribution import OperatorDistribution, OperatorKind
from genevo.evolution.models import FitnessRecord
from genevo.exceptions import PopulationSizeError
from genevo.utils.callbacks import call

__all__ = ["auto_reproduce", "batch_reproduce"]

T = TypeVar("T")


async def auto_reproduce(
    last_generation: Sequence[FitnessRecord[T]],
    *,
    distribution: OperatorDistribution,
    rng: random.Random,
) -> list[T]:
    """Produce exactly one child per record of *last_generation*.

    Record ``i`` is paired with its circular neighbour ``(i + 1) % N``. One draw
    per record picks the operator; a mutation sees only record ``i``, a breed
    sees both records. Children keep the index order of their source records.

    Raises:
        OperatorSelectionError: a draw is not covered by the distribution.
        PopulationSizeError: the child count differs from the source count.
    """
    size = len(last_generation)
    children: list[T] = []
    counts = {OperatorKind.MUTATION: 0, OperatorKind.BREED: 0}

    for i, record in enumerate(last_generation):
        neighbour = last_generation[(i + 1) % size]
        chosen = distribution.select(rng.random())
        if chosen.kind == OperatorKind.MUTATION:
            child = await call(chosen.operator, record.individual, record.fitness)
        else:
            child = await call(chosen.operator, record, neighbour)
        children.append(child)
        counts[chosen.kind] += 1

    if len(children) != size:
        raise PopulationSizeError(
            f"Automatic reproduction produced {len(children)} individual(s), expected {size}"
        )

    logger.debug(
        "[reproduction] Auto: mutations={}, breeds={}",
        counts[OperatorKind.MUTATION],
        counts[OperatorKind.BREED],
    )
    return children


async def batch_reproduce(
    records: Sequence[FitnessRecord[T]],
    *,
    operator: Callable[..., Any],
    expected_size: int,
    label: str,
) -> list[T]:
    """Run a user batch operator over all records and check the result size.

    Args:
        records: Current fitness records, after any replacement step.
        operator: Batch function returning the new population.
        expected_size: Length of the generation being replaced.
        label: Operator name for messages (``custom_breed``/``custom_mutate``).

    Raises:
        PopulationSizeError: the operator returned a different count.
    """
    population = list(await call(operator, list(records)))
    if len(population) != expected_size:
        raise PopulationSizeError(
            f"{label} returned {len(population)} individual(s), expected {expected_size}"
        )
    logger.debug("[reproduction] {} produced {} individual(s)", label, len(population))
    return population
