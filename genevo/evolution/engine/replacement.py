from __future__ import annotations

import math
from typing import Sequence, TypeVar

from loguru import logger

from genevo.evolution.engine.config import SortConfig
from genevo.evolution.engine.fitness import sort_records
from genevo.evolution.models import FitnessRecord

__all__ = ["KillWorstReplacement"]

T = TypeVar("T")


class KillWorstReplacement:
    """Overwrite the worst records with the best ones, mirrored by rank.

    With records ascending by fitness, position ``i`` (for ``i < kill_count``)
    takes the record at ``len - 1 - i``. Strong individuals can therefore
    appear several times as reproduction sources while the population size
    stays fixed.
    """

    def __init__(self, fraction: float):
        if not 0 < fraction <= 1:
            raise ValueError(f"fraction must be in (0, 1], got {fraction}")
        self.fraction = fraction

    def kill_count(self, population_size: int) -> int:
        return math.floor(population_size * self.fraction)

    def apply(
        self,
        records: Sequence[FitnessRecord[T]],
        population_size: int,
        sort: SortConfig,
    ) -> list[FitnessRecord[T]]:
        ascending = sorted(records, key=lambda r: r.fitness)
        last = len(ascending) - 1
        kill_count = min(self.kill_count(population_size), len(ascending))
        replaced = [
            ascending[last - i] if i < kill_count else record
            for i, record in enumerate(ascending)
        ]
        logger.debug(
            "[KillWorstReplacement] Replaced {}/{} record(s) (fraction={})",
            kill_count,
            len(ascending),
            self.fraction,
        )
        return sort_records(replaced, sort)
