import itertools
import random

import pytest

from genevo import AutoReproduction, GeneticConfig, WeightedMutation


class ScriptedRandom(random.Random):
    """random.Random whose random() replays a fixed list of draws."""

    def __init__(self, draws):
        super().__init__(0)
        self._draws = list(draws)
        self._index = 0

    def random(self):
        value = self._draws[self._index % len(self._draws)]
        self._index += 1
        return value


def make_config(**overrides) -> GeneticConfig:
    """Integers as individuals, fitness equal to the value, +1 mutation."""
    counter = itertools.count()
    fields = dict(
        population_size=4,
        generate=lambda: next(counter),
        fitness=lambda individual: float(individual),
        reproduction=AutoReproduction(
            mutations=[
                WeightedMutation(probability=1.0, mutate=lambda ind, fit: ind + 1)
            ]
        ),
    )
    fields.update(overrides)
    return GeneticConfig(**fields)


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def scripted_random():
    return ScriptedRandom
