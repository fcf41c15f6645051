"""genevo – generic evolutionary computation engine."""

from genevo.evolution.engine import (
    AutoReproduction,
    CustomBreedReproduction,
    CustomMutateReproduction,
    EngineCallbacks,
    EvolutionEngine,
    GeneticConfig,
    SortConfig,
    SortPolicy,
    WeightedBreed,
    WeightedMutation,
)
from genevo.evolution.models import (
    FitnessRecord,
    GenerationFitnessInfo,
    GenerationInfo,
)

__version__ = "0.1.0"
