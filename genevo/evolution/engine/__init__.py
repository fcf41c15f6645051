from __future__ import annotations

from genevo.evolution.engine.config import (
    AutoReproduction,
    CustomBreedReproduction,
    CustomMutateReproduction,
    EngineCallbacks,
    GeneticConfig,
    SortConfig,
    SortPolicy,
    WeightedBreed,
    WeightedMutation,
)
from genevo.evolution.engine.core import EvolutionEngine
from genevo.evolution.engine.distribution import (
    OperatorDistribution,
    OperatorKind,
    OperatorRange,
)
from genevo.evolution.engine.fitness import FitnessEvaluator, sort_records
from genevo.evolution.engine.metrics import EngineMetrics
from genevo.evolution.engine.replacement import KillWorstReplacement
from genevo.evolution.engine.state import EngineState
from genevo.evolution.engine.validation import (
    ConfigFailureReason,
    ConfigValidationResult,
    validate_config,
)
