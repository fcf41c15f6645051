from genevo.runner.evolution_runner import EvolutionRunner

__all__ = ["EvolutionRunner"]
