"""
RL Algorithms Package

This package contains the tabular learning algorithms.
Each algorithm implements the LearningAlgorithm interface and is created
through the registry below.
"""

from typing import Any, Dict, List, Optional, Union

import numpy as np

from .base import (
    AlgorithmTables,
    AlgorithmType,
    LearningAlgorithm,
    LearningUpdate,
    MissingTransitionModelError,
    UnknownAlgorithmError,
)
from .config import AlgorithmConfig, EXPLORATION_STRATEGIES
from .exploration import ACTIONS
from .q_learning import QLearning
from .sarsa import SARSA
from .expected_sarsa import ExpectedSARSA
from .monte_carlo import MonteCarlo
from .actor_critic import ActorCritic
from .successor_representation import SuccessorRepresentation

__all__ = [
    'ACTIONS',
    'AlgorithmConfig',
    'AlgorithmTables',
    'AlgorithmType',
    'LearningAlgorithm',
    'LearningUpdate',
    'MissingTransitionModelError',
    'UnknownAlgorithmError',
    'QLearning',
    'SARSA',
    'ExpectedSARSA',
    'MonteCarlo',
    'ActorCritic',
    'SuccessorRepresentation',
]

ALGORITHM_REGISTRY = {
    AlgorithmType.Q_LEARNING: QLearning,
    AlgorithmType.SARSA: SARSA,
    AlgorithmType.EXPECTED_SARSA: ExpectedSARSA,
    AlgorithmType.MONTE_CARLO: MonteCarlo,
    AlgorithmType.ACTOR_CRITIC: ActorCritic,
    AlgorithmType.SUCCESSOR_REPRESENTATION: SuccessorRepresentation,
}


def parse_algorithm_type(name: Union[str, AlgorithmType]) -> AlgorithmType:
    """Resolve an algorithm tag, raising UnknownAlgorithmError if it is not registered."""
    try:
        return AlgorithmType(name)
    except ValueError:
        available = [t.value for t in ALGORITHM_REGISTRY]
        raise UnknownAlgorithmError(
            f"Unknown algorithm: {name}. Available: {available}"
        ) from None


def get_algorithm(name: Union[str, AlgorithmType]) -> type:
    """Get algorithm class by name."""
    return ALGORITHM_REGISTRY[parse_algorithm_type(name)]


def create_algorithm(
    name: Union[str, AlgorithmType],
    grid_size: int,
    config: Optional[AlgorithmConfig] = None,
    rng: Optional[np.random.Generator] = None
) -> LearningAlgorithm:
    """Instantiate a registered algorithm for a grid of the given size."""
    return get_algorithm(name)(grid_size, config, rng)


def list_algorithms() -> List[Dict[str, Any]]:
    """List all available algorithms with descriptions."""
    return [
        {
            'name': algorithm_type.value,
            'display_name': algo_class.display_name,
            'description': algo_class.description,
            'parameters': list(algo_class.parameters),
        }
        for algorithm_type, algo_class in ALGORITHM_REGISTRY.items()
    ]
