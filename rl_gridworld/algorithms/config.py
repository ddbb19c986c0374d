"""
Algorithm Configuration

A single flat record of hyperparameters shared by every algorithm instance
a manager creates. Partial updates are merged in place, so the record
survives algorithm switches and grid resizes.
"""

import math
from typing import Any, Dict, Mapping
from dataclasses import dataclass, asdict, fields


EXPLORATION_STRATEGIES = ('epsilon-greedy', 'softmax', 'random', 'greedy')

# camelCase names accepted from browser clients
CAMEL_CASE_ALIASES = {
    'learningRate': 'learning_rate',
    'discountFactor': 'discount_factor',
    'explorationRate': 'exploration_rate',
    'softmaxBeta': 'softmax_beta',
    'explorationStrategy': 'exploration_strategy',
    'actorLearningRate': 'actor_learning_rate',
    'criticLearningRate': 'critic_learning_rate',
    'srMWeightLearningRate': 'sr_m_learning_rate',
    'srWWeightLearningRate': 'sr_w_learning_rate',
}


@dataclass
class AlgorithmConfig:
    """
    Hyperparameters for the tabular learners.

    Attributes:
        learning_rate: Step size for Q-family updates (alpha)
        discount_factor: Discount factor (gamma)
        exploration_rate: Epsilon for epsilon-greedy selection
        softmax_beta: Inverse temperature for softmax selection
        exploration_strategy: One of EXPLORATION_STRATEGIES
        actor_learning_rate: Actor step size (Actor-Critic)
        critic_learning_rate: Critic step size (Actor-Critic)
        sr_m_learning_rate: Successor matrix step size (SR)
        sr_w_learning_rate: Reward weight step size (SR)
    """
    learning_rate: float = 0.1
    discount_factor: float = 0.9
    exploration_rate: float = 0.2
    softmax_beta: float = 1.0
    exploration_strategy: str = 'epsilon-greedy'
    actor_learning_rate: float = 0.1
    critic_learning_rate: float = 0.1
    sr_m_learning_rate: float = 0.1
    sr_w_learning_rate: float = 0.1

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'AlgorithmConfig':
        """Build a config from defaults plus a (possibly camelCase) mapping."""
        config = cls()
        config.update(data)
        return config

    @staticmethod
    def normalize_keys(partial: Mapping[str, Any]) -> Dict[str, Any]:
        """Map camelCase aliases onto field names, rejecting unknown keys."""
        known = {f.name for f in fields(AlgorithmConfig)}
        normalized = {}
        for key, value in partial.items():
            name = CAMEL_CASE_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown config parameter: {key}")
            normalized[name] = value
        return normalized

    def update(self, partial: Mapping[str, Any]) -> None:
        """
        Shallow-merge ``partial`` into this config.

        All keys and values are checked before anything is assigned, so a
        rejected update leaves the config untouched.
        """
        coerced = {}
        for name, value in self.normalize_keys(partial or {}).items():
            if name == 'exploration_strategy':
                coerced[name] = str(value)
            else:
                number = float(value)
                if not math.isfinite(number):
                    raise ValueError(f"{name} must be a finite number, got {value}")
                coerced[name] = number
        for name, value in coerced.items():
            setattr(self, name, value)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
