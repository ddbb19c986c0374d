"""
Learning Algorithm Interface

Abstract base class shared by the six tabular learners. Action selection,
best-action lookup and action probabilities are composed from the
stateless helpers in ``exploration`` over each variant's action scores.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from . import exploration
from .config import AlgorithmConfig
from .exploration import ACTIONS, ACTION_INDEX
from .tables import State


# take_action(action, position, grid_size) -> Transition
TransitionFn = Callable[[str, State, int], Any]


class AlgorithmType(str, Enum):
    """Tags accepted by the algorithm factory."""
    Q_LEARNING = 'q-learning'
    SARSA = 'sarsa'
    EXPECTED_SARSA = 'expected-sarsa'
    MONTE_CARLO = 'monte-carlo'
    ACTOR_CRITIC = 'actor-critic'
    SUCCESSOR_REPRESENTATION = 'sr'


class UnknownAlgorithmError(ValueError):
    """Raised when an algorithm tag is not in the registry."""


class MissingTransitionModelError(ValueError):
    """Raised when a model-dependent learner is queried without a transition function."""


@dataclass
class LearningUpdate:
    """Outcome of a single learning step."""
    needs_stop: bool = False
    td_error: float = 0.0
    error: Optional[str] = None


@dataclass
class AlgorithmTables:
    """Tables held by the active learner; kinds it does not define are None."""
    q: Any = None
    v: Any = None
    h: Any = None
    m: Any = None
    w: Any = None


class LearningAlgorithm(ABC):
    """
    Abstract base class for tabular learners on a square grid.

    Subclasses own their tables, provide per-action scores for a state and
    implement their update rule. Hyperparameters live in a shared
    ``AlgorithmConfig`` that outlives the instance.

    Attributes:
        grid_size: Side length of the grid the tables were built for
        config: Shared hyperparameter record
        rng: Random generator used for every stochastic choice
    """

    algorithm_type: AlgorithmType
    display_name: str = ''
    description: str = ''
    parameters: List[str] = []

    def __init__(
        self,
        grid_size: int,
        config: Optional[AlgorithmConfig] = None,
        rng: Optional[np.random.Generator] = None
    ):
        self.grid_size = grid_size
        self.config = config if config is not None else AlgorithmConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.actions = ACTIONS
        self.initialize_tables(grid_size)

    @abstractmethod
    def initialize_tables(self, grid_size: int) -> None:
        """Allocate zero-filled tables for a ``grid_size`` x ``grid_size`` grid."""

    @abstractmethod
    def action_scores(
        self,
        state: State,
        take_action: Optional[TransitionFn] = None,
        agent_pos: Optional[State] = None
    ) -> np.ndarray:
        """Per-action scores (ACTIONS order) that drive action selection."""

    @abstractmethod
    def learning_step(
        self,
        state: State,
        action: str,
        reward: float,
        next_state: State,
        done: bool
    ) -> LearningUpdate:
        """Apply the update rule for one transition."""

    @abstractmethod
    def get_value(self, state: State) -> float:
        """The learner's estimate of the value of ``state``."""

    @abstractmethod
    def tables(self) -> AlgorithmTables:
        """Tables this learner maintains."""

    def choose_action(
        self,
        state: State,
        take_action: Optional[TransitionFn] = None,
        agent_pos: Optional[State] = None
    ) -> str:
        scores = self.action_scores(state, take_action, agent_pos)
        return exploration.choose_action(
            self.config.exploration_strategy,
            scores,
            self.config.exploration_rate,
            self.rng,
            beta=self.config.softmax_beta,
        )

    def get_best_actions(
        self,
        state: State,
        take_action: Optional[TransitionFn] = None,
        agent_pos: Optional[State] = None
    ) -> List[str]:
        return exploration.best_actions(self.action_scores(state, take_action, agent_pos))

    def get_action_probabilities(
        self,
        state: State,
        take_action: Optional[TransitionFn] = None,
        agent_pos: Optional[State] = None
    ) -> Dict[str, float]:
        scores = self.action_scores(state, take_action, agent_pos)
        return exploration.action_distribution(
            self.config.exploration_strategy,
            scores,
            self.config.exploration_rate,
            beta=self.config.softmax_beta,
        )

    def get_action_value(
        self,
        state: State,
        action: str,
        take_action: Optional[TransitionFn] = None,
        agent_pos: Optional[State] = None
    ) -> float:
        return float(self.action_scores(state, take_action, agent_pos)[ACTION_INDEX[action]])

    def update_config(self, partial: Dict[str, Any]) -> None:
        self.config.update(partial)

    def apply_episode_updates(self) -> None:
        """Flush deferred updates at episode end. Most learners update online."""

    def discard_episode(self) -> None:
        """Drop deferred updates of an episode that was cut short."""

    def _update_result(self, td_error: float, *written: float) -> LearningUpdate:
        """Wrap a TD error, flagging a stop if any written value diverged."""
        if all(math.isfinite(value) for value in (td_error,) + written):
            return LearningUpdate(td_error=td_error)
        return LearningUpdate(
            needs_stop=True,
            td_error=td_error,
            error=f"{self.display_name or type(self).__name__} produced a non-finite value",
        )
