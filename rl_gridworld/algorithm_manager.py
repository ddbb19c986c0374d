"""
Algorithm Manager

Owns the active learning algorithm and the hyperparameter record that
outlives it. Switching algorithm or grid size builds a fresh instance with
fresh tables; the config object is shared, never copied.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np

from .algorithms import (
    AlgorithmConfig,
    AlgorithmTables,
    AlgorithmType,
    LearningAlgorithm,
    LearningUpdate,
    create_algorithm,
    parse_algorithm_type,
)
from .algorithms.base import TransitionFn
from .algorithms.tables import State


logger = logging.getLogger(__name__)


class AlgorithmManager:
    """
    Facade over whichever learner is currently active.

    Attributes:
        algorithm_type: Tag of the active learner
        grid_size: Grid size the active learner's tables were built for
        config: The single hyperparameter record
        algorithm: The active learner
    """

    def __init__(
        self,
        algorithm_type: Union[str, AlgorithmType] = AlgorithmType.Q_LEARNING,
        grid_size: int = 5,
        config: Optional[Union[AlgorithmConfig, Mapping[str, Any]]] = None,
        seed: Optional[int] = None
    ):
        if isinstance(config, AlgorithmConfig):
            self.config = config
        else:
            self.config = AlgorithmConfig.from_dict(config or {})
        self.rng = np.random.default_rng(seed)
        self.grid_size = grid_size
        self.algorithm_type = parse_algorithm_type(algorithm_type)
        self.algorithm = self.create(self.algorithm_type, grid_size)

    def create(self, algorithm_type: Union[str, AlgorithmType], grid_size: int) -> LearningAlgorithm:
        """Build a learner sharing this manager's config and random generator."""
        return create_algorithm(algorithm_type, grid_size, self.config, self.rng)

    def switch_algorithm(
        self,
        algorithm_type: Union[str, AlgorithmType],
        config_overrides: Optional[Mapping[str, Any]] = None
    ) -> LearningAlgorithm:
        """
        Replace the active learner, keeping hyperparameters.

        Learned values are discarded. An unknown tag raises
        UnknownAlgorithmError and leaves the current learner in place.
        """
        new_type = parse_algorithm_type(algorithm_type)
        if config_overrides:
            self.config.update(config_overrides)
        self.algorithm = self.create(new_type, self.grid_size)
        self.algorithm_type = new_type
        logger.info("Switched algorithm to %s", new_type.value)
        return self.algorithm

    def update_grid_size(self, grid_size: int) -> LearningAlgorithm:
        """Rebuild the active learner for a new grid size; all tables start at zero."""
        self.algorithm = self.create(self.algorithm_type, grid_size)
        self.grid_size = grid_size
        logger.info("Rebuilt %s tables for grid size %d", self.algorithm_type.value, grid_size)
        return self.algorithm

    def initialize_tables(self, grid_size: Optional[int] = None) -> LearningAlgorithm:
        return self.update_grid_size(self.grid_size if grid_size is None else grid_size)

    def update_config(self, partial: Mapping[str, Any]) -> None:
        self.config.update(partial)

    def get_config(self) -> Dict[str, Any]:
        return self.config.to_dict()

    def choose_action(
        self,
        state: State,
        take_action: Optional[TransitionFn] = None,
        agent_pos: Optional[State] = None
    ) -> str:
        return self.algorithm.choose_action(state, take_action, agent_pos)

    def learning_step(
        self,
        state: State,
        action: str,
        reward: float,
        next_state: State,
        done: bool
    ) -> LearningUpdate:
        return self.algorithm.learning_step(state, action, reward, next_state, done)

    def get_best_actions(
        self,
        state: State,
        take_action: Optional[TransitionFn] = None,
        agent_pos: Optional[State] = None
    ) -> List[str]:
        return self.algorithm.get_best_actions(state, take_action, agent_pos)

    def get_action_probabilities(
        self,
        state: State,
        take_action: Optional[TransitionFn] = None,
        agent_pos: Optional[State] = None
    ) -> Dict[str, float]:
        return self.algorithm.get_action_probabilities(state, take_action, agent_pos)

    def get_action_value(
        self,
        state: State,
        action: str,
        take_action: Optional[TransitionFn] = None,
        agent_pos: Optional[State] = None
    ) -> float:
        return self.algorithm.get_action_value(state, action, take_action, agent_pos)

    def get_value(self, state: State) -> float:
        return self.algorithm.get_value(state)

    def apply_episode_updates(self) -> None:
        """Flush deferred episode updates (Monte Carlo); no-op for online learners."""
        self.algorithm.apply_episode_updates()

    def discard_episode(self) -> None:
        self.algorithm.discard_episode()

    @property
    def tables(self) -> AlgorithmTables:
        return self.algorithm.tables()

    @property
    def q_table(self):
        return self.tables.q

    @property
    def v_table(self):
        return self.tables.v

    @property
    def h_table(self):
        return self.tables.h

    @property
    def m_table(self):
        return self.tables.m

    @property
    def w_table(self):
        return self.tables.w
