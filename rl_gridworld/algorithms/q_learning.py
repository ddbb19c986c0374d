"""
Q-Learning Algorithm

Off-policy TD control that learns optimal Q-values directly.
Uses maximum Q-value for next state, regardless of policy.
"""

from typing import Optional

import numpy as np

from .base import AlgorithmTables, AlgorithmType, LearningAlgorithm, LearningUpdate, TransitionFn
from .tables import ActionValueTable, State


class QLearning(LearningAlgorithm):
    """
    Q-Learning algorithm implementation.

    Off-policy TD control that updates Q-values:
    Q(s,a) <- Q(s,a) + alpha * [R + gamma * max_a' Q(s',a') - Q(s,a)]

    Uses maximum Q-value for next state (greedy), while behavior policy
    follows the configured exploration strategy.

    Attributes:
        q: Action-value table
    """

    algorithm_type = AlgorithmType.Q_LEARNING
    display_name = 'Q-Learning'
    description = 'Off-policy TD control using maximum Q-value updates.'
    parameters = ['learning_rate', 'discount_factor', 'exploration_rate', 'softmax_beta']

    def initialize_tables(self, grid_size: int) -> None:
        self.grid_size = grid_size
        self.q = ActionValueTable(grid_size)

    def action_scores(
        self,
        state: State,
        take_action: Optional[TransitionFn] = None,
        agent_pos: Optional[State] = None
    ) -> np.ndarray:
        return self.q.row(state)

    def get_value(self, state: State) -> float:
        """Get value of a state (max Q-value)."""
        return self.q.max_value(state)

    def learning_step(
        self,
        state: State,
        action: str,
        reward: float,
        next_state: State,
        done: bool
    ) -> LearningUpdate:
        old_q = self.q[state, action]
        max_next_q = self.q.max_value(next_state)
        if done:
            max_next_q = 0.0

        td_error = reward + self.config.discount_factor * max_next_q - old_q
        new_q = old_q + self.config.learning_rate * td_error
        self.q[state, action] = new_q
        return self._update_result(td_error, new_q)

    def tables(self) -> AlgorithmTables:
        return AlgorithmTables(q=self.q)
