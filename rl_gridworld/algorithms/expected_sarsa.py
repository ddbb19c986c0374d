"""
Expected SARSA Algorithm

On-policy TD control that bootstraps from the expectation of Q(s', .)
under the current behavior policy instead of a sampled next action.
"""

from typing import Optional

import numpy as np

from .base import AlgorithmTables, AlgorithmType, LearningAlgorithm, LearningUpdate, TransitionFn
from .exploration import ACTIONS
from .tables import ActionValueTable, State


class ExpectedSARSA(LearningAlgorithm):
    """
    Expected SARSA.

    Q(s,a) <- Q(s,a) + alpha * [R + gamma * sum_a' pi(a'|s') Q(s',a') - Q(s,a)]

    pi(.|s') is recomputed from the live Q-table on every update.
    """

    algorithm_type = AlgorithmType.EXPECTED_SARSA
    display_name = 'Expected SARSA'
    description = 'On-policy TD control bootstrapping from the policy-weighted mean of next Q-values.'
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
        return self.q.max_value(state)

    def expected_value(self, state: State) -> float:
        """Policy-weighted mean of Q(state, .)."""
        probabilities = self.get_action_probabilities(state)
        q_values = self.q.row(state)
        return float(sum(probabilities[a] * q_values[i] for i, a in enumerate(ACTIONS)))

    def learning_step(
        self,
        state: State,
        action: str,
        reward: float,
        next_state: State,
        done: bool
    ) -> LearningUpdate:
        old_q = self.q[state, action]
        expected_next_q = 0.0 if done else self.expected_value(next_state)

        td_error = reward + self.config.discount_factor * expected_next_q - old_q
        new_q = old_q + self.config.learning_rate * td_error
        self.q[state, action] = new_q
        return self._update_result(td_error, new_q)

    def tables(self) -> AlgorithmTables:
        return AlgorithmTables(q=self.q)
