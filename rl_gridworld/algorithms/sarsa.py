"""
SARSA Algorithm

On-policy TD control using State-Action-Reward-State-Action updates.
Learns Q-values based on the policy being followed.
"""

from typing import Optional

import numpy as np

from .base import AlgorithmTables, AlgorithmType, LearningAlgorithm, LearningUpdate, TransitionFn
from .tables import ActionValueTable, State


class SARSA(LearningAlgorithm):
    """
    SARSA (State-Action-Reward-State-Action) algorithm.

    On-policy TD control that updates Q-values:
    Q(s,a) <- Q(s,a) + alpha * [R + gamma * Q(s',a') - Q(s,a)]

    Where a' is sampled from the current behavior policy in s'. Every call
    to ``learning_step`` draws a fresh a'.
    """

    algorithm_type = AlgorithmType.SARSA
    display_name = 'SARSA'
    description = 'On-policy TD control using state-action-reward-state-action updates.'
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

    def learning_step(
        self,
        state: State,
        action: str,
        reward: float,
        next_state: State,
        done: bool
    ) -> LearningUpdate:
        old_q = self.q[state, action]

        # On-policy: bootstrap from the action the policy picks in s'
        next_action = self.choose_action(next_state)
        next_q = 0.0 if done else self.q[next_state, next_action]

        td_error = reward + self.config.discount_factor * next_q - old_q
        new_q = old_q + self.config.learning_rate * td_error
        self.q[state, action] = new_q
        return self._update_result(td_error, new_q)

    def tables(self) -> AlgorithmTables:
        return AlgorithmTables(q=self.q)
