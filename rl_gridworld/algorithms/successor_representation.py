"""
Successor Representation Control

Value is factored into a successor matrix M (expected discounted future
occupancy of every state) and a reward weight per state W, with
V(s) = sum_s'' M(s, s'') W(s''). Action values need a one-step model of
the grid, supplied by the caller as a transition function.
"""

from typing import Optional

import numpy as np

from .base import (
    AlgorithmTables,
    AlgorithmType,
    LearningAlgorithm,
    LearningUpdate,
    MissingTransitionModelError,
    TransitionFn,
)
from .exploration import ACTIONS
from .tables import State, StateValueTable, SuccessorTable


class SuccessorRepresentation(LearningAlgorithm):
    """
    Tabular SR learned with TD(0).

    On a transition s -> s' with reward R:
        W(s')     <- W(s') + alpha_w * (R - W(s'))
        M(s, s'') <- M(s, s'') + alpha_m * ([s' = s''] + gamma * M(s', s'') - M(s, s''))
    where M(s', .) is taken as 0 when s' is terminal.

    Derived quantities:
        V(s)   = sum_s'' M(s, s'') W(s'')
        Q(s,a) = W(s') + gamma * V(s'),  s' the successor of a in s

    Attributes:
        m: Successor matrix, grid_size**2 x grid_size**2 entries
        w: Reward weights
    """

    algorithm_type = AlgorithmType.SUCCESSOR_REPRESENTATION
    display_name = 'Successor Representation'
    description = 'Learns state occupancies M and reward weights W; V = M W.'
    parameters = [
        'discount_factor', 'exploration_rate', 'softmax_beta',
        'sr_m_learning_rate', 'sr_w_learning_rate',
    ]

    def initialize_tables(self, grid_size: int) -> None:
        self.grid_size = grid_size
        self.m = SuccessorTable(grid_size)
        self.w = StateValueTable(grid_size)

    def get_value(self, state: State) -> float:
        return float(np.sum(self.m.row(state) * self.w.values))

    def action_scores(
        self,
        state: State,
        take_action: Optional[TransitionFn] = None,
        agent_pos: Optional[State] = None
    ) -> np.ndarray:
        if take_action is None:
            raise MissingTransitionModelError(
                "Successor representation needs a transition function to score actions"
            )
        position = agent_pos if agent_pos is not None else state

        scores = np.zeros(len(ACTIONS))
        for i, action in enumerate(ACTIONS):
            successor = take_action(action, position, self.grid_size).next_state
            scores[i] = self.w[successor] + self.config.discount_factor * self.get_value(successor)
        return scores

    def learning_step(
        self,
        state: State,
        action: str,
        reward: float,
        next_state: State,
        done: bool
    ) -> LearningUpdate:
        reward_error = reward - self.w[next_state]
        new_weight = self.w[next_state] + self.config.sr_w_learning_rate * reward_error
        self.w[next_state] = new_weight

        x, y = self.m.ensure_state_initialized(state)
        nx, ny = self.m.ensure_state_initialized(next_state)

        target = np.zeros((self.grid_size, self.grid_size))
        target[nx, ny] = 1.0
        if not done:
            target += self.config.discount_factor * self.m.values[nx, ny]

        self.m.values[x, y] += self.config.sr_m_learning_rate * (target - self.m.values[x, y])

        if not np.all(np.isfinite(self.m.values[x, y])):
            return LearningUpdate(
                needs_stop=True,
                td_error=reward_error,
                error=f"{self.display_name} produced a non-finite value",
            )
        return self._update_result(reward_error, new_weight)

    def tables(self) -> AlgorithmTables:
        return AlgorithmTables(m=self.m, w=self.w)
