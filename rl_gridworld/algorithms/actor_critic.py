"""
Actor-Critic Algorithm

One-step tabular actor-critic. The critic learns V with TD(0); the actor
keeps action preferences H that follow the softmax policy gradient
scaled by the critic's TD error.
"""

from typing import Optional

import numpy as np

from .base import AlgorithmTables, AlgorithmType, LearningAlgorithm, LearningUpdate, TransitionFn
from .exploration import ACTIONS, ACTION_INDEX, softmax
from .tables import ActionValueTable, State, StateValueTable


class ActorCritic(LearningAlgorithm):
    """
    Tabular one-step actor-critic.

    Critic:
        delta = R + gamma * V(s') - V(s)      (V(s') = 0 when s' is terminal)
        V(s) <- V(s) + alpha_c * delta
    Actor, with pi = softmax(H(s, .)) evaluated before the update:
        H(s, a)   <- H(s, a)   + alpha_a * delta * (1 - pi(a|s))
        H(s, a'') <- H(s, a'') - alpha_a * delta * pi(a''|s)   for a'' != a

    Action selection applies the configured exploration strategy to H, while
    the actor gradient always uses pi = softmax(H). Only the softmax strategy
    samples actions from that pi; under any other strategy the actor is
    updated off-policy.

    Attributes:
        v: Critic state values
        h: Actor action preferences
    """

    algorithm_type = AlgorithmType.ACTOR_CRITIC
    display_name = 'Actor-Critic'
    description = 'Softmax policy-gradient actor driven by a TD(0) critic.'
    parameters = [
        'discount_factor', 'exploration_rate', 'softmax_beta',
        'actor_learning_rate', 'critic_learning_rate',
    ]

    def initialize_tables(self, grid_size: int) -> None:
        self.grid_size = grid_size
        self.v = StateValueTable(grid_size)
        self.h = ActionValueTable(grid_size)

    def action_scores(
        self,
        state: State,
        take_action: Optional[TransitionFn] = None,
        agent_pos: Optional[State] = None
    ) -> np.ndarray:
        return self.h.row(state)

    def get_value(self, state: State) -> float:
        return self.v[state]

    def policy(self, state: State) -> np.ndarray:
        """Softmax policy over preferences, in ACTIONS order."""
        probabilities = softmax(self.h.row(state), self.config.softmax_beta)
        return np.array([probabilities[a] for a in ACTIONS])

    def learning_step(
        self,
        state: State,
        action: str,
        reward: float,
        next_state: State,
        done: bool
    ) -> LearningUpdate:
        next_value = 0.0 if done else self.v[next_state]
        td_error = reward + self.config.discount_factor * next_value - self.v[state]

        new_value = self.v[state] + self.config.critic_learning_rate * td_error
        self.v[state] = new_value

        pi = self.policy(state)
        chosen = np.zeros(len(ACTIONS))
        chosen[ACTION_INDEX[action]] = 1.0

        x, y = self.h.ensure_state_initialized(state)
        self.h.values[x, y] += self.config.actor_learning_rate * td_error * (chosen - pi)

        return self._update_result(td_error, new_value, *self.h.values[x, y])

    def tables(self) -> AlgorithmTables:
        return AlgorithmTables(v=self.v, h=self.h)
