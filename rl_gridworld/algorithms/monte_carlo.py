"""
Monte Carlo Control

Every-visit Monte Carlo with a constant step size. Transitions are only
recorded during an episode; Q is updated from the discounted returns
when the episode ends.
"""

from typing import List, NamedTuple, Optional

import numpy as np

from .base import AlgorithmTables, AlgorithmType, LearningAlgorithm, LearningUpdate, TransitionFn
from .tables import ActionValueTable, State


class TrajectoryStep(NamedTuple):
    state: State
    action: str
    reward: float


class MonteCarlo(LearningAlgorithm):
    """
    Constant-alpha Monte Carlo control.

    At episode end, walking the trajectory backwards:
        G <- r_t + gamma * G
        Q(s_t, a_t) <- Q(s_t, a_t) + alpha * (G - Q(s_t, a_t))

    Attributes:
        q: Action-value table
        trajectory: (state, action, reward) steps of the episode in progress
    """

    algorithm_type = AlgorithmType.MONTE_CARLO
    display_name = 'Monte Carlo'
    description = 'Episodic control updating Q toward full discounted returns at episode end.'
    parameters = ['learning_rate', 'discount_factor', 'exploration_rate', 'softmax_beta']

    def initialize_tables(self, grid_size: int) -> None:
        self.grid_size = grid_size
        self.q = ActionValueTable(grid_size)
        self.trajectory: List[TrajectoryStep] = []

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
        state = self.q.ensure_state_initialized(state)
        self.trajectory.append(TrajectoryStep(state, action, float(reward)))
        return LearningUpdate()

    def apply_episode_updates(self) -> List[float]:
        """
        Consume the recorded episode and update Q from its returns.

        Returns:
            The return G_t of every step, in trajectory order
        """
        steps, self.trajectory = self.trajectory, []

        returns = [0.0] * len(steps)
        G = 0.0
        for t in range(len(steps) - 1, -1, -1):
            state, action, reward = steps[t]
            G = reward + self.config.discount_factor * G
            returns[t] = G

            old_q = self.q[state, action]
            self.q[state, action] = old_q + self.config.learning_rate * (G - old_q)

        return returns

    def discard_episode(self) -> None:
        self.trajectory = []

    def tables(self) -> AlgorithmTables:
        return AlgorithmTables(q=self.q)
