"""
Visualization Data Formatter

Formats learner state for frontend visualization.
Handles value heatmaps, policy arrows, successor rows, and episode data.
"""

from typing import Any, Dict, List, Optional, Tuple
import numpy as np
from dataclasses import asdict

from ..algorithms.exploration import ACTIONS
from ..algorithms.tables import state_key


ARROWS = {
    'up': '↑',
    'down': '↓',
    'left': '←',
    'right': '→',
}
NO_POLICY_MARK = '●'

# Rewards at or above this magnitude are drawn as "terminal" feedback
TERMINAL_REWARD_MAGNITUDE = 1.0

_EPSILON = 1e-6


def _grid_size(environment) -> int:
    return environment.grid_size


class VisualizationFormatter:
    """
    Formats learner data for frontend visualization.

    Provides methods to convert tables into JSON-serializable structures
    suitable for web rendering. Grids are lists of rows indexed ``[y][x]``.
    """

    @staticmethod
    def value_range(values: List[float]) -> Tuple[float, float]:
        """
        Colour scale bounds for a set of values.

        A flat range is widened so that colours stay meaningful: all zeros
        map to [-0.1, 0.1], a flat positive range to [0, v] and a flat
        negative range to [v, 0].
        """
        if not values:
            return -0.1, 0.1
        min_v = float(min(values))
        max_v = float(max(values))

        if abs(max_v - min_v) < _EPSILON:
            if abs(max_v) < _EPSILON:
                min_v, max_v = -0.1, 0.1
            elif max_v > 0:
                min_v = 0.0
            else:
                max_v = 0.0
        return min_v, max_v

    @staticmethod
    def value_intensity(value: float, min_v: float, max_v: float) -> float:
        """
        Signed colour intensity in [-1, 1].

        Positive values scale against ``max_v``, negative values against
        ``min_v``; near-zero values and flat ranges give 0.
        """
        if abs(max_v - min_v) < _EPSILON or abs(value) < _EPSILON:
            return 0.0
        if value > 0:
            if max_v <= _EPSILON:
                return 0.0
            return min(1.0, max(0.0, value / max_v))
        if min_v >= -_EPSILON:
            return 0.0
        return -min(1.0, max(0.0, value / min_v))

    @staticmethod
    def format_value_grid(manager, environment) -> Dict[str, Any]:
        """
        Format the active learner's state values.

        Args:
            manager: AlgorithmManager holding the active learner
            environment: Grid environment (for its size)

        Returns:
            Values keyed by "x,y", the same values as a row grid, and the
            colour scale bounds
        """
        size = _grid_size(environment)
        grid = [[float(manager.get_value((x, y))) for x in range(size)] for y in range(size)]
        flat = [v for row in grid for v in row]
        min_v, max_v = VisualizationFormatter.value_range(flat)

        return {
            'values': {state_key((x, y)): grid[y][x] for y in range(size) for x in range(size)},
            'grid': grid,
            'intensity': [
                [VisualizationFormatter.value_intensity(v, min_v, max_v) for v in row]
                for row in grid
            ],
            'min_value': min_v,
            'max_value': max_v,
        }

    @staticmethod
    def format_policy(manager, environment) -> Dict[str, Any]:
        """
        Format the arrow drawn in each cell.

        The arrow points along the first best action; its shade is the
        probability the current strategy gives that action. Cells with no
        usable policy get a neutral dot at probability 0.5.

        Args:
            manager: AlgorithmManager holding the active learner
            environment: Grid environment whose ``take_action`` model-based
                learners need

        Returns:
            Per-cell arrow data keyed by "x,y"
        """
        size = _grid_size(environment)
        policy = {}
        for y in range(size):
            for x in range(size):
                state = (x, y)
                best = manager.get_best_actions(state, environment.take_action, state)
                probabilities = manager.get_action_probabilities(state, environment.take_action, state)

                if not best or not any(probabilities.get(a, 0.0) > 0 for a in ACTIONS):
                    entry = {'action': None, 'arrow': NO_POLICY_MARK, 'probability': 0.5}
                else:
                    action = best[0]
                    entry = {
                        'action': action,
                        'arrow': ARROWS[action],
                        'probability': probabilities.get(action) or 1.0 / len(ACTIONS),
                    }
                entry['best_actions'] = list(best)
                entry['probabilities'] = {a: float(p) for a, p in probabilities.items()}
                policy[state_key(state)] = entry

        return {
            'policy': policy,
            'action_names': list(ACTIONS),
            'n_states': size * size,
        }

    @staticmethod
    def format_sr_row(manager, environment, state: Tuple[int, int]) -> Dict[str, Any]:
        """
        Format the successor row M[state] as a grid.

        Returns an empty result when the active learner keeps no M table.
        """
        m_table = manager.m_table
        if m_table is None:
            return {'state': state_key(state), 'grid': [], 'max_value': 0.0, 'min_value': 0.0}

        x, y = m_table.ensure_state_initialized(state)
        row = m_table.row((x, y))
        # row is indexed [x', y']; transpose to draw rows by y'
        grid = row.T.tolist()
        return {
            'state': state_key((x, y)),
            'grid': grid,
            'max_value': float(max(0.0, row.max())),
            'min_value': float(min(0.0, row.min())),
        }

    @staticmethod
    def format_w_grid(manager, environment) -> Dict[str, Any]:
        """Format the SR reward weights W as a grid with a colour scale."""
        w_table = manager.w_table
        if w_table is None:
            return {'grid': [], 'min_value': 0.0, 'max_value': 0.0}

        grid = w_table.values.T.tolist()
        min_v, max_v = VisualizationFormatter.value_range([v for row in grid for v in row])
        return {'grid': grid, 'min_value': min_v, 'max_value': max_v}

    @staticmethod
    def format_action_values(manager, environment, state: Optional[Tuple[int, int]] = None) -> Dict[str, float]:
        """Per-action scores at ``state`` (the agent's cell by default)."""
        if state is None:
            state = environment.agent_pos
        return {
            action: float(manager.get_action_value(state, action, environment.take_action, state))
            for action in ACTIONS
        }

    @staticmethod
    def format_episode_data(
        rewards: List[float],
        lengths: List[int],
        window_size: int = 20
    ) -> Dict[str, Any]:
        """
        Format episode-based training data.

        Args:
            rewards: Episode returns
            lengths: Episode lengths
            window_size: Window for moving average

        Returns:
            Formatted episode data
        """
        if not rewards:
            return {
                'episodes': [],
                'rewards': [],
                'lengths': [],
                'avg_rewards': [],
                'total_episodes': 0
            }

        n_episodes = len(rewards)
        episodes = list(range(1, n_episodes + 1))

        # Calculate moving average
        avg_rewards = []
        for i in range(n_episodes):
            start = max(0, i - window_size + 1)
            avg_rewards.append(float(np.mean(rewards[start:i+1])))

        # Downsample if too many points
        max_points = 1000
        rewards = list(rewards)
        lengths = list(lengths)
        if n_episodes > max_points:
            indices = np.linspace(0, n_episodes - 1, max_points, dtype=int)
            episodes = [episodes[i] for i in indices]
            rewards = [rewards[i] for i in indices]
            lengths = [lengths[i] for i in indices]
            avg_rewards = [avg_rewards[i] for i in indices]

        return {
            'episodes': episodes,
            'rewards': rewards,
            'lengths': lengths,
            'avg_rewards': avg_rewards,
            'total_episodes': n_episodes
        }

    @staticmethod
    def classify_reward(reward: float) -> str:
        """'terminal' for large rewards, 'step' for the rest."""
        return 'terminal' if abs(reward) >= TERMINAL_REWARD_MAGNITUDE else 'step'

    @staticmethod
    def format_step(report) -> Dict[str, Any]:
        """
        Format a single driver tick for visualization.

        Args:
            report: StepReport from the episode driver

        Returns:
            Formatted step data with "x,y" state keys
        """
        data = asdict(report)
        for key in ('state', 'next_state'):
            if data[key] is not None:
                data[key] = state_key(data[key])
        data['reward_kind'] = VisualizationFormatter.classify_reward(report.reward)
        return data
