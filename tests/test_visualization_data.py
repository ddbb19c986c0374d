"""
Unit Tests for VisualizationFormatter.
"""

import unittest

from rl_gridworld import EpisodeDriver, EpisodeSettings
from rl_gridworld.algorithm_manager import AlgorithmManager
from rl_gridworld.environments import GridWorldEnvironment
from rl_gridworld.episode_driver import StepReport
from rl_gridworld.utils import VisualizationFormatter


class TestValueRange(unittest.TestCase):

    def test_all_zero_range_is_widened(self):
        self.assertEqual(VisualizationFormatter.value_range([0.0, 0.0]), (-0.1, 0.1))
        self.assertEqual(VisualizationFormatter.value_range([]), (-0.1, 0.1))

    def test_flat_positive_and_negative(self):
        self.assertEqual(VisualizationFormatter.value_range([2.0, 2.0]), (0.0, 2.0))
        self.assertEqual(VisualizationFormatter.value_range([-3.0, -3.0]), (-3.0, 0.0))

    def test_regular_range(self):
        self.assertEqual(VisualizationFormatter.value_range([-1.0, 0.5, 4.0]), (-1.0, 4.0))

    def test_intensity(self):
        self.assertEqual(VisualizationFormatter.value_intensity(2.0, -1.0, 4.0), 0.5)
        self.assertEqual(VisualizationFormatter.value_intensity(-0.5, -1.0, 4.0), -0.5)
        self.assertEqual(VisualizationFormatter.value_intensity(0.0, -1.0, 4.0), 0.0)
        self.assertEqual(VisualizationFormatter.value_intensity(1.0, 1.0, 1.0), 0.0)


class TestGridFormatting(unittest.TestCase):

    def setUp(self):
        self.environment = GridWorldEnvironment(grid_size=3)
        self.manager = AlgorithmManager('q-learning', grid_size=3, seed=0)

    def test_value_grid(self):
        self.manager.q_table[(2, 0), 'down'] = 4.0
        data = VisualizationFormatter.format_value_grid(self.manager, self.environment)
        self.assertEqual(data['values']["2,0"], 4.0)
        # Rows are indexed by y
        self.assertEqual(data['grid'][0][2], 4.0)
        self.assertEqual(data['max_value'], 4.0)
        self.assertEqual(data['intensity'][0][2], 1.0)

    def test_policy_arrows(self):
        self.manager.q_table[(0, 0), 'right'] = 1.0
        data = VisualizationFormatter.format_policy(self.manager, self.environment)
        entry = data['policy']["0,0"]
        self.assertEqual(entry['action'], 'right')
        self.assertEqual(entry['arrow'], '→')
        # epsilon-greedy with the default 0.2
        self.assertAlmostEqual(entry['probability'], 0.85)
        self.assertEqual(len(data['policy']), 9)

    def test_untrained_policy_points_at_first_tie(self):
        data = VisualizationFormatter.format_policy(self.manager, self.environment)
        self.assertEqual(data['policy']["1,2"]['action'], 'up')
        self.assertEqual(len(data['policy']["1,2"]['best_actions']), 4)

    def test_sr_views(self):
        manager = AlgorithmManager('sr', grid_size=3, seed=0)
        manager.m_table[(0, 0), (1, 0)] = 0.7
        manager.w_table[(2, 1)] = -2.0
        row = VisualizationFormatter.format_sr_row(manager, self.environment, (0, 0))
        self.assertEqual(row['grid'][0][1], 0.7)
        self.assertEqual(row['max_value'], 0.7)
        w = VisualizationFormatter.format_w_grid(manager, self.environment)
        self.assertEqual(w['grid'][1][2], -2.0)
        self.assertEqual(w['min_value'], -2.0)

        policy = VisualizationFormatter.format_policy(manager, self.environment)
        self.assertEqual(len(policy['policy']), 9)

    def test_sr_views_for_other_learners_are_empty(self):
        self.assertEqual(
            VisualizationFormatter.format_sr_row(self.manager, self.environment, (0, 0))['grid'], []
        )
        self.assertEqual(VisualizationFormatter.format_w_grid(self.manager, self.environment)['grid'], [])

    def test_action_values_at_agent(self):
        self.manager.q_table[(0, 0), 'down'] = -1.0
        values = VisualizationFormatter.format_action_values(self.manager, self.environment)
        self.assertEqual(values, {'up': 0.0, 'down': -1.0, 'left': 0.0, 'right': 0.0})


class TestEpisodeFormatting(unittest.TestCase):

    def test_episode_data(self):
        data = VisualizationFormatter.format_episode_data([1.0, 3.0, 5.0], [4, 3, 2], window_size=2)
        self.assertEqual(data['episodes'], [1, 2, 3])
        self.assertEqual(data['avg_rewards'], [1.0, 2.0, 4.0])
        self.assertEqual(data['total_episodes'], 3)

    def test_empty_episode_data(self):
        self.assertEqual(VisualizationFormatter.format_episode_data([], [])['episodes'], [])

    def test_downsampling(self):
        rewards = [float(i) for i in range(2500)]
        data = VisualizationFormatter.format_episode_data(rewards, [1] * 2500)
        self.assertEqual(len(data['rewards']), 1000)
        self.assertEqual(data['total_episodes'], 2500)

    def test_reward_classification(self):
        self.assertEqual(VisualizationFormatter.classify_reward(10.0), 'terminal')
        self.assertEqual(VisualizationFormatter.classify_reward(-1.0), 'terminal')
        self.assertEqual(VisualizationFormatter.classify_reward(-0.1), 'step')

    def test_format_step(self):
        report = StepReport(state=(0, 0), action='right', reward=-0.1, next_state=(1, 0))
        data = VisualizationFormatter.format_step(report)
        self.assertEqual(data['state'], "0,0")
        self.assertEqual(data['next_state'], "1,0")
        self.assertEqual(data['reward_kind'], 'step')

    def test_format_driver_step(self):
        driver = EpisodeDriver(GridWorldEnvironment(grid_size=3), settings=EpisodeSettings())
        data = VisualizationFormatter.format_step(driver.learning_loop_step())
        self.assertEqual(data['state'], "0,0")


if __name__ == '__main__':
    unittest.main()
