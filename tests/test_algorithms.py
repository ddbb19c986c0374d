"""
Unit Tests for the six tabular learners.

Each update rule is checked on a hand-computed transition.
"""

import unittest

import numpy as np

from rl_gridworld.algorithms import (
    ALGORITHM_REGISTRY,
    AlgorithmConfig,
    AlgorithmType,
    ActorCritic,
    ExpectedSARSA,
    LearningAlgorithm,
    MissingTransitionModelError,
    MonteCarlo,
    QLearning,
    SARSA,
    SuccessorRepresentation,
    UnknownAlgorithmError,
    create_algorithm,
    get_algorithm,
    list_algorithms,
)
from rl_gridworld.algorithms.tables import StateOutOfBoundsError
from rl_gridworld.environments import GridWorldEnvironment


def make_config(**overrides):
    config = AlgorithmConfig()
    config.update(overrides)
    return config


class TestRegistry(unittest.TestCase):
    """Factory keyed by algorithm tag."""

    def test_every_tag_is_registered(self):
        self.assertEqual(set(ALGORITHM_REGISTRY), set(AlgorithmType))
        self.assertEqual(len(list_algorithms()), 6)

    def test_create_by_tag(self):
        for algorithm_type in AlgorithmType:
            algorithm = create_algorithm(algorithm_type.value, 4)
            self.assertIsInstance(algorithm, LearningAlgorithm)
            self.assertEqual(algorithm.algorithm_type, algorithm_type)
            self.assertEqual(algorithm.grid_size, 4)

    def test_get_algorithm(self):
        self.assertIs(get_algorithm('sr'), SuccessorRepresentation)
        self.assertIs(get_algorithm(AlgorithmType.SARSA), SARSA)

    def test_unknown_tag(self):
        with self.assertRaises(UnknownAlgorithmError) as ctx:
            create_algorithm('td-lambda', 4)
        self.assertIn('q-learning', str(ctx.exception))
        self.assertIsInstance(ctx.exception, ValueError)

    def test_missing_abstract_method_cannot_instantiate(self):
        class Incomplete(LearningAlgorithm):
            def initialize_tables(self, grid_size):
                pass

            def action_scores(self, state, take_action=None, agent_pos=None):
                return np.zeros(4)

            def get_value(self, state):
                return 0.0

            def tables(self):
                return None

        with self.assertRaises(TypeError):
            Incomplete(3)

    def test_table_accessors(self):
        q_tables = QLearning(3).tables()
        self.assertIsNotNone(q_tables.q)
        self.assertIsNone(q_tables.v)
        self.assertIsNone(q_tables.m)

        ac_tables = ActorCritic(3).tables()
        self.assertIsNone(ac_tables.q)
        self.assertIsNotNone(ac_tables.v)
        self.assertIsNotNone(ac_tables.h)

        sr_tables = SuccessorRepresentation(3).tables()
        self.assertIsNotNone(sr_tables.m)
        self.assertIsNotNone(sr_tables.w)
        self.assertIsNone(sr_tables.h)


class TestQLearning(unittest.TestCase):

    def setUp(self):
        self.config = make_config(learning_rate=0.5, discount_factor=0.9)
        self.algorithm = QLearning(2, self.config, np.random.default_rng(0))

    def test_single_step_to_terminal_reward(self):
        update = self.algorithm.learning_step((0, 0), 'right', 10.0, (1, 0), True)
        self.assertAlmostEqual(self.algorithm.q[(0, 0), 'right'], 5.0)
        self.assertAlmostEqual(update.td_error, 10.0)
        self.assertFalse(update.needs_stop)

    def test_bootstraps_from_max_next(self):
        self.algorithm.q[(1, 0), 'up'] = 2.0
        self.algorithm.q[(1, 0), 'down'] = 4.0
        self.algorithm.learning_step((0, 0), 'right', 1.0, (1, 0), False)
        # 0.5 * (1 + 0.9 * 4)
        self.assertAlmostEqual(self.algorithm.q[(0, 0), 'right'], 2.3)

    def test_value_and_best_actions(self):
        self.algorithm.q[(0, 1), 'left'] = 3.0
        self.assertEqual(self.algorithm.get_value((0, 1)), 3.0)
        self.assertEqual(self.algorithm.get_best_actions((0, 1)), ['left'])
        self.assertEqual(self.algorithm.get_action_value((0, 1), 'left'), 3.0)

    def test_tie_break(self):
        for action, value in {'up': 5.0, 'down': 5.0, 'left': 3.0, 'right': 5.0}.items():
            self.algorithm.q[(1, 1), action] = value
        self.assertEqual(set(self.algorithm.get_best_actions((1, 1))), {'up', 'down', 'right'})

    def test_out_of_bounds_state(self):
        with self.assertRaises(StateOutOfBoundsError):
            self.algorithm.learning_step((0, 0), 'right', 1.0, (2, 0), False)

    def test_non_finite_value_requests_stop(self):
        update = self.algorithm.learning_step((0, 0), 'right', float('inf'), (1, 0), False)
        self.assertTrue(update.needs_stop)
        self.assertIsNotNone(update.error)

    def test_values_stay_finite(self):
        rng = np.random.default_rng(7)
        algorithm = QLearning(4, make_config(learning_rate=1.0, discount_factor=0.99), rng)
        for _ in range(5000):
            state = tuple(int(v) for v in rng.integers(0, 4, size=2))
            next_state = tuple(int(v) for v in rng.integers(0, 4, size=2))
            action = algorithm.choose_action(state)
            update = algorithm.learning_step(
                state, action, float(rng.uniform(-10, 10)), next_state, bool(rng.random() < 0.1)
            )
            self.assertFalse(update.needs_stop)
        self.assertTrue(algorithm.q.is_finite())


class TestSARSA(unittest.TestCase):

    def setUp(self):
        self.config = make_config(learning_rate=0.5, discount_factor=0.9)
        self.algorithm = SARSA(3, self.config, np.random.default_rng(1))

    def test_bootstraps_from_sampled_next_action(self):
        # Every next action has the same value, so the sample does not matter
        for action in ('up', 'down', 'left', 'right'):
            self.algorithm.q[(1, 0), action] = 2.0
        self.algorithm.learning_step((0, 0), 'right', 1.0, (1, 0), False)
        self.assertAlmostEqual(self.algorithm.q[(0, 0), 'right'], 1.4)

    def test_terminal_ignores_next(self):
        self.algorithm.q[(1, 0), 'up'] = 100.0
        self.algorithm.learning_step((0, 0), 'right', 10.0, (1, 0), True)
        self.assertAlmostEqual(self.algorithm.q[(0, 0), 'right'], 5.0)

    def test_greedy_policy_uses_best_next_action(self):
        self.config.update({'exploration_strategy': 'greedy'})
        self.algorithm.q[(1, 0), 'down'] = 4.0
        self.algorithm.q[(1, 0), 'up'] = -4.0
        self.algorithm.learning_step((0, 0), 'right', 0.0, (1, 0), False)
        self.assertAlmostEqual(self.algorithm.q[(0, 0), 'right'], 0.5 * 0.9 * 4.0)


class TestExpectedSARSA(unittest.TestCase):

    def setUp(self):
        self.config = make_config(learning_rate=0.5, discount_factor=0.9, exploration_rate=0.2)
        self.algorithm = ExpectedSARSA(3, self.config, np.random.default_rng(2))

    def test_expected_value_under_epsilon_greedy(self):
        self.algorithm.q[(1, 0), 'up'] = 4.0
        # 0.85 * 4 + 3 * 0.05 * 0
        self.assertAlmostEqual(self.algorithm.expected_value((1, 0)), 3.4)

    def test_update(self):
        self.algorithm.q[(1, 0), 'up'] = 4.0
        self.algorithm.learning_step((0, 0), 'right', 1.0, (1, 0), False)
        # 0.5 * (1 + 0.9 * 3.4)
        self.assertAlmostEqual(self.algorithm.q[(0, 0), 'right'], 2.03)

    def test_expectation_follows_live_config(self):
        self.algorithm.q[(1, 0), 'up'] = 4.0
        self.config.update({'exploration_strategy': 'random'})
        self.assertAlmostEqual(self.algorithm.expected_value((1, 0)), 1.0)


class TestMonteCarlo(unittest.TestCase):

    def setUp(self):
        self.config = make_config(learning_rate=0.5, discount_factor=0.5)
        self.algorithm = MonteCarlo(3, self.config, np.random.default_rng(3))

    def test_backward_returns(self):
        self.algorithm.learning_step((0, 0), 'right', 1.0, (1, 0), False)
        self.algorithm.learning_step((1, 0), 'right', 2.0, (2, 0), False)
        self.algorithm.learning_step((2, 0), 'down', 3.0, (2, 1), True)

        # Nothing is learned until the episode is flushed
        self.assertFalse(np.any(self.algorithm.q.values))

        returns = self.algorithm.apply_episode_updates()
        self.assertEqual(returns, [2.75, 3.5, 3.0])
        self.assertAlmostEqual(self.algorithm.q[(0, 0), 'right'], 0.5 * 2.75)
        self.assertAlmostEqual(self.algorithm.q[(1, 0), 'right'], 0.5 * 3.5)
        self.assertAlmostEqual(self.algorithm.q[(2, 0), 'down'], 0.5 * 3.0)
        self.assertEqual(self.algorithm.trajectory, [])

    def test_every_visit(self):
        self.algorithm.learning_step((0, 0), 'left', 0.0, (0, 0), False)
        self.algorithm.learning_step((0, 0), 'left', 4.0, (0, 0), True)
        self.algorithm.apply_episode_updates()
        # Second visit: G = 4 gives 2.0; first visit: G = 0 + 0.5 * 4 = 2 leaves it there
        self.assertAlmostEqual(self.algorithm.q[(0, 0), 'left'], 2.0)

    def test_empty_flush(self):
        self.assertEqual(self.algorithm.apply_episode_updates(), [])

    def test_resize_clears_trajectory(self):
        self.algorithm.learning_step((0, 0), 'right', 1.0, (1, 0), False)
        self.algorithm.initialize_tables(4)
        self.assertEqual(self.algorithm.trajectory, [])
        self.assertEqual(self.algorithm.q.values.shape, (4, 4, 4))


class TestActorCritic(unittest.TestCase):

    def setUp(self):
        self.config = make_config(
            discount_factor=0.9, actor_learning_rate=0.5, critic_learning_rate=0.5, softmax_beta=1.0
        )
        self.algorithm = ActorCritic(3, self.config, np.random.default_rng(4))

    def test_critic_and_actor_update(self):
        update = self.algorithm.learning_step((0, 0), 'right', 1.0, (1, 0), False)
        self.assertAlmostEqual(update.td_error, 1.0)
        self.assertAlmostEqual(self.algorithm.v[(0, 0)], 0.5)
        # Uniform policy before the update: 0.5 * 1 * (1 - 0.25) and 0.5 * 1 * (0 - 0.25)
        self.assertAlmostEqual(self.algorithm.h[(0, 0), 'right'], 0.375)
        for action in ('up', 'down', 'left'):
            self.assertAlmostEqual(self.algorithm.h[(0, 0), action], -0.125)
        self.assertAlmostEqual(float(np.sum(self.algorithm.h.row((0, 0)))), 0.0)

    def test_terminal_uses_zero_next_value(self):
        self.algorithm.v[(1, 0)] = 100.0
        update = self.algorithm.learning_step((0, 0), 'right', 1.0, (1, 0), True)
        self.assertAlmostEqual(update.td_error, 1.0)

    def test_value_is_critic(self):
        self.algorithm.v[(2, 2)] = -1.5
        self.assertEqual(self.algorithm.get_value((2, 2)), -1.5)

    def test_policy_is_softmax_of_preferences(self):
        self.algorithm.h[(0, 0), 'up'] = 1.0
        policy = self.algorithm.policy((0, 0))
        self.assertAlmostEqual(float(policy.sum()), 1.0)
        self.assertEqual(int(np.argmax(policy)), 0)


    def test_softmax_strategy_samples_from_the_gradient_policy(self):
        self.config.update({'exploration_strategy': 'softmax', 'softmax_beta': 2.0})
        self.algorithm.h[(0, 0), 'left'] = 0.8
        self.algorithm.h[(0, 0), 'down'] = -0.4
        probabilities = self.algorithm.get_action_probabilities((0, 0))
        policy = self.algorithm.policy((0, 0))
        for index, action in enumerate(('up', 'down', 'left', 'right')):
            self.assertAlmostEqual(probabilities[action], policy[index])

        # Epsilon-greedy picks from H but the gradient still uses softmax(H)
        self.config.update({'exploration_strategy': 'epsilon-greedy', 'exploration_rate': 0.0})
        self.assertAlmostEqual(self.algorithm.get_action_probabilities((0, 0))['left'], 1.0)
        self.assertLess(self.algorithm.policy((0, 0))[2], 1.0)


class TestSuccessorRepresentation(unittest.TestCase):

    def setUp(self):
        self.config = make_config(discount_factor=0.9, sr_m_learning_rate=0.5, sr_w_learning_rate=0.5)
        self.algorithm = SuccessorRepresentation(3, self.config, np.random.default_rng(5))
        self.environment = GridWorldEnvironment(grid_size=3)

    def test_update(self):
        self.algorithm.learning_step((0, 0), 'right', -0.1, (1, 0), False)
        self.assertAlmostEqual(self.algorithm.w[(1, 0)], -0.05)
        self.assertAlmostEqual(self.algorithm.m[(0, 0), (1, 0)], 0.5)
        self.assertAlmostEqual(self.algorithm.get_value((0, 0)), -0.025)

    def test_successor_row_bootstraps(self):
        self.algorithm.m[(1, 0), (2, 0)] = 1.0
        self.algorithm.learning_step((0, 0), 'right', 0.0, (1, 0), False)
        self.assertAlmostEqual(self.algorithm.m[(0, 0), (2, 0)], 0.5 * 0.9)

    def test_terminal_drops_bootstrap(self):
        self.algorithm.m[(1, 0), (2, 0)] = 1.0
        self.algorithm.learning_step((0, 0), 'right', 10.0, (1, 0), True)
        self.assertAlmostEqual(self.algorithm.m[(0, 0), (2, 0)], 0.0)
        self.assertAlmostEqual(self.algorithm.m[(0, 0), (1, 0)], 0.5)

    def test_action_scores_need_transition_model(self):
        with self.assertRaises(MissingTransitionModelError):
            self.algorithm.get_best_actions((0, 0))
        with self.assertRaises(MissingTransitionModelError):
            self.algorithm.choose_action((0, 0))

    def test_action_scores_use_successor(self):
        self.algorithm.w[(1, 0)] = 2.0
        best = self.algorithm.get_best_actions((0, 0), self.environment.take_action, (0, 0))
        self.assertEqual(best, ['right'])
        self.assertAlmostEqual(
            self.algorithm.get_action_value((0, 0), 'right', self.environment.take_action),
            2.0,
        )


if __name__ == '__main__':
    unittest.main()
