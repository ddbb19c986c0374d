"""
Unit Tests for the exploration helpers.
"""

import unittest

import numpy as np

from rl_gridworld.algorithms import exploration
from rl_gridworld.algorithms.exploration import ACTIONS


class TestSoftmax(unittest.TestCase):
    """Softmax distribution over action scores."""

    def test_sums_to_one(self):
        rng = np.random.default_rng(0)
        for _ in range(50):
            values = rng.normal(scale=20.0, size=len(ACTIONS))
            beta = float(rng.uniform(0.0, 10.0))
            probabilities = exploration.softmax(values, beta)
            self.assertAlmostEqual(sum(probabilities.values()), 1.0, delta=1e-9)
            for p in probabilities.values():
                self.assertGreaterEqual(p, 0.0)
                self.assertLessEqual(p, 1.0)

    def test_large_values_do_not_overflow(self):
        probabilities = exploration.softmax([1000.0, 999.0, -1000.0, 0.0], beta=5.0)
        self.assertAlmostEqual(sum(probabilities.values()), 1.0, delta=1e-9)
        self.assertGreater(probabilities['up'], probabilities['down'])

    def test_degenerate_input_is_uniform(self):
        probabilities = exploration.softmax([np.nan, 1.0, 2.0, 3.0])
        for p in probabilities.values():
            self.assertAlmostEqual(p, 0.25)

    def test_zero_beta_is_uniform(self):
        probabilities = exploration.softmax([1.0, 2.0, 3.0, 4.0], beta=0.0)
        for p in probabilities.values():
            self.assertAlmostEqual(p, 0.25)


class TestBestActions(unittest.TestCase):
    """Tie-aware argmax."""

    def test_ties_are_all_returned(self):
        # up: 5, down: 5, left: 3, right: 5
        self.assertEqual(
            set(exploration.best_actions([5.0, 5.0, 3.0, 5.0])),
            {'up', 'down', 'right'},
        )

    def test_single_best(self):
        self.assertEqual(exploration.best_actions([0.0, 0.0, 1.0, 0.0]), ['left'])

    def test_empty_scores_give_every_action(self):
        self.assertEqual(exploration.best_actions([]), list(ACTIONS))


class TestActionDistribution(unittest.TestCase):
    """Probabilities under each strategy."""

    def test_epsilon_greedy(self):
        distribution = exploration.action_distribution('epsilon-greedy', [1.0, 0.0, 0.0, 0.0], 0.2)
        self.assertAlmostEqual(distribution['up'], 0.8 + 0.05)
        self.assertAlmostEqual(distribution['down'], 0.05)
        self.assertAlmostEqual(sum(distribution.values()), 1.0)

    def test_epsilon_greedy_splits_ties(self):
        distribution = exploration.action_distribution('epsilon-greedy', [1.0, 1.0, 0.0, 0.0], 0.0)
        self.assertAlmostEqual(distribution['up'], 0.5)
        self.assertAlmostEqual(distribution['down'], 0.5)
        self.assertAlmostEqual(distribution['left'], 0.0)

    def test_random_is_uniform(self):
        distribution = exploration.action_distribution('random', [9.0, 0.0, 0.0, 0.0], 0.0)
        self.assertEqual(set(distribution.values()), {0.25})

    def test_greedy(self):
        distribution = exploration.action_distribution('greedy', [0.0, 2.0, 0.0, 0.0], 0.5)
        self.assertEqual(distribution, {'up': 0.0, 'down': 1.0, 'left': 0.0, 'right': 0.0})

    def test_unknown_strategy_falls_back_to_greedy(self):
        with self.assertLogs('rl_gridworld.algorithms.exploration', level='WARNING'):
            distribution = exploration.action_distribution('boltzmann-ish', [0.0, 0.0, 0.0, 3.0], 0.5)
        self.assertEqual(distribution['right'], 1.0)


class TestChooseAction(unittest.TestCase):
    """Sampling actions with a seeded generator."""

    def setUp(self):
        self.rng = np.random.default_rng(42)

    def test_greedy_picks_best(self):
        for _ in range(20):
            action = exploration.choose_action('greedy', [0.0, 0.0, 0.0, 1.0], 0.0, self.rng)
            self.assertEqual(action, 'right')

    def test_greedy_breaks_ties_among_best_only(self):
        seen = {
            exploration.choose_action('greedy', [1.0, 0.0, 1.0, 0.0], 0.0, self.rng)
            for _ in range(100)
        }
        self.assertEqual(seen, {'up', 'left'})

    def test_epsilon_one_explores_everything(self):
        seen = {
            exploration.choose_action('epsilon-greedy', [1.0, 0.0, 0.0, 0.0], 1.0, self.rng)
            for _ in range(200)
        }
        self.assertEqual(seen, set(ACTIONS))

    def test_softmax_follows_preferences(self):
        counts = {a: 0 for a in ACTIONS}
        for _ in range(500):
            counts[exploration.choose_action('softmax', [5.0, 0.0, 0.0, 0.0], 0.0, self.rng, beta=2.0)] += 1
        self.assertGreater(counts['up'], 450)

    def test_sample_action_walks_cumulative_mass(self):
        distribution = {'up': 0.25, 'down': 0.25, 'left': 0.25, 'right': 0.25}
        self.assertEqual(exploration.sample_action(distribution, 0.0), 'up')
        self.assertEqual(exploration.sample_action(distribution, 0.3), 'down')
        self.assertEqual(exploration.sample_action(distribution, 0.99), 'right')
        # Rounding slack falls through to the last action
        self.assertEqual(exploration.sample_action(distribution, 1.0), 'right')


if __name__ == '__main__':
    unittest.main()
