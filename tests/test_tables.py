"""
Unit Tests for the dense value tables.
"""

import unittest

import numpy as np

from rl_gridworld.algorithms.tables import (
    ActionValueTable,
    StateOutOfBoundsError,
    StateValueTable,
    SuccessorTable,
    parse_state_key,
    state_key,
    table_to_dict,
)


class TestStateKeys(unittest.TestCase):

    def test_round_trip(self):
        self.assertEqual(state_key((3, 4)), "3,4")
        self.assertEqual(parse_state_key("3,4"), (3, 4))

    def test_bad_key(self):
        with self.assertRaises(ValueError):
            parse_state_key("3;4")


class TestTables(unittest.TestCase):
    """Shape, zero-fill and bounds checks."""

    def test_zero_filled(self):
        q = ActionValueTable(4)
        self.assertEqual(q.values.shape, (4, 4, 4))
        self.assertFalse(np.any(q.values))
        self.assertEqual(SuccessorTable(3).values.shape, (3, 3, 3, 3))
        self.assertEqual(StateValueTable(3).values.shape, (3, 3))

    def test_ensure_state_initialized_is_idempotent(self):
        q = ActionValueTable(3)
        q[(1, 2), 'left'] = 1.5
        before = q.values.copy()
        q.ensure_state_initialized((1, 2))
        once = q.values.copy()
        q.ensure_state_initialized((1, 2))
        np.testing.assert_array_equal(before, once)
        np.testing.assert_array_equal(once, q.values)

    def test_out_of_bounds(self):
        v = StateValueTable(3)
        with self.assertRaises(StateOutOfBoundsError):
            v[(3, 0)]
        with self.assertRaises(IndexError):
            v[(-1, 0)] = 1.0

    def test_action_value_access(self):
        q = ActionValueTable(2)
        q[(0, 1), 'right'] = 2.0
        self.assertEqual(q[(0, 1), 'right'], 2.0)
        self.assertEqual(q.max_value((0, 1)), 2.0)
        row = q.row((0, 1))
        row[:] = 99.0
        self.assertEqual(q[(0, 1), 'up'], 0.0)

    def test_successor_row_is_a_view(self):
        m = SuccessorTable(2)
        m.row((0, 0))[1, 1] = 0.5
        self.assertEqual(m[(0, 0), (1, 1)], 0.5)
        self.assertEqual(m.row_dict((0, 0))["1,1"], 0.5)

    def test_reset(self):
        v = StateValueTable(2)
        v[(1, 1)] = 3.0
        v.reset()
        self.assertEqual(v[(1, 1)], 0.0)

    def test_to_dict(self):
        q = ActionValueTable(2)
        q[(1, 0), 'down'] = -1.0
        data = q.to_dict()
        self.assertEqual(len(data), 4)
        self.assertEqual(data["1,0"]['down'], -1.0)
        self.assertEqual(table_to_dict(None), {})

    def test_is_finite(self):
        v = StateValueTable(2)
        self.assertTrue(v.is_finite())
        v[(0, 0)] = float('inf')
        self.assertFalse(v.is_finite())


if __name__ == '__main__':
    unittest.main()
