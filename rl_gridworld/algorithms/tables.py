"""
Value Tables

Dense numpy storage for the tabular learners, sized to the grid and
zero-filled at construction. A resize always builds new tables; old values
are never carried over.

States are ``(x, y)`` tuples of non-negative ints.
"""

from typing import Any, Dict, Tuple

import numpy as np

from .exploration import ACTIONS, ACTION_INDEX


State = Tuple[int, int]


class StateOutOfBoundsError(IndexError):
    """Raised when a state lies outside the grid a table was built for."""


def state_key(state: State) -> str:
    """Encode a state as the ``"x,y"`` key used by renderers and the API."""
    return f"{state[0]},{state[1]}"


def parse_state_key(key: str) -> State:
    x, y = key.split(',')
    return int(x), int(y)


class GridTable:
    """
    Base for tables indexed by grid cells.

    Subclasses set ``self.values`` to an array whose first two axes are
    ``(grid_size, grid_size)``.
    """

    def __init__(self, grid_size: int):
        if grid_size < 1:
            raise ValueError(f"grid_size must be positive, got {grid_size}")
        self.grid_size = grid_size
        self.values = self._allocate(grid_size)

    def _allocate(self, grid_size: int) -> np.ndarray:
        raise NotImplementedError

    def ensure_state_initialized(self, state: State) -> State:
        """
        Validate that ``state`` has a row in this table.

        Rows are zero-filled eagerly, so repeated calls never change the
        table contents.
        """
        x, y = int(state[0]), int(state[1])
        if not (0 <= x < self.grid_size and 0 <= y < self.grid_size):
            raise StateOutOfBoundsError(
                f"State {state} outside {self.grid_size}x{self.grid_size} grid"
            )
        return x, y

    def reset(self) -> None:
        self.values = self._allocate(self.grid_size)

    def states(self):
        for x in range(self.grid_size):
            for y in range(self.grid_size):
                yield x, y

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.values)))


class StateValueTable(GridTable):
    """One value per state (V for Actor-Critic, W for SR)."""

    def _allocate(self, grid_size: int) -> np.ndarray:
        return np.zeros((grid_size, grid_size), dtype=np.float64)

    def __getitem__(self, state: State) -> float:
        x, y = self.ensure_state_initialized(state)
        return float(self.values[x, y])

    def __setitem__(self, state: State, value: float) -> None:
        x, y = self.ensure_state_initialized(state)
        self.values[x, y] = value

    def to_dict(self) -> Dict[str, float]:
        return {state_key(s): float(self.values[s]) for s in self.states()}


class ActionValueTable(GridTable):
    """One value per (state, action) pair (Q, or H preferences)."""

    def _allocate(self, grid_size: int) -> np.ndarray:
        return np.zeros((grid_size, grid_size, len(ACTIONS)), dtype=np.float64)

    def __getitem__(self, key: Tuple[State, str]) -> float:
        state, action = key
        x, y = self.ensure_state_initialized(state)
        return float(self.values[x, y, ACTION_INDEX[action]])

    def __setitem__(self, key: Tuple[State, str], value: float) -> None:
        state, action = key
        x, y = self.ensure_state_initialized(state)
        self.values[x, y, ACTION_INDEX[action]] = value

    def row(self, state: State) -> np.ndarray:
        """Copy of the per-action values for ``state`` in ACTIONS order."""
        x, y = self.ensure_state_initialized(state)
        return self.values[x, y].copy()

    def max_value(self, state: State) -> float:
        return float(np.max(self.row(state)))

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            state_key(s): {a: float(self.values[s][i]) for i, a in enumerate(ACTIONS)}
            for s in self.states()
        }


class SuccessorTable(GridTable):
    """
    Successor representation matrix M[s, s''].

    Stored as ``(n, n, n, n)`` so rows can be addressed by coordinates; this
    is ``grid_size**2 x grid_size**2`` entries and dominates memory.
    """

    def _allocate(self, grid_size: int) -> np.ndarray:
        return np.zeros((grid_size, grid_size, grid_size, grid_size), dtype=np.float64)

    def __getitem__(self, key: Tuple[State, State]) -> float:
        state, successor = key
        x, y = self.ensure_state_initialized(state)
        sx, sy = self.ensure_state_initialized(successor)
        return float(self.values[x, y, sx, sy])

    def __setitem__(self, key: Tuple[State, State], value: float) -> None:
        state, successor = key
        x, y = self.ensure_state_initialized(state)
        sx, sy = self.ensure_state_initialized(successor)
        self.values[x, y, sx, sy] = value

    def row(self, state: State) -> np.ndarray:
        """View of the successor occupancies of ``state`` as a grid."""
        x, y = self.ensure_state_initialized(state)
        return self.values[x, y]

    def row_dict(self, state: State) -> Dict[str, float]:
        row = self.row(state)
        return {state_key(s): float(row[s]) for s in self.states()}

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {state_key(s): self.row_dict(s) for s in self.states()}


def table_to_dict(table: Any) -> Dict[str, Any]:
    """Serialize an optional table; a missing table reads as empty."""
    return table.to_dict() if table is not None else {}
