"""
Grid World Environment

Goal: Walk from the start cell to the gem without stepping into the fire.

MDP Modeling:
- States: (x, y) cell of the agent
- Actions: {up, down, left, right}
- Rewards: gem_reward on entering the gem, bad_reward on entering the fire,
  step_penalty otherwise
- Walls block movement; the agent stays in place
"""

import logging
from enum import IntEnum
from typing import Any, Dict, List, Optional

import numpy as np

from .base_env import BaseEnvironment, Position, RenderData, Transition


logger = logging.getLogger(__name__)

MIN_GRID_SIZE = 2
MAX_GRID_SIZE = 20


class Cell(IntEnum):
    EMPTY = 0
    GEM = 1
    BAD = -1
    WALL = 2


# Click-to-edit cycle
NEXT_CELL = {
    Cell.EMPTY: Cell.GEM,
    Cell.GEM: Cell.BAD,
    Cell.BAD: Cell.WALL,
    Cell.WALL: Cell.EMPTY,
}

ACTION_DELTAS = {
    'up': (0, -1),
    'down': (0, 1),
    'left': (-1, 0),
    'right': (1, 0),
}


class GridWorldEnvironment(BaseEnvironment):
    """
    Square grid with a gem (reward), a fire cell (penalty) and walls.

    Grid Legend:
    - EMPTY: Walkable, step penalty
    - GEM: Reward cell, ends the episode when terminate_on_gem is set
    - BAD: Penalty cell, always ends the episode
    - WALL: Not enterable

    ``cells`` is indexed ``[y, x]`` (row-major, as drawn).
    """

    def __init__(
        self,
        grid_size: int = 5,
        step_penalty: float = -0.1,
        gem_reward: float = 10.0,
        bad_reward: float = -10.0,
        terminate_on_gem: bool = True,
        **kwargs
    ):
        super().__init__("grid_world", grid_size)
        self.action_names = list(ACTION_DELTAS)
        self.step_penalty = float(step_penalty)
        self.gem_reward = float(gem_reward)
        self.bad_reward = float(bad_reward)
        self.terminate_on_gem = bool(terminate_on_gem)
        self.resize(grid_size)

    def resize(self, grid_size: int) -> None:
        """Switch to a new grid size with the default layout and start cell."""
        if not MIN_GRID_SIZE <= grid_size <= MAX_GRID_SIZE:
            raise ValueError(
                f"grid_size must be in [{MIN_GRID_SIZE}, {MAX_GRID_SIZE}], got {grid_size}"
            )
        self.grid_size = int(grid_size)
        self.reset_layout()

    def reset_layout(self) -> None:
        """Restore the default layout and put the start cell back at (0, 0)."""
        self.cells = self._default_layout(self.grid_size)
        self.start_pos = (0, 0)
        self.reset_agent()

    @staticmethod
    def _default_layout(size: int) -> np.ndarray:
        cells = np.full((size, size), int(Cell.EMPTY), dtype=int)
        gem_x = gem_y = size - 1
        bad_x = bad_y = size // 2

        if (gem_x, gem_y) == (bad_x, bad_y) and size > 1:
            cells[bad_y - 1, bad_x] = Cell.BAD
        elif size > 2:
            cells[bad_y, bad_x] = Cell.BAD
        cells[gem_y, gem_x] = Cell.GEM

        if size > 3:
            cells[1, 2] = Cell.WALL
            cells[3, 2] = Cell.WALL
        return cells

    def cell(self, x: int, y: int) -> Cell:
        return Cell(int(self.cells[y, x]))

    def take_action(self, action: str, position: Position, grid_size: Optional[int] = None) -> Transition:
        """Deterministic transition; the agent's own position is not changed."""
        if action not in ACTION_DELTAS:
            raise ValueError(f"Unknown action: {action}")
        size = grid_size if grid_size is not None else self.grid_size
        x, y = position
        dx, dy = ACTION_DELTAS[action]

        target_x = min(max(x + dx, 0), size - 1)
        target_y = min(max(y + dy, 0), size - 1)
        if self.cell(target_x, target_y) != Cell.WALL:
            x, y = target_x, target_y

        reward = self.step_penalty
        done = False
        destination = self.cell(x, y)
        if destination == Cell.GEM:
            reward = self.gem_reward
            done = self.terminate_on_gem
        elif destination == Cell.BAD:
            reward = self.bad_reward
            done = True

        return Transition(
            next_state=(x, y),
            reward=reward,
            new_position=(x, y),
            done=done,
            info={'action_name': action, 'cell': destination.name.lower()},
        )

    def set_start_pos(self, position: Position) -> bool:
        """Move the start cell; only empty cells are allowed."""
        x, y = int(position[0]), int(position[1])
        if not self.in_bounds(x, y):
            logger.error("Invalid start position %s for grid size %d", position, self.grid_size)
            return False
        if self.cell(x, y) != Cell.EMPTY:
            logger.warning("Cannot set start position on a non-empty cell (gem, bad, or wall).")
            return False
        self.start_pos = (x, y)
        logger.info("Start position set to %s", self.start_pos)
        return True

    def cycle_cell(self, x: int, y: int) -> bool:
        """Advance a cell through EMPTY -> GEM -> BAD -> WALL -> EMPTY."""
        if not self.in_bounds(x, y):
            logger.error("Invalid cell coordinates: %s, %s", x, y)
            return False
        if (x, y) == self.start_pos:
            logger.warning("Cannot change the state of the agent's start cell.")
            return False
        self.cells[y, x] = NEXT_CELL[self.cell(x, y)]
        logger.debug("Cell (%d, %d) state changed to %s", x, y, self.cell(x, y).name)
        return True

    def set_step_penalty(self, value: float) -> bool:
        try:
            self.step_penalty = float(value)
        except (TypeError, ValueError):
            logger.warning("Invalid step penalty value: %r", value)
            return False
        return True

    def set_gem_reward(self, value: float) -> bool:
        """Gem reward magnitude; must be non-negative."""
        try:
            reward = float(value)
        except (TypeError, ValueError):
            reward = float('nan')
        if not reward >= 0:
            logger.warning("Invalid gem reward magnitude value: %r", value)
            return False
        self.gem_reward = reward
        return True

    def set_bad_reward(self, value: float) -> bool:
        """Fire cell reward; must be non-positive."""
        try:
            reward = float(value)
        except (TypeError, ValueError):
            reward = float('nan')
        if not reward <= 0:
            logger.warning("Invalid bad state reward magnitude value: %r", value)
            return False
        self.bad_reward = reward
        return True

    def set_terminate_on_gem(self, value: bool) -> None:
        self.terminate_on_gem = bool(value)

    def grid_cells(self) -> List[List[int]]:
        """Copy of the layout, rows indexed by y."""
        return self.cells.tolist()

    def get_render_data(self) -> RenderData:
        entities: List[Dict[str, Any]] = [
            {'type': 'agent', 'position': {'x': self.agent_pos[0], 'y': self.agent_pos[1]}},
            {'type': 'start', 'position': {'x': self.start_pos[0], 'y': self.start_pos[1]}},
        ]
        for y in range(self.grid_size):
            for x in range(self.grid_size):
                cell = self.cell(x, y)
                if cell != Cell.EMPTY:
                    entities.append({'type': cell.name.lower(), 'position': {'x': x, 'y': y}})

        return RenderData(
            environment=self.name,
            state_id=self.encode_state(self.agent_pos),
            entities=entities,
            grid={'width': self.grid_size, 'height': self.grid_size, 'cells': self.grid_cells()},
            metadata={
                'step_penalty': self.step_penalty,
                'gem_reward': self.gem_reward,
                'bad_reward': self.bad_reward,
                'terminate_on_gem': self.terminate_on_gem,
            },
        )

    def get_config(self) -> Dict[str, Any]:
        config = super().get_config()
        config.update({
            'step_penalty': self.step_penalty,
            'gem_reward': self.gem_reward,
            'bad_reward': self.bad_reward,
            'terminate_on_gem': self.terminate_on_gem,
        })
        return config
