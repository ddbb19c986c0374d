"""
Base Environment Abstract Class

This module defines the abstract base class that grid environments implement.
It provides the transition interface the learning algorithms call.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field


Position = Tuple[int, int]


@dataclass
class Transition:
    """Result of taking an action from a position."""
    next_state: Position
    reward: float
    new_position: Position
    done: bool
    info: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RenderData:
    """Data for frontend rendering."""
    environment: str
    state_id: str
    entities: List[Dict[str, Any]]
    grid: Optional[Dict[str, Any]]
    metadata: Dict[str, Any]


class BaseEnvironment(ABC):
    """
    Abstract base class for square grid environments.

    State Space:
        States are grid coordinates ``(x, y)``; ``encode_state`` gives the
        ``"x,y"`` string form used by renderers and the REST API.

    Action Space:
        Actions are the strings in ``action_names``.

    Attributes:
        name (str): Environment name
        grid_size (int): Side length of the grid
        agent_pos (Position): Current agent position
        start_pos (Position): Where the agent restarts each episode
    """

    def __init__(self, name: str, grid_size: int):
        self.name = name
        self.grid_size = grid_size
        self.action_names: List[str] = []
        self.start_pos: Position = (0, 0)
        self.agent_pos: Position = (0, 0)

    @abstractmethod
    def take_action(self, action: str, position: Position, grid_size: Optional[int] = None) -> Transition:
        """
        Compute the outcome of an action without moving the agent.

        Args:
            action: Action name
            position: Position the action is taken from
            grid_size: Bound for coordinates (defaults to the current grid)

        Returns:
            Transition with next state, reward, new position and done flag
        """

    @abstractmethod
    def resize(self, grid_size: int) -> None:
        """Rebuild the layout for a new grid size."""

    @abstractmethod
    def get_render_data(self) -> RenderData:
        """Get rendering data for frontend visualization."""

    def step(self, action: str) -> Transition:
        """Take an action from the agent's position and move the agent."""
        transition = self.take_action(action, self.agent_pos, self.grid_size)
        self.agent_pos = transition.new_position
        return transition

    def reset_agent(self) -> Position:
        """Put the agent back on the start cell."""
        self.agent_pos = self.start_pos
        return self.agent_pos

    def get_state_space(self) -> List[Position]:
        """All grid positions, column-major like the value tables."""
        return [(x, y) for x in range(self.grid_size) for y in range(self.grid_size)]

    def encode_state(self, position: Position) -> str:
        return f"{position[0]},{position[1]}"

    def decode_state(self, state_id: str) -> Position:
        parts = state_id.split(',')
        return int(parts[0]), int(parts[1])

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.grid_size and 0 <= y < self.grid_size

    def get_config(self) -> Dict[str, Any]:
        """Get environment configuration."""
        return {
            'name': self.name,
            'grid_size': self.grid_size,
            'action_names': self.action_names,
            'start_pos': list(self.start_pos),
        }
