"""
RL Gridworld - Environments Package

Each environment implements the BaseEnvironment interface.
"""

from .base_env import BaseEnvironment, RenderData, Transition
from .grid_world import Cell, GridWorldEnvironment

__all__ = [
    'BaseEnvironment',
    'Cell',
    'GridWorldEnvironment',
    'RenderData',
    'Transition',
]

ENVIRONMENT_REGISTRY = {
    'grid_world': GridWorldEnvironment,
}

def get_environment(name: str) -> type:
    """Get environment class by name."""
    if name not in ENVIRONMENT_REGISTRY:
        raise ValueError(f"Unknown environment: {name}. Available: {list(ENVIRONMENT_REGISTRY.keys())}")
    return ENVIRONMENT_REGISTRY[name]

def list_environments() -> list:
    """List all available environments with descriptions."""
    return [
        {
            'name': 'grid_world',
            'display_name': 'Grid World',
            'description': 'Reach the gem, avoid the fire, walls block movement.',
            'state_space_size': 'grid_size x grid_size (4 to 400 states)',
            'action_space_size': 4,
        },
    ]
