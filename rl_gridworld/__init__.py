"""
RL Gridworld

Tabular reinforcement learning on an editable grid world: six learners
behind one interface, an episode driver, a REST API and a Streamlit UI.
"""

from .algorithm_manager import AlgorithmManager
from .episode_driver import EpisodeDriver, EpisodeSettings, StepReport

__version__ = "1.0.0"

__all__ = [
    'AlgorithmManager',
    'EpisodeDriver',
    'EpisodeSettings',
    'StepReport',
]
