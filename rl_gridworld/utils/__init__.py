"""
Utils Package

Utility functions for visualization, parameter validation and logging.
"""

from .visualization_data import VisualizationFormatter
from .parameter_validation import ParameterValidator, ValidationResult
from .logger import configure_logging

__all__ = [
    'VisualizationFormatter',
    'ParameterValidator',
    'ValidationResult',
    'configure_logging',
]
