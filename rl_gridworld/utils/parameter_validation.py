"""
Parameter Validation

Validates and processes algorithm, environment and driver parameters.
"""

import math
from typing import Any, Dict, List
from dataclasses import dataclass

from ..algorithms.config import CAMEL_CASE_ALIASES, EXPLORATION_STRATEGIES


@dataclass
class ValidationResult:
    """Result of parameter validation."""
    valid: bool
    errors: List[str]
    warnings: List[str]
    sanitized_params: Dict[str, Any]


_RATE = {'type': float, 'min': 0.0, 'max': 1.0}

_SHARED_PARAMS = {
    'discount_factor': {**_RATE, 'default': 0.9},
    'exploration_rate': {**_RATE, 'default': 0.2},
    'softmax_beta': {'type': float, 'min': 0.0, 'max': 100.0, 'default': 1.0},
    'exploration_strategy': {'type': str, 'choices': EXPLORATION_STRATEGIES, 'default': 'epsilon-greedy'},
}

_Q_FAMILY_PARAMS = {
    'learning_rate': {**_RATE, 'default': 0.1},
    **_SHARED_PARAMS,
}


class ParameterValidator:
    """
    Validates parameters for algorithms, the environment and the driver.

    Provides type checking, range validation, and sanitization.
    """

    # Algorithm parameter definitions
    ALGORITHM_PARAMS = {
        'q-learning': dict(_Q_FAMILY_PARAMS),
        'sarsa': dict(_Q_FAMILY_PARAMS),
        'expected-sarsa': dict(_Q_FAMILY_PARAMS),
        'monte-carlo': dict(_Q_FAMILY_PARAMS),
        'actor-critic': {
            **_SHARED_PARAMS,
            'actor_learning_rate': {**_RATE, 'default': 0.1},
            'critic_learning_rate': {**_RATE, 'default': 0.1},
        },
        'sr': {
            **_SHARED_PARAMS,
            'sr_m_learning_rate': {**_RATE, 'default': 0.1},
            'sr_w_learning_rate': {**_RATE, 'default': 0.1},
        },
    }

    # Environment parameter definitions
    ENVIRONMENT_PARAMS = {
        'grid_world': {
            'grid_size': {'type': int, 'min': 2, 'max': 20, 'default': 5},
            'step_penalty': {'type': float, 'min': -10.0, 'max': 0.0, 'default': -0.1},
            'gem_reward': {'type': float, 'min': 0.0, 'max': 100.0, 'default': 10.0},
            'bad_reward': {'type': float, 'min': -100.0, 'max': 0.0, 'default': -10.0},
            'terminate_on_gem': {'type': bool, 'default': True},
        },
    }

    DRIVER_PARAMS = {
        'max_steps_per_episode': {'type': int, 'min': 1, 'max': 10000, 'default': 100},
        'max_episodes': {'type': int, 'min': 0, 'max': 100000, 'default': 0},
        'moving_average_window': {'type': int, 'min': 1, 'max': 500, 'default': 20},
    }

    # Parameters that can be updated during training
    LIVE_UPDATE_PARAMS = [
        'learning_rate', 'discount_factor', 'exploration_rate', 'softmax_beta',
        'exploration_strategy', 'actor_learning_rate', 'critic_learning_rate',
        'sr_m_learning_rate', 'sr_w_learning_rate',
        'step_penalty', 'gem_reward', 'bad_reward', 'terminate_on_gem',
        'max_steps_per_episode',
    ]

    # Parameters that require a reset (tables are rebuilt)
    RESTART_PARAMS = ['grid_size']

    @classmethod
    def validate_algorithm_params(
        cls,
        algorithm: str,
        params: Dict[str, Any]
    ) -> ValidationResult:
        """
        Validate algorithm parameters.

        Parameters belonging to another algorithm (e.g. actor rates passed to
        Q-Learning) are accepted so the shared config can carry them.

        Args:
            algorithm: Algorithm tag
            params: Parameters to validate, snake_case or camelCase

        Returns:
            ValidationResult with errors, warnings, and sanitized params
        """
        if algorithm not in cls.ALGORITHM_PARAMS:
            return ValidationResult(
                valid=False,
                errors=[f"Unknown algorithm: {algorithm}"],
                warnings=[],
                sanitized_params={}
            )

        param_defs = {}
        for definitions in cls.ALGORITHM_PARAMS.values():
            param_defs.update(definitions)
        normalized = {CAMEL_CASE_ALIASES.get(k, k): v for k, v in params.items()}

        result = cls._validate_params(normalized, param_defs, with_defaults=False)
        for name, definition in cls.ALGORITHM_PARAMS[algorithm].items():
            result.sanitized_params.setdefault(name, definition['default'])
        return result

    @classmethod
    def validate_environment_params(
        cls,
        environment: str,
        params: Dict[str, Any]
    ) -> ValidationResult:
        """
        Validate environment parameters.

        Args:
            environment: Environment name
            params: Parameters to validate

        Returns:
            ValidationResult with errors, warnings, and sanitized params
        """
        if environment not in cls.ENVIRONMENT_PARAMS:
            return ValidationResult(
                valid=False,
                errors=[f"Unknown environment: {environment}"],
                warnings=[],
                sanitized_params={}
            )

        return cls._validate_params(params, cls.ENVIRONMENT_PARAMS[environment])

    @classmethod
    def validate_driver_params(cls, params: Dict[str, Any]) -> ValidationResult:
        """Validate episode driver limits."""
        return cls._validate_params(params, cls.DRIVER_PARAMS)

    @staticmethod
    def _coerce(name: str, value: Any, definition: Dict[str, Any]) -> Any:
        """Convert ``value`` to the declared type and check its bounds; raises ValueError."""
        expected = definition['type']

        if expected is bool:
            if isinstance(value, str) and value.lower() in ('true', 'false'):
                value = value.lower() == 'true'
            if not isinstance(value, bool):
                raise ValueError(f"{name} must be a boolean")
        elif expected is int:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(f"{name} must be an integer, got {value}")
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise ValueError(f"{name} must be an integer") from None
        elif expected is float:
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"{name} must be a number") from None
            if not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {value}")
        else:
            value = str(value)
            choices = definition.get('choices')
            if choices is not None and value not in choices:
                raise ValueError(f"{name} must be one of {list(choices)}, got {value}")

        low, high = definition.get('min'), definition.get('max')
        if low is not None and value < low:
            raise ValueError(f"{name} must be >= {low}, got {value}")
        if high is not None and value > high:
            raise ValueError(f"{name} must be <= {high}, got {value}")
        return value

    @classmethod
    def _validate_params(
        cls,
        params: Dict[str, Any],
        param_defs: Dict[str, Dict[str, Any]],
        with_defaults: bool = True
    ) -> ValidationResult:
        """
        Check ``params`` against ``param_defs``.

        Unknown names become warnings, bad values become errors and every
        accepted value lands in ``sanitized_params`` converted to its type.
        """
        result = ValidationResult(valid=True, errors=[], warnings=[], sanitized_params={})

        for name, value in params.items():
            definition = param_defs.get(name)
            if definition is None:
                result.warnings.append(f"Unknown parameter: {name}")
                continue
            try:
                result.sanitized_params[name] = cls._coerce(name, value, definition)
            except ValueError as exc:
                result.errors.append(str(exc))

        if with_defaults:
            for name, definition in param_defs.items():
                if 'default' in definition:
                    result.sanitized_params.setdefault(name, definition['default'])

        result.valid = not result.errors
        return result

    @classmethod
    def get_default_params(cls, name: str, param_type: str = 'algorithm') -> Dict[str, Any]:
        """
        Get default parameters for an algorithm, the environment or the driver.

        Args:
            name: Algorithm tag or environment name (ignored for 'driver')
            param_type: 'algorithm', 'environment' or 'driver'

        Returns:
            Default parameters
        """
        if param_type == 'algorithm':
            param_defs = cls.ALGORITHM_PARAMS.get(name, {})
        elif param_type == 'driver':
            param_defs = cls.DRIVER_PARAMS
        else:
            param_defs = cls.ENVIRONMENT_PARAMS.get(name, {})

        return {name: d['default'] for name, d in param_defs.items() if 'default' in d}

    @classmethod
    def can_update_live(cls, param_name: str) -> bool:
        """Check if parameter can be updated during training."""
        return param_name in cls.LIVE_UPDATE_PARAMS

    @classmethod
    def requires_restart(cls, param_name: str) -> bool:
        """Check if parameter change requires a reset."""
        return param_name in cls.RESTART_PARAMS

    @classmethod
    def get_param_info(cls, algorithm: str) -> Dict[str, Dict[str, Any]]:
        """Get parameter information for an algorithm."""
        if algorithm not in cls.ALGORITHM_PARAMS:
            return {}

        result = {}
        for name, definition in cls.ALGORITHM_PARAMS[algorithm].items():
            info = {
                **definition,
                'type': definition['type'].__name__,
                'can_update_live': cls.can_update_live(name),
                'requires_restart': cls.requires_restart(name)
            }
            if 'choices' in info:
                info['choices'] = list(info['choices'])
            result[name] = info

        return result
