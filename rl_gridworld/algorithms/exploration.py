"""
Exploration Policies

Stateless helpers that turn a vector of per-action scores (Q-values,
preferences, or derived values) into an action or a probability
distribution. Every learning algorithm composes these instead of
re-implementing epsilon-greedy / softmax / random / greedy dispatch.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np


logger = logging.getLogger(__name__)

# Order matters only for reproducible tie-breaking
ACTIONS = ('up', 'down', 'left', 'right')
ACTION_INDEX = {action: index for index, action in enumerate(ACTIONS)}

_warned_strategies = set()


def _uniform(actions: Sequence[str]) -> Dict[str, float]:
    probability = 1.0 / len(actions)
    return {action: probability for action in actions}


def softmax(
    values: Sequence[float],
    beta: float = 1.0,
    actions: Sequence[str] = ACTIONS
) -> Dict[str, float]:
    """
    Softmax distribution over action scores.

    The maximum is subtracted before exponentiating. If the normalizer comes
    out zero or non-finite (e.g. -inf or NaN scores, overflow from a large
    negative beta) a uniform distribution is returned instead.

    Args:
        values: One score per action, in ``actions`` order
        beta: Inverse temperature
        actions: Action labels

    Returns:
        Mapping action -> probability summing to 1
    """
    scores = np.asarray(values, dtype=float)
    if scores.size == 0:
        return {}

    with np.errstate(over='ignore', invalid='ignore'):
        shifted = beta * (scores - np.max(scores))
        exp_values = np.exp(shifted)
        total = float(np.sum(exp_values))

    if total == 0.0 or not np.isfinite(total):
        logger.debug("Degenerate softmax input %s, using uniform distribution", scores.tolist())
        return _uniform(actions[:scores.size])

    return {action: float(p) for action, p in zip(actions, exp_values / total)}


def best_actions(values: Sequence[float], actions: Sequence[str] = ACTIONS) -> List[str]:
    """
    All actions whose score equals the maximum (exact float equality).

    An empty score vector, or one with no comparable maximum, yields every
    action so callers can always break ties uniformly.
    """
    scores = list(values)
    if not scores:
        return list(actions)

    max_value = max(scores)
    best = [action for action, value in zip(actions, scores) if value == max_value]
    return best if best else list(actions)


def action_distribution(
    strategy: str,
    values: Sequence[float],
    exploration_rate: float,
    best: Optional[Sequence[str]] = None,
    beta: float = 1.0,
    actions: Sequence[str] = ACTIONS
) -> Dict[str, float]:
    """
    Probability of each action under an exploration strategy.

    Args:
        strategy: 'epsilon-greedy', 'softmax', 'random' or 'greedy'
        values: One score per action
        exploration_rate: Epsilon for epsilon-greedy
        best: Precomputed best actions (computed from ``values`` if omitted)
        beta: Inverse temperature for softmax
        actions: Action labels

    Returns:
        Mapping action -> probability
    """
    if best is None:
        best = best_actions(values, actions)
    n_actions = len(actions)

    if strategy == 'epsilon-greedy':
        explore = exploration_rate / n_actions
        greedy = (1.0 - exploration_rate) / len(best)
        return {
            action: (greedy + explore) if action in best else explore
            for action in actions
        }
    if strategy == 'softmax':
        return softmax(values, beta, actions)
    if strategy == 'random':
        return _uniform(actions)
    if strategy != 'greedy':
        _warn_unknown_strategy(strategy)

    share = 1.0 / len(best)
    return {action: share if action in best else 0.0 for action in actions}


def sample_action(distribution: Dict[str, float], draw: float) -> str:
    """
    Pick an action by walking the cumulative distribution with one draw.

    If rounding leaves ``draw`` above the accumulated mass the last action is
    returned.
    """
    cumulative = 0.0
    action = None
    for action, probability in distribution.items():
        cumulative += probability
        if draw < cumulative:
            return action
    return action


def choose_action(
    strategy: str,
    values: Sequence[float],
    exploration_rate: float,
    rng: np.random.Generator,
    beta: float = 1.0,
    actions: Sequence[str] = ACTIONS
) -> str:
    """
    Select an action from scores under the configured strategy.

    Unknown strategies fall back to greedy selection.
    """
    if strategy == 'epsilon-greedy':
        if rng.random() < exploration_rate:
            return random_action(rng, actions)
        return greedy_action(values, rng, actions)
    if strategy == 'softmax':
        return sample_action(softmax(values, beta, actions), rng.random())
    if strategy == 'random':
        return random_action(rng, actions)
    if strategy != 'greedy':
        _warn_unknown_strategy(strategy)
    return greedy_action(values, rng, actions)


def random_action(rng: np.random.Generator, actions: Sequence[str] = ACTIONS) -> str:
    return actions[int(rng.integers(len(actions)))]


def greedy_action(
    values: Sequence[float],
    rng: np.random.Generator,
    actions: Sequence[str] = ACTIONS
) -> str:
    """Uniformly random choice among the best actions."""
    best = best_actions(values, actions)
    return best[int(rng.integers(len(best)))]


def _warn_unknown_strategy(strategy: str) -> None:
    if strategy not in _warned_strategies:
        _warned_strategies.add(strategy)
        logger.warning("Unknown exploration strategy %r, falling back to greedy", strategy)
