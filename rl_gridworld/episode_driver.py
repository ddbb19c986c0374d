"""
Episode Driver

Runs the learning loop one tick at a time:
action selection -> environment transition -> learning update ->
episode bookkeeping (step cap, Monte Carlo flush, agent reset, budget).
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np

from .algorithm_manager import AlgorithmManager
from .algorithms import AlgorithmType, UnknownAlgorithmError
from .environments.grid_world import GridWorldEnvironment


logger = logging.getLogger(__name__)

RESET_MODES = ('agent-only', 'agent', 'environment', 'full')


@dataclass
class EpisodeSettings:
    """
    Driver limits.

    Attributes:
        max_steps_per_episode: Step cap after which an episode is cut off
        max_episodes: Stop after this many episodes (0 = no limit)
        moving_average_window: Window for the smoothed reward curve
    """
    max_steps_per_episode: int = 100
    max_episodes: int = 0
    moving_average_window: int = 20


@dataclass
class StepReport:
    """What happened during one tick."""
    state: Optional[Tuple[int, int]] = None
    action: Optional[str] = None
    reward: float = 0.0
    next_state: Optional[Tuple[int, int]] = None
    done: bool = False
    needs_stop: bool = False
    episode_ended: bool = False
    truncated: bool = False
    td_error: float = 0.0
    episode: int = 0
    episode_return: Optional[float] = None
    error: Optional[str] = None


@dataclass
class EpisodeStats:
    """Per-episode history for the reward chart."""
    rewards: List[float] = field(default_factory=list)
    lengths: List[int] = field(default_factory=list)
    smoothed_rewards: List[float] = field(default_factory=list)


class EpisodeDriver:
    """
    Single-threaded learning loop over a grid environment.

    The caller ticks ``learning_loop_step`` (from a timer, a request handler
    or a test loop). Nothing runs between ticks.

    Attributes:
        environment: Grid simulator
        manager: Owner of the active learner and its config
        settings: Episode limits
        episode_count: Completed episodes
        current_episode_steps: Steps taken in the episode in progress
        episode_return: Reward accumulated in the episode in progress
        stopped: True once halted by an error or by the episode budget
        error: Message of the fatal error that halted the loop, if any
    """

    def __init__(
        self,
        environment: Optional[GridWorldEnvironment] = None,
        manager: Optional[AlgorithmManager] = None,
        settings: Optional[EpisodeSettings] = None
    ):
        self.environment = environment if environment is not None else GridWorldEnvironment()
        self.manager = manager if manager is not None else AlgorithmManager(
            grid_size=self.environment.grid_size
        )
        if self.manager.grid_size != self.environment.grid_size:
            self.manager.update_grid_size(self.environment.grid_size)
        self.settings = settings if settings is not None else EpisodeSettings()

        self.stopped = False
        self.error: Optional[str] = None
        self._reset_progress()

    @property
    def config(self):
        return self.manager.config

    @property
    def agent_pos(self) -> Tuple[int, int]:
        return self.environment.agent_pos

    def _reset_progress(self) -> None:
        self.episode_count = 0
        self.current_episode_steps = 0
        self.episode_return = 0.0
        self.total_steps = 0
        self.stats = EpisodeStats()
        self.started_at: Optional[float] = None
        self.learning_duration: Optional[float] = None

    def _reset_episode(self) -> None:
        self.manager.discard_episode()
        self.current_episode_steps = 0
        self.episode_return = 0.0
        self.environment.reset_agent()

    def learning_loop_step(self) -> StepReport:
        """Advance the loop by exactly one environment step."""
        if self.stopped:
            return StepReport(needs_stop=True, episode=self.episode_count, error=self.error)
        if self.started_at is None:
            self.started_at = time.perf_counter()

        env = self.environment
        state = env.agent_pos
        action = self.manager.choose_action(state, env.take_action, state)
        transition = env.take_action(action, state, env.grid_size)
        env.agent_pos = transition.new_position

        update = self.manager.learning_step(
            state, action, transition.reward, transition.next_state, transition.done
        )
        report = StepReport(
            state=state,
            action=action,
            reward=transition.reward,
            next_state=transition.next_state,
            done=transition.done,
            td_error=update.td_error,
            episode=self.episode_count,
        )
        if update.needs_stop:
            self.halt(update.error or "Learning update requested a stop")
            report.needs_stop = True
            report.error = self.error
            return report

        self.current_episode_steps += 1
        self.total_steps += 1
        self.episode_return += transition.reward

        cap_reached = self.current_episode_steps >= self.settings.max_steps_per_episode
        if transition.done or cap_reached:
            report.truncated = cap_reached and not transition.done
            if report.truncated:
                logger.info(
                    "Episode %d terminated at max steps (%d)",
                    self.episode_count + 1, self.settings.max_steps_per_episode,
                )
            report.episode_ended = True
            report.episode_return = self._end_episode()
            report.episode = self.episode_count
            report.needs_stop = self.stopped

        return report

    def _end_episode(self) -> float:
        episode_return = self.episode_return
        self.episode_count += 1
        self.stats.rewards.append(episode_return)
        self.stats.lengths.append(self.current_episode_steps)
        self.stats.smoothed_rewards.append(
            moving_average(self.stats.rewards, self.settings.moving_average_window)
        )
        logger.debug(
            "Episode %d ended after %d steps with return %.3f",
            self.episode_count, self.current_episode_steps, episode_return,
        )

        self.manager.apply_episode_updates()
        self._reset_episode()

        budget = self.settings.max_episodes
        if budget > 0 and self.episode_count >= budget:
            self.stop()
            logger.info(
                "Reached max episodes (%d). Learning duration: %.1f ms",
                budget, (self.learning_duration or 0.0) * 1000,
            )
        return episode_return

    def run_episode(self) -> StepReport:
        """Tick until the current episode ends or the loop stops."""
        while True:
            report = self.learning_loop_step()
            if report.episode_ended or report.needs_stop:
                return report

    def run(self, n_steps: Optional[int] = None, n_episodes: Optional[int] = None) -> List[StepReport]:
        """
        Tick for a number of steps or episodes, whichever is given.

        Returns:
            The reports of every step taken (episode runs return one per episode)
        """
        reports = []
        if n_episodes is not None:
            for _ in range(n_episodes):
                report = self.run_episode()
                reports.append(report)
                if report.needs_stop:
                    break
            return reports

        for _ in range(n_steps or 0):
            report = self.learning_loop_step()
            reports.append(report)
            if report.needs_stop:
                break
        return reports

    def halt(self, error: str) -> None:
        """Stop the loop because of a fatal error."""
        self.error = error
        logger.error("Learning stopped: %s", error)
        self.stop()

    def stop(self) -> None:
        if self.started_at is not None and self.learning_duration is None:
            self.learning_duration = time.perf_counter() - self.started_at
        self.stopped = True

    def start(self) -> None:
        """Clear a stop so ticks run again."""
        self.stopped = False
        self.error = None
        self.started_at = None
        self.learning_duration = None

    def switch_algorithm(
        self,
        algorithm_type: Union[str, AlgorithmType],
        config_overrides: Optional[Mapping[str, Any]] = None
    ) -> None:
        """Swap the learner; hyperparameters persist, tables and statistics reset."""
        try:
            self.manager.switch_algorithm(algorithm_type, config_overrides)
        except UnknownAlgorithmError as e:
            self.halt(str(e))
            raise
        self._reset_progress()
        self._reset_episode()

    def update_config(self, partial: Mapping[str, Any]) -> None:
        self.manager.update_config(partial)

    def update_grid_size(self, grid_size: int) -> None:
        """Resize the grid; the layout, tables and statistics all restart."""
        self.environment.resize(grid_size)
        self.manager.update_grid_size(grid_size)
        self._reset_progress()
        self._reset_episode()

    def reset(self, mode: str = 'full') -> None:
        """
        Reset part of the session.

        Args:
            mode: 'agent-only' moves the agent to the start cell;
                'agent' also clears learned tables and statistics;
                'environment' restores the default layout;
                'full' does both.
        """
        if mode not in RESET_MODES:
            raise ValueError(f"Unknown reset mode: {mode}. Available: {list(RESET_MODES)}")
        self.start()

        if mode in ('full', 'environment'):
            self.environment.reset_layout()
        if mode in ('full', 'agent'):
            self.manager.initialize_tables(self.environment.grid_size)
            self._reset_progress()
        self._reset_episode()

    def greedy_path(self, max_steps: Optional[int] = None) -> List[Tuple[int, int]]:
        """
        Follow the first best action from the start cell.

        Stops on a revisited cell, a blocked move or a terminal transition
        (the terminal cell is included).
        """
        env = self.environment
        if max_steps is None:
            max_steps = env.grid_size * env.grid_size

        path = []
        visited = set()
        current = env.start_pos
        for _ in range(max(1, max_steps)):
            if current in visited:
                break
            visited.add(current)
            path.append(current)

            best = self.manager.get_best_actions(current, env.take_action, current)
            if not best:
                break
            transition = env.take_action(best[0], current, env.grid_size)
            if transition.new_position == current:
                break
            current = transition.new_position
            if transition.done:
                path.append(current)
                break
        return path

    def summary(self) -> Dict[str, Any]:
        return {
            'algorithm': self.manager.algorithm_type.value,
            'grid_size': self.environment.grid_size,
            'episode': self.episode_count,
            'current_episode_steps': self.current_episode_steps,
            'episode_return': self.episode_return,
            'total_steps': self.total_steps,
            'agent_pos': list(self.environment.agent_pos),
            'stopped': self.stopped,
            'error': self.error,
            'learning_duration': self.learning_duration,
            'config': self.manager.get_config(),
        }


def moving_average(values: List[float], window: int) -> float:
    """Mean of the last ``window`` values (0 for an empty list)."""
    if not values:
        return 0.0
    return float(np.mean(values[-window:]))
