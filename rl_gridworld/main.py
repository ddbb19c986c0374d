"""
RL Gridworld - FastAPI Backend Server

Main entry point for the backend server providing REST APIs for:
- Learning sessions (environment + learner + episode driver)
- Stepping and running episodes
- Live hyperparameter and environment edits
- Visualization data
- Parameter management
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
import logging
import time
import uuid
from dataclasses import asdict
import numpy as np

from .algorithm_manager import AlgorithmManager
from .algorithms import (
    ALGORITHM_REGISTRY,
    UnknownAlgorithmError,
    list_algorithms,
    parse_algorithm_type,
)
from .algorithms.tables import StateOutOfBoundsError, parse_state_key, state_key, table_to_dict
from .environments import ENVIRONMENT_REGISTRY, GridWorldEnvironment
from .episode_driver import RESET_MODES, EpisodeDriver, EpisodeSettings
from .utils.logger import configure_logging
from .utils.parameter_validation import ParameterValidator
from .utils.visualization_data import VisualizationFormatter


logger = logging.getLogger(__name__)


# ============================================================================
# Utility Functions
# ============================================================================

def convert_numpy_types(obj: Any) -> Any:
    """Recursively convert numpy types to native Python types for JSON serialization."""
    if isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.bool_):
        return bool(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, dict):
        return {key: convert_numpy_types(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_numpy_types(item) for item in obj]
    return obj


def _validation_error(errors) -> HTTPException:
    return HTTPException(status_code=400, detail=errors)


# ============================================================================
# FastAPI App Setup
# ============================================================================

app = FastAPI(
    title="RL Gridworld API",
    description="Backend API for the interactive tabular reinforcement learning grid world",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# In-Memory Storage
# ============================================================================

sessions: Dict[str, Dict[str, Any]] = {}

# ============================================================================
# Pydantic Models
# ============================================================================

class SessionCreateRequest(BaseModel):
    algorithm: str = 'q-learning'
    grid_size: int = 5
    config: Dict[str, Any] = Field(default_factory=dict)
    environment: Dict[str, Any] = Field(default_factory=dict)
    settings: Dict[str, Any] = Field(default_factory=dict)
    seed: Optional[int] = None

class StepRequest(BaseModel):
    n_steps: int = Field(1, ge=1, le=10000)

class EpisodesRequest(BaseModel):
    n_episodes: int = Field(1, ge=1, le=1000)

class AlgorithmSwitchRequest(BaseModel):
    algorithm: str
    config: Optional[Dict[str, Any]] = None

class ConfigUpdateRequest(BaseModel):
    config: Dict[str, Any] = Field(default_factory=dict)
    environment: Dict[str, Any] = Field(default_factory=dict)
    settings: Dict[str, Any] = Field(default_factory=dict)

class GridSizeRequest(BaseModel):
    grid_size: int

class CellEditRequest(BaseModel):
    x: int
    y: int
    action: str = 'cycle'

class ResetRequest(BaseModel):
    mode: str = 'full'

# ============================================================================
# Session Helpers
# ============================================================================

def _get_driver(session_id: str) -> EpisodeDriver:
    if session_id not in sessions:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return sessions[session_id]['driver']


def _validate_algorithm_config(algorithm: str, config: Dict[str, Any]) -> None:
    validation = ParameterValidator.validate_algorithm_params(algorithm, config)
    if not validation.valid:
        raise _validation_error(validation.errors)
    if validation.warnings:
        raise _validation_error(validation.warnings)


def _validate_environment_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Check live environment edits; grid size goes through its own endpoint."""
    if 'grid_size' in params:
        raise HTTPException(status_code=400, detail="Use /grid-size to change the grid size")

    validation = ParameterValidator.validate_environment_params('grid_world', params)
    if not validation.valid:
        raise _validation_error(validation.errors)
    return {name: validation.sanitized_params[name] for name in params if name in validation.sanitized_params}


def _apply_environment_params(env: GridWorldEnvironment, params: Dict[str, Any]) -> Dict[str, Any]:
    setters = {
        'step_penalty': env.set_step_penalty,
        'gem_reward': env.set_gem_reward,
        'bad_reward': env.set_bad_reward,
        'terminate_on_gem': env.set_terminate_on_gem,
    }
    for name, value in params.items():
        setters[name](value)
    return params


def _validate_settings(params: Dict[str, Any]) -> Dict[str, Any]:
    validation = ParameterValidator.validate_driver_params(params)
    if not validation.valid:
        raise _validation_error(validation.errors)
    return {name: validation.sanitized_params[name] for name in params if name in validation.sanitized_params}


def _apply_settings(settings: EpisodeSettings, params: Dict[str, Any]) -> Dict[str, Any]:
    for name, value in params.items():
        setattr(settings, name, value)
    return params


def _session_state(session_id: str, driver: EpisodeDriver) -> Dict[str, Any]:
    return convert_numpy_types({
        "session_id": session_id,
        "summary": driver.summary(),
        "settings": asdict(driver.settings),
        "environment": driver.environment.get_config(),
        "render_data": asdict(driver.environment.get_render_data()),
    })

# ============================================================================
# Session Endpoints
# ============================================================================

@app.post("/sessions", tags=["Sessions"])
async def create_session(request: SessionCreateRequest):
    """Create a learning session with its own grid, learner and driver."""
    try:
        algorithm_type = parse_algorithm_type(request.algorithm)
    except UnknownAlgorithmError as e:
        raise HTTPException(status_code=404, detail=str(e))

    env_params = {'grid_size': request.grid_size, **request.environment}
    validation = ParameterValidator.validate_environment_params('grid_world', env_params)
    if not validation.valid:
        raise _validation_error(validation.errors)
    _validate_algorithm_config(algorithm_type.value, request.config)
    settings_params = _validate_settings(request.settings)

    environment = GridWorldEnvironment(**validation.sanitized_params)
    manager = AlgorithmManager(
        algorithm_type,
        grid_size=environment.grid_size,
        config=request.config,
        seed=request.seed,
    )
    settings = EpisodeSettings()
    _apply_settings(settings, settings_params)
    driver = EpisodeDriver(environment, manager, settings)

    session_id = str(uuid.uuid4())
    sessions[session_id] = {'driver': driver, 'created_at': time.time()}
    logger.info("Created session %s (%s, grid %d)", session_id, algorithm_type.value, environment.grid_size)

    return _session_state(session_id, driver)

@app.get("/sessions/{session_id}", tags=["Sessions"])
async def get_session(session_id: str):
    """Get the current state of a session."""
    return _session_state(session_id, _get_driver(session_id))

@app.post("/sessions/{session_id}/step", tags=["Sessions"])
async def step_session(session_id: str, request: StepRequest = StepRequest()):
    """Advance the learning loop by one or more steps."""
    driver = _get_driver(session_id)
    if driver.stopped:
        raise HTTPException(
            status_code=409,
            detail=driver.error or "Session is stopped. Start or reset it first."
        )

    reports = driver.run(n_steps=request.n_steps)
    return convert_numpy_types({
        "steps": [VisualizationFormatter.format_step(r) for r in reports],
        "summary": driver.summary(),
    })

@app.post("/sessions/{session_id}/episodes", tags=["Sessions"])
async def run_episodes(session_id: str, request: EpisodesRequest = EpisodesRequest()):
    """Run whole episodes and return the final step of each."""
    driver = _get_driver(session_id)
    if driver.stopped:
        raise HTTPException(
            status_code=409,
            detail=driver.error or "Session is stopped. Start or reset it first."
        )

    reports = driver.run(n_episodes=request.n_episodes)
    return convert_numpy_types({
        "episodes": [VisualizationFormatter.format_step(r) for r in reports],
        "summary": driver.summary(),
    })

@app.post("/sessions/{session_id}/algorithm", tags=["Sessions"])
async def switch_algorithm(session_id: str, request: AlgorithmSwitchRequest):
    """Switch the learner. Hyperparameters persist; tables and statistics reset."""
    driver = _get_driver(session_id)
    try:
        algorithm_type = parse_algorithm_type(request.algorithm)
    except UnknownAlgorithmError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if request.config:
        _validate_algorithm_config(algorithm_type.value, request.config)

    driver.switch_algorithm(algorithm_type, request.config)
    return _session_state(session_id, driver)

@app.post("/sessions/{session_id}/config", tags=["Sessions"])
async def update_config(session_id: str, request: ConfigUpdateRequest):
    """
    Live update of hyperparameters, rewards and driver limits.

    All three sections are validated before any of them is applied, so a
    rejected request changes nothing.
    """
    driver = _get_driver(session_id)
    if request.config:
        _validate_algorithm_config(driver.manager.algorithm_type.value, request.config)
    environment_params = _validate_environment_params(request.environment)
    settings_params = _validate_settings(request.settings)

    if request.config:
        try:
            driver.update_config(request.config)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    environment = _apply_environment_params(driver.environment, environment_params)
    settings = _apply_settings(driver.settings, settings_params)

    return convert_numpy_types({
        "config": driver.manager.get_config(),
        "environment": environment,
        "settings": settings,
    })

@app.post("/sessions/{session_id}/grid-size", tags=["Sessions"])
async def update_grid_size(session_id: str, request: GridSizeRequest):
    """Resize the grid. Layout, tables and statistics all restart."""
    driver = _get_driver(session_id)
    validation = ParameterValidator.validate_environment_params(
        'grid_world', {'grid_size': request.grid_size}
    )
    if not validation.valid:
        raise _validation_error(validation.errors)

    driver.update_grid_size(validation.sanitized_params['grid_size'])
    return _session_state(session_id, driver)

@app.post("/sessions/{session_id}/cells", tags=["Sessions"])
async def edit_cell(session_id: str, request: CellEditRequest):
    """Cycle a cell's type or move the start cell there."""
    driver = _get_driver(session_id)
    env = driver.environment
    if request.action == 'cycle':
        changed = env.cycle_cell(request.x, request.y)
    elif request.action == 'start':
        changed = env.set_start_pos((request.x, request.y))
        if changed:
            driver.reset('agent-only')
    else:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown cell action: {request.action}. Available: ['cycle', 'start']"
        )

    if not changed:
        raise HTTPException(
            status_code=409,
            detail=f"Cell ({request.x}, {request.y}) cannot be changed with '{request.action}'"
        )
    return convert_numpy_types({"cells": env.grid_cells(), "start_pos": list(env.start_pos)})

@app.post("/sessions/{session_id}/start", tags=["Sessions"])
async def start_session(session_id: str):
    """Clear a stop so stepping can continue."""
    driver = _get_driver(session_id)
    driver.start()
    return _session_state(session_id, driver)

@app.post("/sessions/{session_id}/reset", tags=["Sessions"])
async def reset_session(session_id: str, request: ResetRequest = ResetRequest()):
    """Reset the agent, the learned tables, the layout, or everything."""
    driver = _get_driver(session_id)
    if request.mode not in RESET_MODES:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown reset mode: {request.mode}. Available: {list(RESET_MODES)}"
        )
    driver.reset(request.mode)
    return _session_state(session_id, driver)

@app.delete("/sessions/{session_id}", tags=["Sessions"])
async def delete_session(session_id: str):
    """Delete a session and free its tables."""
    _get_driver(session_id)
    del sessions[session_id]
    return {"deleted": session_id}

# ============================================================================
# Visualization Endpoints
# ============================================================================

@app.get("/sessions/{session_id}/values", tags=["Visualization"])
async def get_values(session_id: str):
    """State values as a heatmap grid with colour scale bounds."""
    driver = _get_driver(session_id)
    data = VisualizationFormatter.format_value_grid(driver.manager, driver.environment)
    return convert_numpy_types(data)

@app.get("/sessions/{session_id}/policy", tags=["Visualization"])
async def get_policy(session_id: str):
    """Policy arrows and action probabilities for every cell."""
    driver = _get_driver(session_id)
    data = VisualizationFormatter.format_policy(driver.manager, driver.environment)
    data['action_values'] = VisualizationFormatter.format_action_values(
        driver.manager, driver.environment
    )
    return convert_numpy_types(data)

@app.get("/sessions/{session_id}/tables", tags=["Visualization"])
async def get_tables(session_id: str):
    """Raw tables of the active learner; kinds it does not keep are empty."""
    driver = _get_driver(session_id)
    tables = driver.manager.tables
    return convert_numpy_types({
        "algorithm": driver.manager.algorithm_type.value,
        "q": table_to_dict(tables.q),
        "v": table_to_dict(tables.v),
        "h": table_to_dict(tables.h),
        "m": table_to_dict(tables.m),
        "w": table_to_dict(tables.w),
    })

@app.get("/sessions/{session_id}/sr/{state}", tags=["Visualization"])
async def get_successor_row(session_id: str, state: str):
    """Successor representation row of a state given as "x,y", plus the W grid."""
    driver = _get_driver(session_id)
    if driver.manager.m_table is None:
        raise HTTPException(
            status_code=400,
            detail=f"Algorithm '{driver.manager.algorithm_type.value}' has no successor representation"
        )
    try:
        position = parse_state_key(state)
        row = VisualizationFormatter.format_sr_row(driver.manager, driver.environment, position)
    except (ValueError, StateOutOfBoundsError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid state '{state}': {e}")

    return convert_numpy_types({
        "row": row,
        "w": VisualizationFormatter.format_w_grid(driver.manager, driver.environment),
    })

@app.get("/sessions/{session_id}/episodes", tags=["Visualization"])
async def get_episode_data(session_id: str):
    """Episode returns, lengths and their moving average."""
    driver = _get_driver(session_id)
    data = VisualizationFormatter.format_episode_data(
        driver.stats.rewards,
        driver.stats.lengths,
        window_size=driver.settings.moving_average_window,
    )
    data['learning_duration'] = driver.learning_duration
    return convert_numpy_types(data)

@app.get("/sessions/{session_id}/path", tags=["Visualization"])
async def get_greedy_path(session_id: str):
    """Greedy path from the start cell under the current tables."""
    driver = _get_driver(session_id)
    path = driver.greedy_path()
    return {"path": [state_key(p) for p in path], "length": len(path)}

# ============================================================================
# Parameter Management Endpoints
# ============================================================================

@app.get("/parameters/{algorithm}", tags=["Parameters"])
async def get_algorithm_parameters_endpoint(algorithm: str):
    """Get adjustable parameters for algorithm."""
    if algorithm not in ParameterValidator.ALGORITHM_PARAMS:
        raise HTTPException(status_code=404, detail=f"Algorithm '{algorithm}' not found")

    return {
        "algorithm": algorithm,
        "parameters": ParameterValidator.get_param_info(algorithm),
        "defaults": ParameterValidator.get_default_params(algorithm, 'algorithm'),
    }

# ============================================================================
# Algorithm Information Endpoints
# ============================================================================

@app.get("/algorithms", tags=["Algorithms"])
async def get_algorithms():
    """List all available algorithms with descriptions."""
    return {
        "algorithms": list_algorithms(),
        "count": len(ALGORITHM_REGISTRY)
    }

# ============================================================================
# Health Check
# ============================================================================

@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "environments": len(ENVIRONMENT_REGISTRY),
        "algorithms": len(ALGORITHM_REGISTRY),
        "active_sessions": len([s for s in sessions.values() if not s['driver'].stopped]),
        "total_sessions": len(sessions)
    }

# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=8000)
