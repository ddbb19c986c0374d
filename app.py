"""
RL Gridworld - Streamlit Frontend

Interactive web interface for stepping tabular learners on an editable grid
and watching their values, policy and rewards evolve.
"""

import streamlit as st
import numpy as np
import pandas as pd
import plotly.graph_objects as go
from typing import Any, Dict

from rl_gridworld import EpisodeDriver, EpisodeSettings
from rl_gridworld.algorithm_manager import AlgorithmManager
from rl_gridworld.algorithms import EXPLORATION_STRATEGIES, list_algorithms
from rl_gridworld.environments import Cell, GridWorldEnvironment
from rl_gridworld.utils import ParameterValidator, VisualizationFormatter, configure_logging

configure_logging()

# Page config
st.set_page_config(
    page_title="RL Gridworld",
    page_icon="RL",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS
st.markdown("""
<style>
    .stApp {
        background-color: #0f172a;
    }
    .stSelectbox label, .stSlider label, .stNumberInput label {
        color: #94a3b8 !important;
    }
</style>
""", unsafe_allow_html=True)

PLOT_LAYOUT = dict(
    plot_bgcolor='#1e293b',
    paper_bgcolor='#1e293b',
    font_color='#e2e8f0',
)

CELL_MARKERS = {
    Cell.GEM: '💎',
    Cell.BAD: '🔥',
    Cell.WALL: '⬛',
}

ALGORITHMS = {a['name']: a for a in list_algorithms()}


def new_driver(algorithm: str = 'q-learning', grid_size: int = 5) -> EpisodeDriver:
    environment = GridWorldEnvironment(grid_size=grid_size)
    manager = AlgorithmManager(algorithm, grid_size=grid_size)
    return EpisodeDriver(environment, manager, EpisodeSettings())


# Initialize session state
if 'driver' not in st.session_state:
    st.session_state.driver = new_driver()
if 'last_step' not in st.session_state:
    st.session_state.last_step = None

driver: EpisodeDriver = st.session_state.driver
env: GridWorldEnvironment = driver.environment


def parameter_widgets(algorithm: str) -> Dict[str, Any]:
    """Sliders for the numeric hyperparameters of an algorithm, seeded from the live config."""
    current = driver.manager.get_config()
    params = {}
    for name, info in ParameterValidator.get_param_info(algorithm).items():
        if info['type'] != 'float':
            continue
        max_val = float(info['max'])
        params[name] = st.slider(
            name.replace('_', ' ').title(),
            min_value=float(info['min']),
            max_value=max_val,
            value=float(current.get(name, info['default'])),
            step=0.01 if max_val <= 1 else 0.1,
            key=f"param_{name}",
        )
    return params


def plot_value_grid(title: str = "State Values") -> go.Figure:
    """Value heatmap with the policy arrow, cell type and agent in each cell."""
    values = VisualizationFormatter.format_value_grid(driver.manager, env)
    policy = VisualizationFormatter.format_policy(driver.manager, env)['policy']
    size = env.grid_size
    bound = max(abs(values['min_value']), abs(values['max_value']))

    fig = go.Figure()
    fig.add_trace(go.Heatmap(
        z=values['grid'],
        colorscale='RdYlGn',
        zmin=-bound,
        zmax=bound,
        hovertemplate='x=%{x}, y=%{y}<br>V=%{z:.3f}<extra></extra>',
    ))

    for y in range(size):
        for x in range(size):
            cell = env.cell(x, y)
            if cell in CELL_MARKERS:
                text = CELL_MARKERS[cell]
            else:
                entry = policy[f"{x},{y}"]
                text = entry['arrow']
            if (x, y) == env.agent_pos:
                text = f"🤖 {text}"
            elif (x, y) == env.start_pos:
                text = f"S {text}"
            fig.add_annotation(
                x=x, y=y,
                text=f"{text}<br><sub>{values['grid'][y][x]:.2f}</sub>",
                showarrow=False,
                font=dict(size=14, color='white'),
            )

    fig.update_layout(
        title=title,
        xaxis_title='X',
        yaxis_title='Y',
        height=520,
        **PLOT_LAYOUT
    )
    fig.update_yaxes(autorange='reversed')
    return fig


def plot_grid(grid, title: str, colorscale: str = 'Blues') -> go.Figure:
    fig = go.Figure(go.Heatmap(
        z=grid,
        colorscale=colorscale,
        texttemplate='%{z:.2f}',
        hovertemplate='x=%{x}, y=%{y}: %{z:.3f}<extra></extra>',
    ))
    fig.update_layout(title=title, height=380, **PLOT_LAYOUT)
    fig.update_yaxes(autorange='reversed')
    return fig


def plot_episode_rewards() -> go.Figure:
    """Plot episode returns with their moving average."""
    rewards = driver.stats.rewards
    if not rewards:
        return None

    window = driver.settings.moving_average_window
    df = pd.DataFrame({'episode': np.arange(1, len(rewards) + 1), 'reward': rewards})
    df['avg_reward'] = df['reward'].rolling(window=window, min_periods=1).mean()

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=df['episode'],
        y=df['reward'],
        mode='lines',
        name='Episode Reward',
        line=dict(color='#3b82f6', width=1),
        opacity=0.5
    ))
    fig.add_trace(go.Scatter(
        x=df['episode'],
        y=df['avg_reward'],
        mode='lines',
        name=f'Moving Avg ({window})',
        line=dict(color='#f59e0b', width=2)
    ))
    fig.update_layout(
        title='Episode Rewards',
        xaxis_title='Episode',
        yaxis_title='Reward',
        height=300,
        **PLOT_LAYOUT
    )
    return fig


# ============== MAIN APP ==============

st.title("🎮 RL Gridworld")
st.markdown("Tabular reinforcement learning on an editable grid")

with st.sidebar:
    st.header(" Configuration")

    # Algorithm Selection
    st.subheader("Algorithm")
    algo_names = list(ALGORITHMS)
    active = driver.manager.algorithm_type.value
    selected_algo = st.selectbox(
        "Select Algorithm",
        algo_names,
        index=algo_names.index(active),
        format_func=lambda name: ALGORITHMS[name]['display_name'],
    )
    st.caption(ALGORITHMS[selected_algo]['description'])
    if selected_algo != active:
        driver.switch_algorithm(selected_algo)
        st.session_state.last_step = None

    strategy = st.selectbox(
        "Exploration Strategy",
        EXPLORATION_STRATEGIES,
        index=EXPLORATION_STRATEGIES.index(driver.config.exploration_strategy),
    )

    st.subheader("Parameters")
    params = parameter_widgets(selected_algo)
    params['exploration_strategy'] = strategy
    changed = {k: v for k, v in params.items() if driver.manager.get_config().get(k) != v}
    if changed:
        driver.update_config(changed)

    st.divider()

    # Environment
    st.subheader(" Environment")
    grid_size = st.number_input("Grid Size", min_value=2, max_value=20, value=env.grid_size, step=1)
    if grid_size != env.grid_size:
        driver.update_grid_size(int(grid_size))
        st.session_state.last_step = None

    step_penalty = st.number_input("Step Penalty", value=env.step_penalty, step=0.05, max_value=0.0)
    gem_reward = st.number_input("Gem Reward", value=env.gem_reward, step=1.0, min_value=0.0)
    bad_reward = st.number_input("Fire Reward", value=env.bad_reward, step=1.0, max_value=0.0)
    terminate_on_gem = st.checkbox("End episode on gem", value=env.terminate_on_gem)
    env.set_step_penalty(step_penalty)
    env.set_gem_reward(gem_reward)
    env.set_bad_reward(bad_reward)
    env.set_terminate_on_gem(terminate_on_gem)

    driver.settings.max_steps_per_episode = int(st.number_input(
        "Max Steps per Episode", min_value=1, max_value=10000,
        value=driver.settings.max_steps_per_episode, step=10,
    ))
    driver.settings.max_episodes = int(st.number_input(
        "Max Episodes (0 = unlimited)", min_value=0, max_value=100000,
        value=driver.settings.max_episodes, step=10,
    ))

    st.divider()

    # Cell editing
    st.subheader("Edit Cells")
    edit_cols = st.columns(2)
    edit_x = edit_cols[0].number_input("X", min_value=0, max_value=env.grid_size - 1, value=0, step=1)
    edit_y = edit_cols[1].number_input("Y", min_value=0, max_value=env.grid_size - 1, value=0, step=1)
    if edit_cols[0].button("Cycle Cell", width='stretch'):
        if not env.cycle_cell(int(edit_x), int(edit_y)):
            st.warning("The start cell cannot be edited.")
    if edit_cols[1].button("Set Start", width='stretch'):
        if env.set_start_pos((int(edit_x), int(edit_y))):
            driver.reset('agent-only')
        else:
            st.warning("The start cell must be empty.")

# Controls
control_cols = st.columns(6)
n_steps = control_cols[0].number_input("Steps", min_value=1, max_value=5000, value=1, step=1)
if control_cols[1].button("👆 Step", type="primary", width='stretch'):
    reports = driver.run(n_steps=int(n_steps))
    st.session_state.last_step = reports[-1] if reports else None
n_episodes = control_cols[2].number_input("Episodes", min_value=1, max_value=1000, value=10, step=1)
if control_cols[3].button("🎬 Run Episodes", width='stretch'):
    with st.spinner("Learning..."):
        reports = driver.run(n_episodes=int(n_episodes))
    st.session_state.last_step = reports[-1] if reports else None
if control_cols[4].button("▶ Start", width='stretch'):
    driver.start()
reset_mode = control_cols[5].selectbox("Reset", ['agent-only', 'agent', 'environment', 'full'], index=3)
if control_cols[5].button("🔄 Reset", width='stretch'):
    driver.reset(reset_mode)
    st.session_state.last_step = None

if driver.error:
    st.error(f"Learning stopped: {driver.error}")
elif driver.stopped:
    st.info("Learning stopped. Press Start or Reset to continue.")

col1, col2 = st.columns([2, 1])

with col1:
    st.plotly_chart(plot_value_grid(), width='stretch')

with col2:
    summary = driver.summary()
    st.metric("Episode", summary['episode'])
    st.metric("Steps in Episode", summary['current_episode_steps'])
    st.metric("Episode Return", f"{summary['episode_return']:+.2f}")
    if driver.stats.smoothed_rewards:
        st.metric("Moving Avg Reward", f"{driver.stats.smoothed_rewards[-1]:+.2f}")

    last = st.session_state.last_step
    if last is not None and last.action is not None:
        kind = VisualizationFormatter.classify_reward(last.reward)
        message = f"{last.action} → {last.next_state}: reward {last.reward:+.2f}"
        if kind == "terminal" and last.reward > 0:
            st.success(message)
        elif kind == "terminal":
            st.error(message)
        else:
            st.caption(message)

    st.subheader("Action Values at Agent")
    st.dataframe(
        pd.DataFrame(
            VisualizationFormatter.format_action_values(driver.manager, env).items(),
            columns=['Action', 'Value'],
        ),
        hide_index=True,
    )

    path = driver.greedy_path()
    st.caption("Greedy path: " + " → ".join(f"({x},{y})" for x, y in path))

if driver.manager.m_table is not None:
    st.subheader("Successor Representation")
    sr_cols = st.columns(2)
    with sr_cols[0]:
        sr_x = st.number_input("SR State X", min_value=0, max_value=env.grid_size - 1, value=env.agent_pos[0])
        sr_y = st.number_input("SR State Y", min_value=0, max_value=env.grid_size - 1, value=env.agent_pos[1])
        row = VisualizationFormatter.format_sr_row(driver.manager, env, (int(sr_x), int(sr_y)))
        st.plotly_chart(plot_grid(row['grid'], f"M[{row['state']}]"), width='stretch')
    with sr_cols[1]:
        w_grid = VisualizationFormatter.format_w_grid(driver.manager, env)
        st.plotly_chart(plot_grid(w_grid['grid'], "Reward Weights W", 'RdYlGn'), width='stretch')

reward_fig = plot_episode_rewards()
if reward_fig is not None:
    st.plotly_chart(reward_fig, width='stretch')
else:
    st.info("Run some episodes to see the reward curve.")
