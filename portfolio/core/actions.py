"""
Action model of the financial simulation, providing the actions available from a state and
the stochastic transition applied by each of them.
"""

from enum import Enum

from numpy.random import Generator

from portfolio.config import RiskTolerance, Scenario, SimulationConfig
from portfolio.state import Category, State

# ##>: Confidence lost at every step away from the root, and its ceiling.
CONFIDENCE_DECAY = 0.95
MAX_CONFIDENCE = 0.99


class Action(str, Enum):
    """Financial decisions available to the search."""

    HOLD = 'hold'
    INVEST = 'invest'
    DIVERSIFY = 'diversify'
    LEVERAGE = 'leverage'
    HEDGE = 'hedge'
    REALLOCATE = 'reallocate'
    DEFENSIVE = 'defensive'
    GROWTH = 'growth'


# ##>: Bounds (low, high) of the relative change drawn for each action.
PERTURBATIONS: dict[Action, tuple[float, float]] = {
    Action.HOLD: (-0.01, 0.03),
    Action.INVEST: (-0.04, 0.08),
    Action.DIVERSIFY: (-0.01, 0.05),
    Action.LEVERAGE: (-0.10, 0.15),
    Action.HEDGE: (-0.01, 0.02),
    Action.REALLOCATE: (-0.03, 0.05),
}
SCENARIO_PERTURBATIONS: dict[Action, tuple[Scenario, tuple[float, float], tuple[float, float]]] = {
    Action.DEFENSIVE: (Scenario.RECESSION, (-0.01, 0.04), (-0.02, 0.01)),
    Action.GROWTH: (Scenario.GROWTH, (-0.03, 0.12), (-0.05, 0.02)),
}
# ##>: Category produced by each action. None keeps the category of the current state.
CATEGORIES: dict[Action, Category | None] = {
    Action.HOLD: None,
    Action.INVEST: Category.INVESTMENT,
    Action.DIVERSIFY: Category.DIVERSIFIED,
    Action.LEVERAGE: Category.LEVERAGED,
    Action.HEDGE: Category.HEDGED,
    Action.REALLOCATE: Category.REALLOCATED,
    Action.DEFENSIVE: Category.DEFENSIVE,
    Action.GROWTH: Category.GROWTH,
}


def action_space(state: State, config: SimulationConfig) -> list[Action]:
    """
    List the actions available from a state.

    Parameters
    ----------
    state : State
        The current state.
    config : SimulationConfig
        Configuration of the run (horizon, risk tolerance and scenarios).

    Returns
    -------
    list[Action]
        Available actions, in a stable order.

    Notes
    -----
    Holding and reallocating are always possible. Investing and diversifying, and the risk
    specific leverage and hedge, require at least two steps left before the horizon.
    """
    actions = [Action.HOLD]

    if state.depth < config.time_horizon - 1:
        actions.extend([Action.INVEST, Action.DIVERSIFY])
        if config.risk_tolerance == RiskTolerance.AGGRESSIVE:
            actions.append(Action.LEVERAGE)
        if config.risk_tolerance == RiskTolerance.CONSERVATIVE:
            actions.append(Action.HEDGE)

    actions.append(Action.REALLOCATE)

    if config.has_scenario(Scenario.RECESSION):
        actions.append(Action.DEFENSIVE)
    if config.has_scenario(Scenario.GROWTH):
        actions.append(Action.GROWTH)

    return actions


def perturbation_bounds(action: Action, config: SimulationConfig) -> tuple[float, float]:
    """
    Get the bounds of the relative value change drawn for an action.

    Parameters
    ----------
    action : Action
        The action to apply.
    config : SimulationConfig
        Configuration of the run; scenario actions perform better in their own scenario.

    Returns
    -------
    tuple[float, float]
        Lower and upper bound of the uniform draw.

    Raises
    ------
    ValueError
        If the action is unknown.
    """
    action = Action(action)
    if action in SCENARIO_PERTURBATIONS:
        scenario, favourable, unfavourable = SCENARIO_PERTURBATIONS[action]
        return favourable if config.has_scenario(scenario) else unfavourable
    return PERTURBATIONS[action]


def next_state(state: State, action: Action, config: SimulationConfig, generator: Generator, sequence: int) -> State:
    """
    Apply an action to a state.

    Parameters
    ----------
    state : State
        The current state. It is not modified.
    action : Action
        The action to apply.
    config : SimulationConfig
        Configuration of the run.
    generator : Generator
        Random generator used for the value change.
    sequence : int
        Monotonic counter making the new identifier unique.

    Returns
    -------
    State
        The next state, one level deeper than the current one.
    """
    action = Action(action)
    low, high = perturbation_bounds(action, config)
    value = max(0.0, state.value * (1 + generator.uniform(low, high)))

    return State(
        id=f'{state.id}_{action.value}_{sequence}',
        value=value,
        category=CATEGORIES[action] or state.category,
        depth=state.depth + 1,
        confidence=min(state.confidence * CONFIDENCE_DECAY, MAX_CONFIDENCE),
    )
