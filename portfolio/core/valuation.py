"""
Valuation of financial states: terminal value, per-step reward and terminality.
"""

from numpy.random import Generator

from portfolio.config import RiskTolerance, Scenario, SimulationConfig
from portfolio.core.actions import action_space
from portfolio.state import State

DISCOUNT_FACTOR = 0.95

RISK_MULTIPLIERS = {
    RiskTolerance.CONSERVATIVE: 0.8,
    RiskTolerance.MODERATE: 1.0,
    RiskTolerance.AGGRESSIVE: 1.2,
}


def is_terminal(state: State, config: SimulationConfig) -> bool:
    """Check if a state reached the horizon or has no action left."""
    return state.depth >= config.time_horizon or not action_space(state, config)


def scenario_multiplier(config: SimulationConfig, generator: Generator) -> float:
    """
    Draw the multiplicative adjustment of the active scenarios.

    Parameters
    ----------
    config : SimulationConfig
        Configuration of the run.
    generator : Generator
        Random generator used for the draws.

    Returns
    -------
    float
        Product of an independent draw per active scenario (1.0 when none is active).
    """
    multiplier = 1.0
    if config.has_scenario(Scenario.RECESSION):
        multiplier *= generator.uniform(0.7, 1.0)
    if config.has_scenario(Scenario.GROWTH):
        multiplier *= generator.uniform(1.1, 1.4)
    return multiplier


def evaluate_state(state: State, config: SimulationConfig, generator: Generator) -> float:
    """
    Evaluate a state.

    Parameters
    ----------
    state : State
        The state to evaluate.
    config : SimulationConfig
        Configuration of the run.
    generator : Generator
        Random generator used by the scenario adjustment.

    Returns
    -------
    float
        Risk and scenario adjusted value, discounted by the absolute depth of the state.
    """
    risk = RISK_MULTIPLIERS[config.risk_tolerance]
    return state.value * risk * scenario_multiplier(config, generator) * DISCOUNT_FACTOR**state.depth


def reward(state: State, generator: Generator) -> float:
    """Noisy immediate reward proportional to the value of the state, biased upward."""
    return state.value * 0.05 * (generator.random() - 0.3)
