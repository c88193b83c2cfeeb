"""
Configuration for a financial decision-path simulation.

The defaults reproduce the behaviour of the interactive dashboard: a one-year horizon in
monthly steps, a thousand search iterations and a moderate risk profile.
"""

from dataclasses import dataclass, field
from enum import Enum

from portfolio.state import Category, State


class RiskTolerance(str, Enum):
    """Risk profile of the investor, shaping both the action space and the valuation."""

    CONSERVATIVE = 'conservative'
    MODERATE = 'moderate'
    AGGRESSIVE = 'aggressive'


class Scenario(str, Enum):
    """
    Named market scenarios.

    Only RECESSION and GROWTH change the model. BASELINE is the neutral scenario.
    """

    BASELINE = 'baseline'
    RECESSION = 'recession'
    GROWTH = 'growth'


def default_initial_state() -> State:
    """
    Create the root state used when a caller does not provide one.

    Returns
    -------
    State
        A portfolio worth 100 with high initial confidence.
    """
    return State(id='root', value=100.0, category=Category.INITIAL, confidence=0.99)


@dataclass
class SimulationConfig:
    """
    Run-wide configuration of the search engine.

    Attributes
    ----------
    initial_state : State
        State of the root node.
    max_iterations : int
        Number of select/expand/simulate/backpropagate cycles to run.
    exploration_parameter : float
        Weight of the exploration term in UCB1.
    time_horizon : int
        Depth at which states become terminal (months by convention).
    scenarios : tuple[Scenario | str, ...]
        Active market scenarios. Unknown names are kept but have no effect.
    risk_tolerance : RiskTolerance
        Risk profile of the investor.
    seed : int | None
        Seed of the random generator. None draws fresh entropy.
    maintenance_interval : int
        Number of completed iterations between two transition probability updates.
    """

    initial_state: State = field(default_factory=default_initial_state)
    max_iterations: int = 1000
    exploration_parameter: float = 1.41
    time_horizon: int = 12
    scenarios: tuple[Scenario | str, ...] = (Scenario.BASELINE,)
    risk_tolerance: RiskTolerance = RiskTolerance.MODERATE
    seed: int | None = None
    maintenance_interval: int = 50

    def __post_init__(self):
        """Normalize enum-like fields passed as strings."""
        self.risk_tolerance = RiskTolerance(self.risk_tolerance)
        self.scenarios = tuple(_as_scenario(name) for name in self.scenarios)

    def has_scenario(self, scenario: Scenario) -> bool:
        """Check whether a scenario is active for this run."""
        return scenario in self.scenarios


def _as_scenario(name: Scenario | str) -> Scenario | str:
    try:
        return Scenario(name)
    except ValueError:
        return name


def default_config() -> SimulationConfig:
    """
    Create the default configuration.

    Returns
    -------
    SimulationConfig
        Configuration with every field at its default value.
    """
    return SimulationConfig()


def small_config(seed: int | None = None) -> SimulationConfig:
    """
    Create a smaller configuration for quick experiments and tests.

    Parameters
    ----------
    seed : int | None, optional
        Seed of the random generator, by default None.

    Returns
    -------
    SimulationConfig
        Configuration with 200 iterations over a six-step horizon.
    """
    return SimulationConfig(max_iterations=200, time_horizon=6, seed=seed)
