"""
Result types returned by the search engine.
"""

from dataclasses import dataclass, field
from typing import NamedTuple

from portfolio.core import Action

from .node import Node, Transition


class ConfidenceInterval(NamedTuple):
    """Bounds of a 95% confidence interval."""

    lower: float
    upper: float


class PathStep(NamedTuple):
    """One edge of the optimal path."""

    from_id: str
    to_id: str
    action: Action | str
    expected_value: float
    confidence: float


@dataclass
class Progress:
    """
    Progress of a simulation run.

    Attributes
    ----------
    completed_iterations : int
        Iterations run so far.
    max_iterations : int
        Iteration budget.
    progress : float
        Completed fraction of the budget.
    time_elapsed : float
        Seconds since initialization.
    estimated_time_remaining : float
        Seconds left, extrapolated from the average iteration duration.
    confidence : float
        Confidence of the search, growing with the completed iterations.
    confidence_interval : ConfidenceInterval
        95% interval around the expected value of the root.
    """

    completed_iterations: int
    max_iterations: int
    progress: float
    time_elapsed: float
    estimated_time_remaining: float
    confidence: float
    confidence_interval: ConfidenceInterval


@dataclass
class RiskMetrics:
    """Risk statistics over the simulated returns, all zero when there is no sample."""

    mean_return: float = 0.0
    volatility: float = 0.0
    sharpe_ratio: float = 0.0
    value_at_risk: float = 0.0
    max_drawdown: float = 0.0


@dataclass
class SimulationStats:
    """Summary of a run."""

    iterations: int
    duration: float
    node_count: int
    confidence: float


@dataclass
class TreeSnapshot:
    """
    View over the current tree.

    The lists are shallow copies: nodes and transitions are the live records of the tree.
    """

    nodes: list[Node] = field(default_factory=list)
    transitions: list[Transition] = field(default_factory=list)
    root: Node | None = None
    stats: SimulationStats | None = None
