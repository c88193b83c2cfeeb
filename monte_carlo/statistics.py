"""
Statistics derived from the search tree: confidence of the search, optimal path and risk
metrics over the simulated returns.
"""

import logging
from math import sqrt

import numpy as np

from portfolio.config import SimulationConfig
from portfolio.core import is_terminal

from .node import Node
from .tree import SearchTree
from .types import ConfidenceInterval, PathStep, RiskMetrics

_logger = logging.getLogger(__name__)

# ##>: Two-sided 95% normal quantile.
Z_95 = 1.96
RISK_FREE_RATE = 0.02
VAR_QUANTILE = 0.05


def search_confidence(completed_iterations: int, max_iterations: int) -> float:
    """
    Confidence of the search, from 0.5 before any iteration up to 0.99.

    Parameters
    ----------
    completed_iterations : int
        Iterations run so far.
    max_iterations : int
        Iteration budget. A non-positive budget counts as exhausted.

    Returns
    -------
    float
        min(0.99, 0.5 + 0.5 * completed / budget)
    """
    ratio = completed_iterations / max_iterations if max_iterations > 0 else 1.0
    return min(0.99, 0.5 + 0.5 * ratio)


def confidence_interval(root: Node | None) -> ConfidenceInterval:
    """
    Approximate 95% confidence interval around the expected value of the root.

    Parameters
    ----------
    root : Node | None
        The root of the tree.

    Returns
    -------
    ConfidenceInterval
        mean ± 1.96 * sqrt(|mean| / (visits + 1)), or (0, 0) for a missing or unvisited root.
    """
    if root is None or root.visits == 0:
        return ConfidenceInterval(lower=0.0, upper=0.0)

    mean = root.expected_value
    std_dev = sqrt(abs(mean) / (root.visits + 1))
    return ConfidenceInterval(lower=mean - Z_95 * std_dev, upper=mean + Z_95 * std_dev)


def optimal_path(tree: SearchTree) -> list[PathStep]:
    """
    Follow the visited child with the highest expected value from the root.

    Parameters
    ----------
    tree : SearchTree
        The search tree.

    Returns
    -------
    list[PathStep]
        Edges of the path, empty when the root has no visited child. The action of an edge
        missing from the transition log is reported as 'unknown'.
    """
    path: list[PathStep] = []
    current = tree.root

    while current is not None and current.children:
        visited = [child for child in tree.children_of(current) if child.visits > 0]
        if not visited:
            break
        best = max(visited, key=lambda child: child.expected_value)

        transition = tree.get_transition(current.id, best.id)
        path.append(
            PathStep(
                from_id=current.id,
                to_id=best.id,
                action=transition.action if transition is not None else 'unknown',
                expected_value=best.expected_value,
                confidence=best.confidence,
            )
        )
        current = best

    return path


def simulated_returns(tree: SearchTree, config: SimulationConfig) -> np.ndarray:
    """
    Collect the return rates of the visited terminal nodes, relative to the root value.

    Parameters
    ----------
    tree : SearchTree
        The search tree.
    config : SimulationConfig
        Configuration of the run, defining terminality.

    Returns
    -------
    np.ndarray
        One return rate per visited node that is terminal or at the horizon.
    """
    root = tree.root
    if root is None:
        return np.empty(0)
    if root.value == 0:
        _logger.warning('Root value is zero, return rates are undefined')
        return np.empty(0)

    values = [
        node.value
        for node in tree
        if node.visits > 0 and (is_terminal(node, config) or node.depth == config.time_horizon)
    ]
    return (np.asarray(values, dtype=float) - root.value) / root.value


def max_drawdown(returns: np.ndarray) -> float:
    """
    Largest peak-to-trough decline of the value path compounding the returns from 1.

    Parameters
    ----------
    returns : np.ndarray
        Sequence of return rates, compounded in the given order.

    Returns
    -------
    float
        Maximum relative drawdown, 0 for a path that never declines.
    """
    path = np.concatenate(([1.0], np.cumprod(1.0 + returns)))
    peaks = np.maximum.accumulate(path)
    return float(np.max((peaks - path) / peaks))


def risk_metrics(tree: SearchTree, config: SimulationConfig) -> RiskMetrics:
    """
    Compute risk metrics over the simulated returns.

    Parameters
    ----------
    tree : SearchTree
        The search tree.
    config : SimulationConfig
        Configuration of the run.

    Returns
    -------
    RiskMetrics
        Mean return, population volatility, Sharpe ratio, 95% value at risk and maximum
        drawdown. All zero when no visited terminal node exists.

    Notes
    -----
    - Value at risk is the absolute value of the 5th percentile of the sorted returns,
      taken at index floor(n * 0.05).
    - The drawdown path compounds the returns in sorted order.
    - A zero volatility yields a zero Sharpe ratio.
    """
    returns = np.sort(simulated_returns(tree, config))
    if returns.size == 0:
        return RiskMetrics()

    mean_return = float(np.mean(returns))
    volatility = float(np.std(returns))
    sharpe_ratio = (mean_return - RISK_FREE_RATE) / volatility if volatility > 0 else 0.0
    value_at_risk = abs(float(returns[int(returns.size * VAR_QUANTILE)]))

    return RiskMetrics(
        mean_return=mean_return,
        volatility=volatility,
        sharpe_ratio=sharpe_ratio,
        value_at_risk=value_at_risk,
        max_drawdown=max_drawdown(returns),
    )
