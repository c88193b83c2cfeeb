"""
Monte Carlo Tree Search over financial decision paths.

This module provides a complete MCTS implementation with:
- An append-only search tree referencing nodes by identifier
- UCB1 selection, single-action expansion, random rollouts and backpropagation
- Periodic refresh of the transition probabilities from sibling visit counts
- Progress, optimal path and risk metrics (volatility, Sharpe ratio, VaR, max drawdown)
- A batch runner publishing flow data for visualisation
"""

from .engine import MCTSEngine
from .flow import FlowData, FlowLink, FlowNode, to_flow_data
from .node import Node, Transition
from .runner import EventType, RunnerEvent, SimulationRunner
from .tree import SearchTree
from .types import ConfidenceInterval, PathStep, Progress, RiskMetrics, SimulationStats, TreeSnapshot

__all__ = [
    'ConfidenceInterval',
    'EventType',
    'FlowData',
    'FlowLink',
    'FlowNode',
    'MCTSEngine',
    'Node',
    'PathStep',
    'Progress',
    'RiskMetrics',
    'RunnerEvent',
    'SearchTree',
    'SimulationRunner',
    'SimulationStats',
    'Transition',
    'TreeSnapshot',
    'to_flow_data',
]
