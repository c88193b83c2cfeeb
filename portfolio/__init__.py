"""
Toy financial model explored by the Monte Carlo Tree Search.

Submodules
----------
state : State descriptor and categories
config : Simulation configuration, risk tolerance and scenarios
core : Action space, stochastic transitions and valuation
"""

from .config import RiskTolerance, Scenario, SimulationConfig, default_config, default_initial_state, small_config
from .state import Category, State

__all__ = [
    'Category',
    'RiskTolerance',
    'Scenario',
    'SimulationConfig',
    'State',
    'default_config',
    'default_initial_state',
    'small_config',
]
