"""
Financial state/action model: available actions, stochastic transitions and valuation.
"""

from .actions import Action, action_space, next_state, perturbation_bounds
from .valuation import DISCOUNT_FACTOR, evaluate_state, is_terminal, reward

__all__ = [
    'Action',
    'action_space',
    'next_state',
    'perturbation_bounds',
    'DISCOUNT_FACTOR',
    'evaluate_state',
    'is_terminal',
    'reward',
]
