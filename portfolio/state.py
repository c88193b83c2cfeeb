"""
Financial state descriptor shared by the action model and the search tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Category(str, Enum):
    """Tag describing which action produced a state."""

    DEFAULT = 'default'
    INITIAL = 'initial'
    INVESTMENT = 'investment'
    DIVERSIFIED = 'diversified'
    LEVERAGED = 'leveraged'
    HEDGED = 'hedged'
    REALLOCATED = 'reallocated'
    DEFENSIVE = 'defensive'
    GROWTH = 'growth'


@dataclass(kw_only=True)
class State:
    """
    A point-in-time portfolio state.

    Attributes
    ----------
    id : str | None
        Identifier of the state. The search tree assigns one when it is missing.
    value : float
        Raw magnitude of the state (simulated portfolio value).
    category : Category
        Which action produced this state.
    depth : int
        Distance from the root state.
    confidence : float
        Confidence in the state, decaying with depth.
    """

    id: str | None = None
    value: float = 0.0
    category: Category = Category.DEFAULT
    depth: int = 0
    confidence: float = 0.5

    def __post_init__(self):
        """Coerce plain strings to a category."""
        self.category = Category(self.category)
