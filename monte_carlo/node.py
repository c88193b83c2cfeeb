"""
Monte Carlo Tree Search node and transition records for the financial decision tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from portfolio.core import Action
from portfolio.state import State


@dataclass(kw_only=True)
class Node(State):
    """
    A state stored in the search tree.

    Nodes reference each other by identifier only: the tree owns every node, parents are
    never owned by their children.

    Attributes
    ----------
    visits : int
        Number of times the node has been visited during search.
    total_reward : float
        Accumulated rewards from simulations.
    children : list[str]
        Identifiers of the child nodes, in exploration order.
    parent : str | None
        Identifier of the parent node, None for the root.
    action : Action | None
        The action that produced this node, None for the root.

    Methods
    -------
    update(reward)
        Update node statistics after a simulation.
    """

    visits: int = 0
    total_reward: float = 0.0
    children: list[str] = field(default_factory=list)
    parent: str | None = None
    action: Action | None = None

    @property
    def expected_value(self) -> float:
        """Average reward per visit."""
        return self.total_reward / max(self.visits, 1)

    def update(self, reward: float) -> None:
        """
        Update node statistics after a simulation.

        Parameters
        ----------
        reward : float
            The reward received from the simulation.
        """
        self.total_reward += reward
        self.visits += 1

    def to_state(self) -> State:
        """Detach a plain state copy, suitable for rollouts."""
        return State(
            id=self.id, value=self.value, category=self.category, depth=self.depth, confidence=self.confidence
        )


@dataclass(kw_only=True)
class Transition:
    """
    Record of an expansion from a parent to a child node.

    Attributes
    ----------
    from_id : str
        Identifier of the parent node.
    to_id : str
        Identifier of the child node.
    action : Action
        The action applied.
    probability : float
        Share of the parent's child visits going to the child, refreshed periodically.
    initial_probability : float
        Uniform probability at expansion time.
    is_highly_visited : bool
        Latched once the probability exceeds 1.5 times its initial value.
    """

    from_id: str
    to_id: str
    action: Action
    probability: float
    initial_probability: float
    is_highly_visited: bool = False

    def refresh(self, probability: float) -> None:
        """Set a recomputed probability and latch the highly visited flag."""
        self.probability = probability
        if probability > 1.5 * self.initial_probability:
            self.is_highly_visited = True
