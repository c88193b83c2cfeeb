"""
Append-only store of the search tree nodes and of the transition log.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from portfolio.core import Action
from portfolio.state import State

from .node import Node, Transition

_logger = logging.getLogger(__name__)


@dataclass
class SearchTree:
    """
    Owner of every node of a simulation run.

    Nodes are stored by identifier in insertion order; there is no removal operation.

    Attributes
    ----------
    nodes : dict[str, Node]
        Every node of the tree, keyed by identifier.
    transitions : list[Transition]
        Log of expansions, in creation order.
    root_id : str | None
        Identifier of the root node.
    node_count : int
        Number of nodes ever created, used to mint identifiers.
    """

    nodes: dict[str, Node] = field(default_factory=dict)
    transitions: list[Transition] = field(default_factory=list)
    root_id: str | None = None
    node_count: int = 0
    _edges: dict[tuple[str, str], Transition] = field(default_factory=dict, repr=False)

    @property
    def root(self) -> Node | None:
        """The root node, if created."""
        return self.get_node(self.root_id) if self.root_id is not None else None

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes.values())

    def create_node(self, state: State, parent: Node | None = None, action: Action | None = None) -> Node:
        """
        Create a node from a state descriptor and record it.

        Parameters
        ----------
        state : State
            Descriptor of the node. A fresh identifier is assigned when it has none.
        parent : Node | None, optional
            Parent node. The new node is appended to its children and placed one level deeper.
            Without a parent the node becomes the root.
        action : Action | None, optional
            The action that produced the state.

        Returns
        -------
        Node
            The newly created node.

        Raises
        ------
        ValueError
            If a node with the same identifier already exists.
        """
        node_id = state.id if state.id is not None else f'node_{self.node_count}'
        if node_id in self.nodes:
            raise ValueError(f'Node {node_id!r} already exists in the tree.')

        node = Node(
            id=node_id,
            value=state.value,
            category=state.category,
            depth=parent.depth + 1 if parent is not None else state.depth,
            confidence=state.confidence,
            parent=parent.id if parent is not None else None,
            action=action,
        )
        self.nodes[node_id] = node
        self.node_count += 1

        if parent is None:
            self.root_id = node_id
        else:
            parent.children.append(node_id)
        return node

    def get_node(self, node_id: str) -> Node | None:
        """Look a node up by identifier, None when it does not exist."""
        return self.nodes.get(node_id)

    def children_of(self, node: Node) -> Iterator[Node]:
        """
        Iterate over the children of a node, in exploration order.

        Unknown child identifiers are skipped.
        """
        for child_id in node.children:
            child = self.nodes.get(child_id)
            if child is None:
                _logger.warning('Child %s of node %s not found in the tree', child_id, node.id)
                continue
            yield child

    def add_transition(self, transition: Transition) -> Transition:
        """Append a transition to the log."""
        self.transitions.append(transition)
        self._edges[(transition.from_id, transition.to_id)] = transition
        return transition

    def get_transition(self, from_id: str, to_id: str) -> Transition | None:
        """Find the transition recorded for an edge, None when there is none."""
        return self._edges.get((from_id, to_id))
