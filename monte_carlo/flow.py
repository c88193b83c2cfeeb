"""
Conversion of the search tree into Sankey-style flow data for visualisation.
"""

from dataclasses import dataclass, field

from .types import Progress, TreeSnapshot

# ##>: Probabilities are scaled up so that links stay visible.
LINK_SCALE = 1000.0


@dataclass
class FlowNode:
    """A tree node seen as a flow node."""

    name: str
    group: str
    value: float
    predicted_value: float
    confidence: float


@dataclass
class FlowLink:
    """A parent to child edge, indexing into the flow nodes."""

    source: int
    target: int
    value: float
    highly_visited: bool
    original_value: float


@dataclass
class FlowData:
    """Flow nodes and links of a tree, with the confidence of the search."""

    nodes: list[FlowNode] = field(default_factory=list)
    links: list[FlowLink] = field(default_factory=list)
    confidence: float = 0.0


def to_flow_data(snapshot: TreeSnapshot, progress: Progress) -> FlowData:
    """
    Convert a snapshot of the tree into flow data.

    Parameters
    ----------
    snapshot : TreeSnapshot
        Nodes and transitions of the tree.
    progress : Progress
        Progress of the run, providing the confidence of the search.

    Returns
    -------
    FlowData
        One flow node per tree node, in tree order, and one link per edge with a recorded
        transition. Link values are scaled transition probabilities.
    """
    index = {node.id: position for position, node in enumerate(snapshot.nodes)}
    edges = {(transition.from_id, transition.to_id): transition for transition in snapshot.transitions}

    flow = FlowData(confidence=progress.confidence)
    for node in snapshot.nodes:
        flow.nodes.append(
            FlowNode(
                name=f'State {node.id}',
                group=node.category.value,
                value=node.value,
                predicted_value=node.expected_value,
                confidence=node.confidence,
            )
        )

    for node in snapshot.nodes:
        for child_id in node.children:
            transition = edges.get((node.id, child_id))
            if child_id not in index or transition is None:
                continue
            flow.links.append(
                FlowLink(
                    source=index[node.id],
                    target=index[child_id],
                    value=transition.probability * LINK_SCALE,
                    highly_visited=transition.is_highly_visited,
                    original_value=transition.initial_probability * LINK_SCALE,
                )
            )

    return flow
