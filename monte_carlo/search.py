"""
Monte Carlo Tree Search (MCTS) phases for the financial decision tree.

This module provides the functions implementing each phase of an iteration: selection with
the UCB1 policy, expansion by one untried action, random rollout simulation and reward
backpropagation, plus the periodic refresh of the transition probabilities.

Every stochastic function receives the generator of the run, so that a seeded generator
reproduces the same tree.
"""

import logging
from collections import defaultdict
from math import inf, log, sqrt

from numpy.random import Generator

from portfolio.config import SimulationConfig
from portfolio.core import DISCOUNT_FACTOR, action_space, evaluate_state, is_terminal, next_state, reward
from portfolio.state import State

from .node import Node, Transition
from .tree import SearchTree

_logger = logging.getLogger(__name__)


def ucb1_score(child: Node, parent_visits: int, exploration_parameter: float) -> float:
    """
    Compute the UCB1 score of a child node.

    Parameters
    ----------
    child : Node
        The child to score.
    parent_visits : int
        Visit count of the parent node.
    exploration_parameter : float
        Weight of the exploration term.

    Returns
    -------
    float
        The UCB1 score, infinite for an unvisited child.

    Notes
    -----
    Uses the formula: total_reward / visits + c * sqrt(2 * log(parent_visits) / visits)
    """
    if child.visits == 0:
        return inf
    exploitation = child.total_reward / child.visits
    exploration = sqrt(2 * log(parent_visits) / child.visits)
    return exploitation + exploration_parameter * exploration


def ucb1_select(tree: SearchTree, node: Node, exploration_parameter: float) -> Node | None:
    """
    Select the child of a node with the greatest UCB1 score.

    Ties are resolved in favour of the first child in exploration order.

    Parameters
    ----------
    tree : SearchTree
        The tree owning the node.
    node : Node
        The parent node, visited at least once.
    exploration_parameter : float
        Weight of the exploration term.

    Returns
    -------
    Node | None
        The selected child, None if the node has no known child.
    """
    return max(
        tree.children_of(node),
        key=lambda child: ucb1_score(child, node.visits, exploration_parameter),
        default=None,
    )


def fully_expanded(node: Node, config: SimulationConfig) -> bool:
    """Check if the node has a child for every available action."""
    return len(node.children) >= len(action_space(node, config))


def select_node(tree: SearchTree, config: SimulationConfig) -> Node:
    """
    Descend from the root to the node to expand.

    Parameters
    ----------
    tree : SearchTree
        The search tree, with a root.
    config : SimulationConfig
        Configuration of the run.

    Returns
    -------
    Node
        The first node met that is unvisited or not fully expanded.

    Notes
    -----
    The fully expanded check precedes the UCB1 scoring, so every scored child has already
    been visited.
    """
    current = tree.root
    while current.visits > 0 and current.children and fully_expanded(current, config):
        child = ucb1_select(tree, current, config.exploration_parameter)
        if child is None:
            break
        current = child
    return current


def expand(tree: SearchTree, node: Node, config: SimulationConfig, generator: Generator) -> Node:
    """
    Add a child for one untried action.

    Parameters
    ----------
    tree : SearchTree
        The tree owning the node.
    node : Node
        The node returned by the selection.
    config : SimulationConfig
        Configuration of the run.
    generator : Generator
        Random generator used to pick the action and draw the next state.

    Returns
    -------
    Node
        The new child, or the node itself when it is terminal or every action is already
        represented among its children.
    """
    if is_terminal(node, config):
        return node

    tried = {child.action for child in tree.children_of(node)}
    untried = [action for action in action_space(node, config) if action not in tried]
    if not untried:
        return node

    action = untried[int(generator.integers(len(untried)))]
    state = next_state(node, action, config, generator, sequence=tree.node_count)
    child = tree.create_node(state, parent=node, action=action)

    # ##>: Uniform over the actions that were still untried.
    probability = 1.0 / len(untried)
    tree.add_transition(
        Transition(
            from_id=node.id,
            to_id=child.id,
            action=action,
            probability=probability,
            initial_probability=probability,
        )
    )
    _logger.debug('Expanded %s with %s -> %s (value=%.4f)', node.id, action.value, child.id, child.value)
    return child


def simulate(state: State, config: SimulationConfig, generator: Generator) -> float:
    """
    Perform a random rollout from a state.

    Parameters
    ----------
    state : State
        The starting state. Rollouts work on fresh state copies and never touch the tree.
    config : SimulationConfig
        Configuration of the run.
    generator : Generator
        Random generator used for actions, transitions and rewards.

    Returns
    -------
    float
        The discounted return of the rollout.

    Notes
    -----
    - A terminal state is evaluated directly.
    - Otherwise uniformly random actions are applied until a terminal state, accumulating the
      immediate reward of every visited state. The final evaluation is added and the sum is
      discounted by DISCOUNT_FACTOR ** steps_taken.
    - The evaluation itself is also discounted by the absolute depth of the final state.
    """
    if is_terminal(state, config):
        return evaluate_state(state, config, generator)

    current, steps, cumulative_reward = state, 0, 0.0
    while not is_terminal(current, config):
        actions = action_space(current, config)
        action = actions[int(generator.integers(len(actions)))]
        current = next_state(current, action, config, generator, sequence=steps)
        steps += 1
        cumulative_reward += reward(current, generator)

    cumulative_reward += evaluate_state(current, config, generator)
    return cumulative_reward * DISCOUNT_FACTOR**steps


def backpropagate(tree: SearchTree, node: Node, value: float) -> int:
    """
    Back-propagate a reward from a node up to the root.

    Parameters
    ----------
    tree : SearchTree
        The tree owning the node.
    node : Node
        The starting node (typically the expanded leaf).
    value : float
        The reward to add to every node of the path.

    Returns
    -------
    int
        Number of nodes updated. The walk stops early on an unknown parent identifier.
    """
    current, updated = node, 0
    while current is not None:
        current.update(value)
        updated += 1
        if current.parent is None:
            break
        parent = tree.get_node(current.parent)
        if parent is None:
            _logger.warning('Parent %s of node %s not found, stopping backpropagation', current.parent, current.id)
        current = parent
    return updated


def update_transition_probabilities(tree: SearchTree) -> None:
    """
    Refresh every transition probability from the relative visit counts of siblings.

    The probability of an edge becomes the visits of its target divided by the total visits
    of the children of its source. Sources without visited children are left untouched.
    """
    by_source: dict[str, list[Transition]] = defaultdict(list)
    for transition in tree.transitions:
        by_source[transition.from_id].append(transition)

    for source_id, transitions in by_source.items():
        source = tree.get_node(source_id)
        if source is None:
            continue

        total_visits = sum(child.visits for child in tree.children_of(source))
        if total_visits == 0:
            continue

        for transition in transitions:
            target = tree.get_node(transition.to_id)
            if target is not None:
                transition.refresh(target.visits / total_visits)
