"""
Tests for the MCTS phases (UCB1 selection, expansion, simulation, backpropagation) and the
refresh of the transition probabilities.
"""

from math import inf, log, sqrt
from unittest import TestCase, main

from numpy.random import default_rng

from monte_carlo import SearchTree, Transition
from monte_carlo.search import (
    backpropagate,
    expand,
    select_node,
    simulate,
    ucb1_score,
    ucb1_select,
    update_transition_probabilities,
)
from portfolio import SimulationConfig, State
from portfolio.core import Action


def make_tree(value: float = 100.0) -> SearchTree:
    """Create a tree holding only a root."""
    tree = SearchTree()
    tree.create_node(State(id='root', value=value, category='initial', confidence=0.99))
    return tree


class TestUCB1(TestCase):
    """Test the UCB1 formula and child selection."""

    def setUp(self):
        """Create a root with two children."""
        self.tree = make_tree()
        self.root = self.tree.root
        self.first = self.tree.create_node(State(id='a'), parent=self.root, action=Action.HOLD)
        self.second = self.tree.create_node(State(id='b'), parent=self.root, action=Action.INVEST)

    def test_unvisited_child_scores_infinite(self):
        """Unvisited children are always tried first."""
        self.assertEqual(ucb1_score(self.first, parent_visits=10, exploration_parameter=1.41), inf)

    def test_score_formula(self):
        """Score is the mean reward plus the weighted exploration term."""
        self.first.visits, self.first.total_reward = 4, 8.0

        score = ucb1_score(self.first, parent_visits=10, exploration_parameter=1.41)

        self.assertAlmostEqual(score, 2.0 + 1.41 * sqrt(2 * log(10) / 4))

    def test_higher_mean_is_selected(self):
        """With equal visits the higher mean wins."""
        self.root.visits = 4
        self.first.visits, self.first.total_reward = 2, 2.0
        self.second.visits, self.second.total_reward = 2, 10.0

        self.assertIs(ucb1_select(self.tree, self.root, 1.41), self.second)

    def test_ties_go_to_first_child(self):
        """Equal scores resolve to the first child in exploration order."""
        self.root.visits = 4
        for child in (self.first, self.second):
            child.visits, child.total_reward = 2, 6.0

        self.assertIs(ucb1_select(self.tree, self.root, 1.41), self.first)


class TestSelection(TestCase):
    """Test the descent from the root."""

    def setUp(self):
        """Create a moderate baseline configuration."""
        self.config = SimulationConfig(time_horizon=12)
        self.generator = default_rng(0)

    def test_unvisited_root_is_selected(self):
        """Selection stops at an unvisited root."""
        tree = make_tree()

        self.assertIs(select_node(tree, self.config), tree.root)

    def test_partially_expanded_node_is_selected(self):
        """Selection stops at a node that still has untried actions."""
        tree = make_tree()
        tree.root.visits = 3
        child = expand(tree, tree.root, self.config, self.generator)
        child.visits, child.total_reward = 1, 50.0

        self.assertIs(select_node(tree, self.config), tree.root)

    def test_fully_expanded_root_is_descended(self):
        """Selection descends into the best child of a fully expanded node."""
        tree = make_tree()
        root = tree.root
        children = [expand(tree, root, self.config, self.generator) for _ in range(4)]
        root.visits = 4
        for position, child in enumerate(children):
            child.visits, child.total_reward = 1, float(position)

        # ##>: Equal exploration terms, the highest mean wins.
        self.assertIs(select_node(tree, self.config), children[-1])


class TestExpansion(TestCase):
    """Test the expansion of one untried action."""

    def setUp(self):
        """Create a root under a moderate baseline configuration."""
        self.config = SimulationConfig(time_horizon=12)
        self.generator = default_rng(1)
        self.tree = make_tree()

    def test_each_action_is_expanded_once(self):
        """Expansion tries every action once, then returns the node itself."""
        root = self.tree.root
        children = [expand(self.tree, root, self.config, self.generator) for _ in range(4)]

        self.assertEqual(len(root.children), 4)
        self.assertEqual(
            {child.action for child in children}, {Action.HOLD, Action.INVEST, Action.DIVERSIFY, Action.REALLOCATE}
        )
        # ##>: Probabilities are uniform over the untried actions at expansion time.
        probabilities = [transition.probability for transition in self.tree.transitions]
        self.assertEqual(len(probabilities), 4)
        for probability, expected in zip(probabilities, [1 / 4, 1 / 3, 1 / 2, 1.0]):
            self.assertAlmostEqual(probability, expected)

        self.assertIs(expand(self.tree, root, self.config, self.generator), root)
        self.assertEqual(len(self.tree), 5)

    def test_child_state(self):
        """The child is one level deeper and linked to a transition."""
        child = expand(self.tree, self.tree.root, self.config, self.generator)

        self.assertEqual(child.depth, 1)
        self.assertEqual(child.parent, 'root')
        transition = self.tree.get_transition('root', child.id)
        self.assertIsNotNone(transition)
        self.assertEqual(transition.action, child.action)
        self.assertFalse(transition.is_highly_visited)

    def test_terminal_node_is_not_expanded(self):
        """Terminal nodes are returned unchanged."""
        config = SimulationConfig(time_horizon=0)

        self.assertIs(expand(self.tree, self.tree.root, config, self.generator), self.tree.root)
        self.assertEqual(len(self.tree), 1)
        self.assertEqual(self.tree.transitions, [])


class TestSimulation(TestCase):
    """Test random rollouts."""

    def setUp(self):
        """Create a seeded generator."""
        self.generator = default_rng(2)

    def test_terminal_state_is_evaluated(self):
        """A terminal state returns its evaluation."""
        value = simulate(State(value=100.0), SimulationConfig(time_horizon=0), self.generator)

        self.assertAlmostEqual(value, 100.0)

    def test_one_step_rollout_bounds(self):
        """A one-step rollout stays within the bounds of hold and reallocate."""
        config = SimulationConfig(time_horizon=1)

        for _ in range(200):
            value = simulate(State(value=100.0), config, self.generator)
            # ##>: 97 * (0.95 - 0.015) * 0.95 and 105 * (0.95 + 0.035) * 0.95.
            self.assertTrue(86.0 <= value <= 98.3, value)

    def test_rollout_leaves_tree_untouched(self):
        """Rollouts never create nodes."""
        tree = make_tree()
        config = SimulationConfig(time_horizon=6)

        simulate(tree.root, config, self.generator)

        self.assertEqual(len(tree), 1)
        self.assertEqual(tree.root.visits, 0)


class TestBackpropagation(TestCase):
    """Test the propagation of rewards to the root."""

    def setUp(self):
        """Create a three-level chain."""
        self.tree = make_tree()
        self.child = self.tree.create_node(State(id='a'), parent=self.tree.root, action=Action.HOLD)
        self.leaf = self.tree.create_node(State(id='b'), parent=self.child, action=Action.HOLD)

    def test_path_to_root_is_updated(self):
        """Every node of the path receives the reward."""
        updated = backpropagate(self.tree, self.leaf, 5.0)

        self.assertEqual(updated, 3)
        for node in (self.leaf, self.child, self.tree.root):
            self.assertEqual(node.visits, 1)
            self.assertAlmostEqual(node.total_reward, 5.0)

    def test_unknown_parent_stops_propagation(self):
        """Propagation stops at an unknown parent identifier."""
        self.leaf.parent = 'ghost'

        with self.assertLogs('monte_carlo.search', level='WARNING'):
            updated = backpropagate(self.tree, self.leaf, 5.0)

        self.assertEqual(updated, 1)
        self.assertEqual(self.child.visits, 0)


class TestTransitionRefresh(TestCase):
    """Test the refresh of transition probabilities from visit counts."""

    def setUp(self):
        """Create a root with two children and their transitions."""
        self.tree = make_tree()
        root = self.tree.root
        self.first = self.tree.create_node(State(id='a'), parent=root, action=Action.HOLD)
        self.second = self.tree.create_node(State(id='b'), parent=root, action=Action.INVEST)
        for child in (self.first, self.second):
            self.tree.add_transition(
                Transition(
                    from_id='root', to_id=child.id, action=child.action, probability=0.5, initial_probability=0.5
                )
            )

    def test_probabilities_follow_visit_shares(self):
        """Probabilities become the visit shares of siblings."""
        self.first.visits, self.second.visits = 4, 1

        update_transition_probabilities(self.tree)

        first, second = self.tree.transitions
        self.assertAlmostEqual(first.probability, 0.8)
        self.assertAlmostEqual(second.probability, 0.2)
        self.assertTrue(first.is_highly_visited)
        self.assertFalse(second.is_highly_visited)

    def test_highly_visited_flag_is_latched(self):
        """A later drop in probability keeps the flag set."""
        self.first.visits, self.second.visits = 4, 1
        update_transition_probabilities(self.tree)
        self.first.visits, self.second.visits = 4, 16
        update_transition_probabilities(self.tree)

        first, _ = self.tree.transitions
        self.assertAlmostEqual(first.probability, 0.2)
        self.assertTrue(first.is_highly_visited)

    def test_unvisited_siblings_are_left_untouched(self):
        """Sources without visited children keep their probabilities."""
        update_transition_probabilities(self.tree)

        self.assertEqual([transition.probability for transition in self.tree.transitions], [0.5, 0.5])


if __name__ == '__main__':
    main()
