"""
Monte Carlo Tree Search engine for financial decision paths.

The engine runs one select/expand/simulate/backpropagate cycle per call, so that the caller
controls pacing. Results can be queried at any time and reflect the tree built so far.
"""

import logging
import time
from collections.abc import Callable

from numpy.random import PCG64DXSM, Generator, default_rng

from portfolio.config import SimulationConfig

from .node import Node
from .search import backpropagate, expand, select_node, simulate, update_transition_probabilities
from .statistics import confidence_interval, optimal_path, risk_metrics, search_confidence
from .tree import SearchTree
from .types import PathStep, Progress, RiskMetrics, SimulationStats, TreeSnapshot

_logger = logging.getLogger(__name__)


class MCTSEngine:
    """
    Single-use search engine simulating financial decisions under uncertainty.

    Methods
    -------
    initialize(config)
        Create the root and start the run.
    run_iteration()
        Perform one full search cycle.
    stop()
        Cooperatively stop the run.
    is_complete()
        Check whether the budget is exhausted or the run stopped.
    """

    def __init__(
        self,
        config: SimulationConfig | None = None,
        generator: Generator | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        """
        Initialize the engine.

        Parameters
        ----------
        config : SimulationConfig | None, optional
            Configuration of the run, by default the default configuration.
        generator : Generator | None, optional
            Random generator shared by every run of the engine. By default a fresh one is
            created at each initialization, seeded with the configured seed.
        clock : Callable[[], float], optional
            Clock in seconds used for timing statistics only, by default time.perf_counter.
        """
        self._config = config or SimulationConfig()
        self._injected_generator = generator
        self._generator = generator
        self._clock = clock
        self._tree = SearchTree()
        self._completed_iterations = 0
        self._start_time = 0.0
        self._running = False
        self._confidence = 0.5

    @property
    def config(self) -> SimulationConfig:
        """Configuration of the run."""
        return self._config

    @property
    def tree(self) -> SearchTree:
        """The search tree."""
        return self._tree

    @property
    def completed_iterations(self) -> int:
        """Number of iterations run so far."""
        return self._completed_iterations

    @property
    def is_running(self) -> bool:
        """Whether the run is initialized and not stopped."""
        return self._running

    def initialize(self, config: SimulationConfig | None = None) -> Node:
        """
        Create the root and start the run.

        Parameters
        ----------
        config : SimulationConfig | None, optional
            Replaces the configuration given at construction. Each call starts a new run with
            a fresh tree and, unless a generator was injected, a generator reseeded from the
            configuration.

        Returns
        -------
        Node
            The root node.
        """
        if config is not None:
            self._config = config
        if self._injected_generator is not None:
            self._generator = self._injected_generator
        else:
            self._generator = default_rng(PCG64DXSM(self._config.seed))

        self._tree = SearchTree()
        root = self._tree.create_node(self._config.initial_state)
        self._completed_iterations = 0
        self._confidence = 0.5
        self._start_time = self._clock()
        self._running = True

        _logger.info(
            'Simulation initialized: root=%s, max_iterations=%d, horizon=%d, risk=%s',
            root.id,
            self._config.max_iterations,
            self._config.time_horizon,
            self._config.risk_tolerance.value,
        )
        return root

    def run_iteration(self) -> bool:
        """
        Perform one select/expand/simulate/backpropagate cycle.

        Returns
        -------
        bool
            False, without touching the tree, when the run is complete or stopped.
        """
        if self.is_complete():
            return False

        # ##>: Select a node and expand.
        node = select_node(self._tree, self._config)
        node = expand(self._tree, node, self._config, self._generator)

        # ##>: Simulate and back-propagate.
        reward = simulate(node, self._config, self._generator)
        backpropagate(self._tree, node, reward)

        self._completed_iterations += 1
        self._confidence = search_confidence(self._completed_iterations, self._config.max_iterations)

        # ##>: Transition probabilities are refreshed in batches.
        interval = self._config.maintenance_interval
        if interval > 0 and self._completed_iterations % interval == 0:
            update_transition_probabilities(self._tree)
            _logger.debug('Transition probabilities refreshed after %d iterations', self._completed_iterations)

        if self.is_complete():
            _logger.info('Simulation complete: %d iterations, %d nodes', self._completed_iterations, len(self._tree))
        return True

    def stop(self) -> None:
        """Stop the run; later iterations return False."""
        if self._running:
            _logger.info('Simulation stopped after %d iterations', self._completed_iterations)
        self._running = False

    def is_complete(self) -> bool:
        """Check whether the budget is exhausted or the run is not running."""
        return self._completed_iterations >= self._config.max_iterations or not self._running

    def _elapsed(self) -> float:
        return self._clock() - self._start_time if self._tree.root is not None else 0.0

    def get_progress(self) -> Progress:
        """
        Get the progress of the run.

        Returns
        -------
        Progress
            Iterations, timing (seconds), confidence and confidence interval.
        """
        max_iterations = self._config.max_iterations
        elapsed = self._elapsed()
        per_iteration = elapsed / self._completed_iterations if self._completed_iterations > 0 else 0.0
        remaining = max(max_iterations - self._completed_iterations, 0)

        return Progress(
            completed_iterations=self._completed_iterations,
            max_iterations=max_iterations,
            progress=self._completed_iterations / max_iterations if max_iterations > 0 else 1.0,
            time_elapsed=elapsed,
            estimated_time_remaining=per_iteration * remaining,
            confidence=self._confidence,
            confidence_interval=confidence_interval(self._tree.root),
        )

    def get_current_state(self) -> TreeSnapshot:
        """Get the nodes, transitions and root of the tree."""
        return TreeSnapshot(
            nodes=list(self._tree.nodes.values()),
            transitions=list(self._tree.transitions),
            root=self._tree.root,
        )

    def get_final_state(self) -> TreeSnapshot:
        """Get the nodes, transitions and root of the tree along with run statistics."""
        snapshot = self.get_current_state()
        snapshot.stats = SimulationStats(
            iterations=self._completed_iterations,
            duration=self._elapsed(),
            node_count=self._tree.node_count,
            confidence=self._confidence,
        )
        return snapshot

    def get_optimal_path(self) -> list[PathStep]:
        """Get the path of highest expected value from the root."""
        return optimal_path(self._tree)

    def get_expected_value(self) -> float:
        """Get the expected value of the root, 0 before initialization."""
        root = self._tree.root
        return root.expected_value if root is not None else 0.0

    def get_risk_metrics(self) -> RiskMetrics:
        """Get the risk metrics of the simulated returns."""
        return risk_metrics(self._tree, self._config)
