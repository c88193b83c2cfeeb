"""
Step-wise driver of a simulation run for an interactive host.

The runner executes iterations in bounded batches and publishes an event after each batch,
so that a single-threaded host is never blocked for the whole iteration budget.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from tqdm import tqdm

from portfolio.config import SimulationConfig

from .engine import MCTSEngine
from .flow import to_flow_data

_logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


class EventType(str, Enum):
    """Kind of event published by the runner."""

    UPDATE = 'SIMULATION_UPDATE'
    COMPLETE = 'SIMULATION_COMPLETE'
    PAUSED = 'SIMULATION_PAUSED'
    RESUMED = 'SIMULATION_RESUMED'
    STOPPED = 'SIMULATION_STOPPED'


@dataclass
class RunnerEvent:
    """
    Event published by the runner.

    Attributes
    ----------
    type : EventType
        Kind of event.
    data : dict[str, Any]
        Payload. Updates carry 'flow' and 'progress'; completions carry 'flow',
        'optimal_path', 'expected_value' and 'risk_metrics'.
    """

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)


class SimulationRunner:
    """
    Drive an engine in batches, with pause, resume and stop.

    Methods
    -------
    start(config)
        Initialize a fresh engine.
    step(steps)
        Run a bounded number of iterations and publish an update.
    run(batch_size, show_progress)
        Run batches until the simulation completes, pauses or stops.
    """

    def __init__(
        self,
        on_event: Callable[[RunnerEvent], None] | None = None,
        engine_factory: Callable[[SimulationConfig], MCTSEngine] = MCTSEngine,
    ):
        self._on_event = on_event
        self._engine_factory = engine_factory
        self._engine: MCTSEngine | None = None
        self._paused = False

    @property
    def engine(self) -> MCTSEngine | None:
        """The engine of the current run."""
        return self._engine

    @property
    def paused(self) -> bool:
        """Whether the current run waits for a resume."""
        return self._paused

    def _publish(self, event_type: EventType, **data: Any) -> None:
        if self._on_event is not None:
            self._on_event(RunnerEvent(type=event_type, data=data))

    def start(self, config: SimulationConfig) -> MCTSEngine:
        """
        Initialize a fresh engine for a configuration.

        Parameters
        ----------
        config : SimulationConfig
            Configuration of the run.

        Returns
        -------
        MCTSEngine
            The initialized engine.
        """
        self._engine = self._engine_factory(config)
        self._engine.initialize()
        self._paused = False
        return self._engine

    def step(self, steps: int = DEFAULT_BATCH_SIZE) -> int:
        """
        Run up to a number of iterations, then publish an update.

        Parameters
        ----------
        steps : int, optional
            Maximum number of iterations, by default 100.

        Returns
        -------
        int
            Number of iterations actually run.
        """
        engine = self._engine
        if engine is None:
            return 0

        done = 0
        while done < steps and engine.run_iteration():
            done += 1

        self._publish_update(engine)
        if self._engine is engine and engine.is_complete():
            self._publish_results(engine)
        return done

    def run(self, batch_size: int = DEFAULT_BATCH_SIZE, show_progress: bool = False) -> int:
        """
        Run batches until the simulation completes, is paused or is stopped.

        Parameters
        ----------
        batch_size : int, optional
            Iterations between two updates, by default 100.
        show_progress : bool, optional
            Display a progress bar, by default False.

        Returns
        -------
        int
            Number of iterations run.
        """
        engine = self._engine
        if engine is None:
            return 0

        batch_size = max(1, batch_size)
        total = 0
        progress_bar = (
            tqdm(total=engine.config.max_iterations, initial=engine.completed_iterations, desc='Simulation', unit='it')
            if show_progress
            else None
        )

        try:
            while not self._paused and self._engine is engine and not engine.is_complete():
                done = 0
                while done < batch_size and engine.run_iteration():
                    done += 1
                total += done

                if progress_bar is not None:
                    progress_bar.update(done)
                    progress_bar.set_postfix(expected=f'{engine.get_expected_value():.2f}')

                self._publish_update(engine)
                if self._engine is not engine:
                    break
                if engine.is_complete():
                    self._publish_results(engine)
        finally:
            if progress_bar is not None:
                progress_bar.close()

        return total

    def pause(self) -> None:
        """Pause a running simulation after the current batch."""
        if self._engine is None:
            return
        self._paused = True
        self._publish(EventType.PAUSED)

    def resume(self, batch_size: int = DEFAULT_BATCH_SIZE) -> int:
        """
        Resume a paused simulation.

        Returns
        -------
        int
            Number of iterations run until the next pause, stop or completion.
        """
        if self._engine is None or not self._paused:
            return 0
        self._paused = False
        self._publish(EventType.RESUMED)
        return self.run(batch_size=batch_size)

    def stop(self) -> None:
        """Stop the simulation and release the engine."""
        if self._engine is not None:
            self._engine.stop()
        self._engine = None
        self._paused = False
        self._publish(EventType.STOPPED)

    def _publish_update(self, engine: MCTSEngine) -> None:
        progress = engine.get_progress()
        flow = to_flow_data(engine.get_current_state(), progress)
        self._publish(EventType.UPDATE, flow=flow, progress=progress)

    def _publish_results(self, engine: MCTSEngine) -> None:
        flow = to_flow_data(engine.get_final_state(), engine.get_progress())
        _logger.info('Simulation results published: expected value %.4f', engine.get_expected_value())
        self._publish(
            EventType.COMPLETE,
            flow=flow,
            optimal_path=engine.get_optimal_path(),
            expected_value=engine.get_expected_value(),
            risk_metrics=engine.get_risk_metrics(),
        )
