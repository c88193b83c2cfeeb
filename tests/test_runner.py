"""
Tests for the batch runner driving a simulation for an interactive host.

This module tests:
- Update and completion events
- Pause and resume from an event callback
- Stopping a run
"""

import pytest

from monte_carlo import EventType, FlowData, Progress, RiskMetrics, SimulationRunner
from portfolio import SimulationConfig

MAX_ITERATIONS = 120
BATCH_SIZE = 50


@pytest.fixture
def config():
    """Create a small seeded configuration."""
    return SimulationConfig(max_iterations=MAX_ITERATIONS, time_horizon=6, seed=21)


@pytest.fixture
def events():
    """Collect published events."""
    return []


@pytest.fixture
def runner(events):
    """Create a runner recording its events."""
    return SimulationRunner(on_event=events.append)


def event_types(events):
    return [event.type for event in events]


class TestRunnerStep:
    """Tests for bounded steps."""

    def test_step_publishes_update(self, runner, events, config):
        """A step runs a bounded number of iterations and publishes an update."""
        runner.start(config)

        done = runner.step(BATCH_SIZE)

        assert done == BATCH_SIZE
        assert event_types(events) == [EventType.UPDATE]
        assert isinstance(events[0].data['flow'], FlowData)
        assert isinstance(events[0].data['progress'], Progress)
        assert events[0].data['progress'].completed_iterations == BATCH_SIZE

    def test_final_step_publishes_results(self, runner, events, config):
        """The step exhausting the budget also publishes the results."""
        runner.start(config)

        done = runner.step(1000)

        assert done == MAX_ITERATIONS
        assert event_types(events) == [EventType.UPDATE, EventType.COMPLETE]
        results = events[-1].data
        assert set(results) == {'flow', 'optimal_path', 'expected_value', 'risk_metrics'}
        assert isinstance(results['risk_metrics'], RiskMetrics)
        assert results['expected_value'] == runner.engine.get_expected_value()

    def test_step_without_engine(self, runner, events):
        """Nothing happens before a run is started."""
        assert runner.step() == 0
        assert runner.run() == 0
        assert events == []


class TestRunnerRun:
    """Tests for batched runs."""

    def test_run_to_completion(self, runner, events, config):
        """A run publishes one update per batch and the results once."""
        runner.start(config)

        total = runner.run(batch_size=BATCH_SIZE)

        assert total == MAX_ITERATIONS
        assert event_types(events) == [EventType.UPDATE] * 3 + [EventType.COMPLETE]
        assert runner.engine.is_complete()

    def test_run_with_progress_bar(self, runner, config):
        """The progress bar does not change the outcome."""
        runner.start(config)

        assert runner.run(batch_size=BATCH_SIZE, show_progress=True) == MAX_ITERATIONS

    def test_batch_size_is_at_least_one(self, runner, events):
        """A non-positive batch size still makes progress."""
        runner.start(SimulationConfig(max_iterations=3, time_horizon=2, seed=0))

        assert runner.run(batch_size=0) == 3
        assert event_types(events).count(EventType.UPDATE) == 3


class TestRunnerControl:
    """Tests for pause, resume and stop."""

    def test_pause_and_resume(self, config):
        """Pausing from a callback halts the run until it is resumed."""
        events = []

        def on_event(event):
            events.append(event)
            if event.type == EventType.UPDATE and len(events) == 1:
                runner.pause()

        runner = SimulationRunner(on_event=on_event)
        runner.start(config)

        assert runner.run(batch_size=BATCH_SIZE) == BATCH_SIZE
        assert runner.paused
        assert event_types(events) == [EventType.UPDATE, EventType.PAUSED]

        assert runner.resume(batch_size=BATCH_SIZE) == MAX_ITERATIONS - BATCH_SIZE
        assert not runner.paused
        assert event_types(events)[2:] == [EventType.RESUMED, EventType.UPDATE, EventType.UPDATE, EventType.COMPLETE]

    def test_pause_without_engine(self, runner, events):
        """Pausing before a run is started does nothing."""
        runner.pause()

        assert not runner.paused
        assert events == []

    def test_resume_when_not_paused(self, runner, events, config):
        """Resuming a run that is not paused does nothing."""
        runner.start(config)

        assert runner.resume() == 0
        assert events == []

    def test_stop_from_callback(self, config):
        """Stopping from a callback ends the run and releases the engine."""
        events = []

        def on_event(event):
            events.append(event)
            if event.type == EventType.UPDATE:
                runner.stop()

        runner = SimulationRunner(on_event=on_event)
        engine = runner.start(config)

        assert runner.run(batch_size=BATCH_SIZE) == BATCH_SIZE
        assert event_types(events) == [EventType.UPDATE, EventType.STOPPED]
        assert runner.engine is None
        assert not engine.is_running

    def test_restart_replaces_engine(self, runner, config):
        """Starting again creates a fresh engine."""
        first = runner.start(config)
        runner.step(10)

        second = runner.start(config)

        assert second is not first
        assert second.completed_iterations == 0
