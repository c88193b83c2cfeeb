"""
Evaluate a financial decision configuration with Monte Carlo Tree Search.

Usage:
    python evaluate.py --iterations 1000 --horizon 12 --risk moderate --scenario baseline
    python evaluate.py --scenario recession --scenario growth --seed 7 --verbose
"""

import logging
from argparse import ArgumentParser

from monte_carlo import MCTSEngine, SimulationRunner
from portfolio import RiskTolerance, Scenario, SimulationConfig, State


def evaluate(config: SimulationConfig, batch_size: int = 100, show_progress: bool = True) -> MCTSEngine:
    """
    Run a simulation to completion.

    Parameters
    ----------
    config : SimulationConfig
        Configuration of the run.
    batch_size : int, optional
        Iterations between two progress updates, by default 100.
    show_progress : bool, optional
        Display a progress bar, by default True.

    Returns
    -------
    MCTSEngine
        The engine, holding the completed tree.
    """
    runner = SimulationRunner()
    engine = runner.start(config)
    runner.run(batch_size=batch_size, show_progress=show_progress)
    return engine


def report(engine: MCTSEngine) -> None:
    """Print the results of a completed simulation."""
    progress = engine.get_progress()
    interval = progress.confidence_interval
    metrics = engine.get_risk_metrics()

    print(f'\n{"=" * 60}')
    print(f'Iterations: {progress.completed_iterations} in {progress.time_elapsed:.2f}s, {len(engine.tree)} states')
    print(f'Expected value: {engine.get_expected_value():.4f} (95% CI {interval.lower:.4f} .. {interval.upper:.4f})')
    print('=' * 60)

    print('Optimal path:')
    for step in engine.get_optimal_path():
        action = getattr(step.action, 'value', step.action)
        print(f'  {action:<11} -> {step.to_id:<40} value={step.expected_value:10.4f} conf={step.confidence:.3f}')

    print('=' * 60)
    print('Risk metrics:')
    print(f'  mean return   : {metrics.mean_return:.4%}')
    print(f'  volatility    : {metrics.volatility:.4%}')
    print(f'  sharpe ratio  : {metrics.sharpe_ratio:.4f}')
    print(f'  value at risk : {metrics.value_at_risk:.4%}')
    print(f'  max drawdown  : {metrics.max_drawdown:.4%}')


if __name__ == '__main__':
    parser = ArgumentParser(description='Simulate financial decision paths with MCTS')
    parser.add_argument('--iterations', type=int, default=1000, help='Number of search iterations')
    parser.add_argument('--horizon', type=int, default=12, help='Time horizon, in steps')
    parser.add_argument('--exploration', type=float, default=1.41, help='UCB1 exploration parameter')
    parser.add_argument('--risk', type=str, default='moderate', choices=[risk.value for risk in RiskTolerance])
    parser.add_argument(
        '--scenario', type=str, action='append', choices=[scenario.value for scenario in Scenario], dest='scenarios'
    )
    parser.add_argument('--value', type=float, default=100.0, help='Initial portfolio value')
    parser.add_argument('--seed', type=int, default=None, help='Seed of the random generator')
    parser.add_argument('--batch', type=int, default=100, help='Iterations between progress updates')
    parser.add_argument('--verbose', action='store_true', help='Log search events')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    simulation = SimulationConfig(
        initial_state=State(id='root', value=args.value, category='initial', confidence=0.99),
        max_iterations=args.iterations,
        exploration_parameter=args.exploration,
        time_horizon=args.horizon,
        scenarios=tuple(args.scenarios or [Scenario.BASELINE]),
        risk_tolerance=args.risk,
        seed=args.seed,
    )
    report(evaluate(simulation, batch_size=args.batch, show_progress=not args.verbose))
