#!/usr/bin/env python
"""
Profile the search loop and the result queries of a simulation run.

Usage:
    python scripts/profile_mcts.py
    python scripts/profile_mcts.py --iterations 5000 --horizon 24 --risk aggressive

The search and the queries are profiled separately; only functions of the project are
listed. The raw search profile is saved for snakeviz.
"""

import cProfile
import pstats
import time
from argparse import ArgumentParser

from monte_carlo import MCTSEngine
from portfolio import RiskTolerance, SimulationConfig

# ##>: Restrict listings to project modules.
PROJECT_FILTER = r'(monte_carlo|portfolio)'


def profile_search(engine: MCTSEngine) -> cProfile.Profile:
    """Run the engine to completion under the profiler."""
    profiler = cProfile.Profile()
    engine.initialize()
    profiler.enable()
    while engine.run_iteration():
        pass
    profiler.disable()
    return profiler


def profile_queries(engine: MCTSEngine) -> cProfile.Profile:
    """Compute every result of a completed run under the profiler."""
    profiler = cProfile.Profile()
    profiler.enable()
    engine.get_progress()
    engine.get_final_state()
    engine.get_optimal_path()
    engine.get_risk_metrics()
    profiler.disable()
    return profiler


def main():
    parser = ArgumentParser(description='Profile a MCTS simulation run')
    parser.add_argument('--iterations', type=int, default=2000, help='Number of search iterations')
    parser.add_argument('--horizon', type=int, default=12, help='Time horizon, in steps')
    parser.add_argument('--risk', type=str, default='moderate', choices=[risk.value for risk in RiskTolerance])
    parser.add_argument('--seed', type=int, default=0, help='Seed of the random generator')
    parser.add_argument('--output', type=str, default='search.prof', help='Output file of the search profile')
    parser.add_argument('--top', type=int, default=15, help='Number of functions listed per phase')
    args = parser.parse_args()

    config = SimulationConfig(
        max_iterations=args.iterations, time_horizon=args.horizon, risk_tolerance=args.risk, seed=args.seed
    )
    engine = MCTSEngine(config)

    started = time.perf_counter()
    search = profile_search(engine)
    search_seconds = time.perf_counter() - started

    started = time.perf_counter()
    queries = profile_queries(engine)
    query_seconds = time.perf_counter() - started

    nodes = len(engine.tree)
    print(f'{engine.completed_iterations} iterations, {nodes} nodes, horizon {args.horizon}, risk {args.risk}')
    print(f'search : {search_seconds:.3f}s ({1e6 * search_seconds / max(engine.completed_iterations, 1):.1f}us/it)')
    print(f'queries: {query_seconds:.3f}s ({1e6 * query_seconds / max(nodes, 1):.2f}us/node)')

    for title, profiler in (('Search loop', search), ('Result queries', queries)):
        print(f'\n--- {title}, by cumulative time ---')
        stats = pstats.Stats(profiler).sort_stats('cumulative')
        stats.print_stats(PROJECT_FILTER, args.top)

    search.dump_stats(args.output)
    print(f'Search profile saved to {args.output} (snakeviz {args.output})')


if __name__ == '__main__':
    main()
