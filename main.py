import argparse
import numpy as np
from algorithms import ACS
from executers import EXECUTERS
from problems import TSPProblem


def main(n_cities, executer='monolithic', memory=None, iterations=None, timelimit=None, seed=None,
         n_ants=32, q0=0.9, local_search=False, local_update_every=1, capacity=8, validate=False,
         verbose=True):
    if iterations is None and timelimit is None:
        iterations = 200

    problem = TSPProblem.random(n_cities, seed=seed)

    if verbose:
        print("Number of cities:", problem.dimension)
        print("Nearest neighbour tour length:", problem.nearest_neighbor_tour()[1])

    algorithm = ACS(problem, n_ants=n_ants, q0=q0, local_search=local_search,
                    local_update_every=local_update_every, executer=executer, memory=memory,
                    capacity=capacity, seed=seed, validate=validate)

    if verbose:
        print("Starting ACS...")
    report = algorithm.fit(iterations, timelimit=timelimit, verbose=verbose)

    print("Executer:", report['executer'], "/", report['memory'])
    print("Iterations:", report['iterations'])
    print("Best length:", report['best_length'])
    print("Found at iteration:", report['best_found_at'])
    print("Construction time:", round(report['construction_time'], 4))
    print("Local search time:", round(report['local_search_time'], 4))
    print("Global update time:", round(report['global_update_time'], 4))
    print("Time:", round(report['total_time'], 4))
    if verbose:
        print("Route:", report['best_route'])

    # Verify route
    route = report['best_route']
    if len(route) == len(set(route.tolist())) and np.all(np.isin(route, np.arange(problem.dimension))):
        print("Route is valid")
    else:
        print("Route is invalid")
        print("Repeated cities or out of range")

    return report


if __name__ == '__main__':
    parser = argparse.ArgumentParser(
        description="Solve a random Euclidean TSP instance with Ant Colony System.")
    parser.add_argument('-n', '--cities', type=int, default=100,
                        help='Number of cities of the random instance (default: 100)')
    parser.add_argument('-e', '--executer', choices=list(EXECUTERS), default='monolithic',
                        help='Construction strategy: monolithic, step or selective (default: monolithic)')
    parser.add_argument('-m', '--memory', choices=['dense', 'locked', 'selective'], default=None,
                        help='Pheromone memory (default: the strategy\'s own)')
    parser.add_argument('-i', '--iterations', type=int, default=None,
                        help='Number of iterations (default: 200 when no time limit is given)')
    parser.add_argument('-t', '--timelimit', type=float, default=None,
                        help='Time limit in seconds (default: None)')
    parser.add_argument('-s', '--seed', type=int, default=None,
                        help='Random seed for the instance and the colony (default: None)')
    parser.add_argument('-a', '--ants', type=int, default=32,
                        help='Number of ants (default: 32)')
    parser.add_argument('--q0', type=float, default=0.9,
                        help='Probability of the greedy choice (default: 0.9)')
    parser.add_argument('--local-update-every', type=int, default=1,
                        help='Apply the local pheromone rule every this many steps (default: 1)')
    parser.add_argument('--capacity', type=int, default=8,
                        help='Short-list size of the selective memory (default: 8)')
    parser.add_argument('--local-search', action='store_true',
                        help='Improve every tour with 2-opt')
    parser.add_argument('--validate', action='store_true',
                        help='Check every tour and its length after each iteration')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Hide the progress bar and the best route')
    args = parser.parse_args()
    main(args.cities, args.executer, args.memory, args.iterations, args.timelimit, args.seed,
         args.ants, args.q0, args.local_search, args.local_update_every, args.capacity,
         args.validate, verbose=not args.quiet)
