import numpy as np
import itertools
from scipy.spatial.distance import cdist


def generate_distance_matrix(n_cities, seed=None):
    # Random (x, y) city coordinates in [0, 100)
    cities = np.random.default_rng(seed).random((n_cities, 2)) * 100

    # Euclidean distance matrix
    distance_matrix = cdist(cities, cities, "minkowski", p=2).astype(np.float32)

    return distance_matrix


def polygon_distance_matrix(n_cities, radius=10.0):
    # Cities on a regular polygon, whose perimeter is the optimal tour
    angles = 2 * np.pi * np.arange(n_cities) / n_cities
    cities = np.stack([np.cos(angles), np.sin(angles)], axis=1) * radius
    return cdist(cities, cities, "euclidean").astype(np.float32)


def tsp_optimal_solution(dist_matrix):
    n = dist_matrix.shape[0]
    # Every ordering of the cities other than 0
    perms = np.array(list(itertools.permutations(np.arange(1, n))))

    # City 0 opens and closes every route
    n_routes = perms.shape[0]
    paths = np.hstack([np.zeros((n_routes, 1), dtype=int), perms, np.zeros((n_routes, 1), dtype=int)])

    # Length of every route
    costs = np.sum(dist_matrix[paths[:, :-1], paths[:, 1:]].astype(np.float64), axis=1)

    best_idx = np.argmin(costs)
    best_cost = costs[best_idx]
    best_path = paths[best_idx]

    return best_path, best_cost


def is_permutation(route, n):
    return np.array_equal(np.sort(route), np.arange(n))
