from . import Problem
from kernels.group import WARP_SIZE
from scipy.spatial.distance import cdist
import numpy as np
import numba

# Heuristic value used for zero-length edges between distinct cities
ZERO_DISTANCE_HEURISTIC = 1e10
LOCAL_SEARCH_PASSES = 50


@numba.njit(cache=True)
def route_length(route, distances):
    n = route.shape[0]
    total = 0.0
    for i in range(n - 1):
        total += distances[route[i], route[i + 1]]
    total += distances[route[n - 1], route[0]]
    return total


@numba.njit(cache=True)
def route_lengths(routes, distances):
    lengths = np.empty(routes.shape[0])
    for i in range(routes.shape[0]):
        lengths[i] = route_length(routes[i], distances)
    return lengths


@numba.njit(cache=True)
def nearest_neighbor_route(distances, start):
    """Greedy tour that always moves to the closest unvisited city."""
    n = distances.shape[0]
    route = np.empty(n, dtype=np.int32)
    visited = np.zeros(n, dtype=np.bool_)
    route[0] = start
    visited[start] = True
    for step in range(1, n):
        curr = route[step - 1]
        best = -1
        best_distance = np.inf
        for node in range(n):
            if not visited[node] and distances[curr, node] < best_distance:
                best = node
                best_distance = distances[curr, node]
        route[step] = best
        visited[best] = True
    return route


@numba.njit(parallel=True, cache=True)
def two_opt(routes, lengths, distances, max_passes):
    """
    Applies first-improvement 2-opt moves to every route until no move improves it or
    ``max_passes`` sweeps have been made. Routes are rewritten in place and their lengths
    recomputed.
    """
    n = routes.shape[1]
    for ant in numba.prange(routes.shape[0]):
        route = routes[ant]
        for _ in range(max_passes):
            improved = False
            for i in range(n - 2):
                for j in range(i + 2, n):
                    if i == 0 and j == n - 1:
                        continue
                    a = route[i]
                    b = route[i + 1]
                    c = route[j]
                    d = route[(j + 1) % n]
                    delta = (distances[a, c] + distances[b, d]) - (distances[a, b] + distances[c, d])
                    if delta < -1e-6:
                        lo = i + 1
                        hi = j
                        while lo < hi:
                            tmp = route[lo]
                            route[lo] = route[hi]
                            route[hi] = tmp
                            lo += 1
                            hi -= 1
                        improved = True
            if not improved:
                break
        lengths[ant] = route_length(route, distances)


def heuristic_matrix(distances, beta):
    """
    Computes ``(1 / d) ** beta`` for every edge.

    Zero distances between distinct cities get ``ZERO_DISTANCE_HEURISTIC`` before the power
    is applied; the diagonal is set to 0 so a city never scores itself.
    """
    distances = np.asarray(distances, dtype=np.float64)
    inv_dist = np.divide(1.0, distances,
                         out=np.full_like(distances, ZERO_DISTANCE_HEURISTIC),
                         where=distances != 0)
    heuristic = inv_dist if beta == 1 else np.power(inv_dist, beta)
    np.fill_diagonal(heuristic, 0.0)
    return np.ascontiguousarray(heuristic, dtype=np.float32)


def nearest_neighbors(distances, k):
    """Indices of the ``k`` closest cities of every city, closest first, self excluded."""
    masked = np.array(distances, dtype=np.float64)
    np.fill_diagonal(masked, np.inf)
    order = np.argsort(masked, axis=1, kind='stable')[:, :k]
    return np.ascontiguousarray(order, dtype=np.int32)


class TSPProblem(Problem):
    """
    TSPProblem holds a symmetric Traveling Salesman Problem instance in the layout the
    construction kernels read: contiguous ``float32`` distance and heuristic matrices and an
    ``int32`` nearest-neighbour list per city.

    Parameters
    ----------
    distances : array-like
        Square, symmetric, non-negative distance matrix.
    beta : float, optional
        Exponent of the inverse-distance heuristic. Defaults to 2.0.
    n_neighbors : int, optional
        Size of the candidate list per city, at most one lane group wide. Clipped to
        ``dimension - 1``. Defaults to 32.

    Attributes
    ----------
    dimension : int
        Number of cities.
    distances : np.ndarray
        (dimension, dimension) ``float32`` distance matrix.
    heuristic : np.ndarray
        (dimension, dimension) ``float32`` heuristic matrix.
    neighbors : np.ndarray
        (dimension, n_neighbors) ``int32`` nearest-neighbour lists.
    """

    def __init__(self, distances, beta=2.0, n_neighbors=32):
        distances = np.asarray(distances, dtype=np.float32)

        if distances.ndim != 2 or distances.shape[0] != distances.shape[1]:
            raise ValueError("Distance matrix must be square.")
        if distances.shape[0] < 3:
            raise ValueError("A tour needs at least 3 cities.")
        if not np.all(np.isfinite(distances)) or np.any(distances < 0):
            raise ValueError("Distances must be finite and non-negative.")
        if not np.allclose(distances, distances.T):
            raise ValueError("Distance matrix must be symmetric.")
        if beta <= 0:
            raise ValueError("Beta must be greater than 0.")
        if n_neighbors <= 0 or n_neighbors > WARP_SIZE:
            raise ValueError(f"Number of neighbors must be between 1 and {WARP_SIZE}.")

        self.distances = np.ascontiguousarray(distances)
        self.dimension = distances.shape[0]
        self.beta = beta
        self.n_neighbors = min(n_neighbors, self.dimension - 1)
        self.heuristic = heuristic_matrix(self.distances, beta)
        self.neighbors = nearest_neighbors(self.distances, self.n_neighbors)

    @classmethod
    def from_coords(cls, coords, **kwargs):
        """Builds the instance from (n, 2) city coordinates using Euclidean distances."""
        coords = np.asarray(coords, dtype=np.float64)
        return cls(cdist(coords, coords, "euclidean").astype(np.float32), **kwargs)

    @classmethod
    def random(cls, n_cities, seed=None, **kwargs):
        """Random Euclidean instance with cities drawn uniformly in a 100 x 100 square."""
        rng = np.random.default_rng(seed)
        return cls.from_coords(rng.random((n_cities, 2)) * 100, **kwargs)

    def generate_solution(self, num_samples=1):
        """
        Generates one or more random tours.

        Returns:
            np.ndarray: A 1D tour if num_samples == 1, otherwise an array of shape
            (num_samples, dimension).
        """

        solutions = np.empty((num_samples, self.dimension), dtype=np.int32)
        for i in range(num_samples):
            solutions[i] = np.random.permutation(self.dimension)
        return solutions[0] if num_samples == 1 else solutions

    def fitness(self, solutions):
        """
        Calculates the closed tour length of one or more solutions.

        Returns:
            float or np.ndarray: A single length for a 1D tour, one length per row otherwise.
        """

        solutions = np.ascontiguousarray(solutions, dtype=np.int32)
        if solutions.ndim == 1:
            return float(route_length(solutions, self.distances))
        return route_lengths(solutions, self.distances)

    def nearest_neighbor_tour(self, start=0):
        route = nearest_neighbor_route(self.distances, start)
        return route, self.fitness(route)

    def initial_pheromone(self):
        """ACS default initial pheromone, ``1 / (n * L_nn)`` with L_nn the nearest-neighbour tour length."""
        _, length = self.nearest_neighbor_tour()
        return 1.0 / (self.dimension * length)

    def local_search(self, routes, lengths, max_passes=LOCAL_SEARCH_PASSES):
        """
        Runs 2-opt on every route in place and refreshes ``lengths``.

        Args:
            routes (np.ndarray): ``int32`` (n_routes, dimension) tours, modified in place.
            lengths (np.ndarray): ``float64`` (n_routes,) tour lengths, overwritten.
        """

        two_opt(routes, lengths, self.distances, max_passes)
