from .common import generate_distance_matrix, polygon_distance_matrix, tsp_optimal_solution, is_permutation
import numpy as np
import pytest
from algorithms import ACS, Budget
from executers import MonolithicExecuter, StepExecuter
from problems import Problem, TSPProblem, patch_problem

STRATEGIES = [
    ('monolithic', None),
    ('monolithic', 'locked'),
    ('step', None),
    ('step', 'locked'),
    ('selective', None),
]
REPORT_KEYS = {'iterations', 'best_length', 'best_route', 'best_found_at', 'construction_time',
               'local_search_time', 'global_update_time', 'total_time', 'best_length_history',
               'executer', 'memory'}


@pytest.mark.parametrize("executer,memory", STRATEGIES)
def test_greedy_colony_finds_optimum_of_small_instance(executer, memory):
    dist_matrix = polygon_distance_matrix(5)
    _, optimum = tsp_optimal_solution(dist_matrix)
    problem = TSPProblem(dist_matrix)

    algorithm = ACS(problem, n_ants=8, q0=1.0, executer=executer, memory=memory, seed=42, validate=True)
    report = algorithm.fit(10, verbose=False)

    assert report['best_length'] == pytest.approx(optimum, rel=1e-5)
    assert is_permutation(report['best_route'], 5)


@pytest.mark.parametrize("executer,memory", STRATEGIES)
def test_report(executer, memory):
    dist_matrix = generate_distance_matrix(8, seed=0)
    _, optimum = tsp_optimal_solution(dist_matrix)
    problem = TSPProblem(dist_matrix)

    algorithm = ACS(problem, n_ants=16, executer=executer, memory=memory, local_search=True,
                    seed=0, validate=True)
    report = algorithm.fit(20, verbose=False)

    assert set(report) == REPORT_KEYS
    assert report['iterations'] == 20
    assert report['executer'] == executer
    assert report['memory'] == (memory or ('selective' if executer == 'selective' else 'dense'))
    assert report['best_length'] >= optimum - 1e-3
    assert report['best_length'] == pytest.approx(problem.fitness(report['best_route']), rel=1e-5)
    assert 0 <= report['best_found_at'] < 20

    history = report['best_length_history']
    assert len(history) == 20
    assert np.all(np.diff(history) <= 0)
    assert history[-1] == report['best_length']
    assert history[report['best_found_at']] == report['best_length']
    if report['best_found_at'] > 0:
        assert history[report['best_found_at'] - 1] > report['best_length']

    for key in ('construction_time', 'local_search_time', 'global_update_time'):
        assert 0 <= report[key] <= report['total_time']


def test_same_seed_draws_same_start_cities():
    problem = TSPProblem(generate_distance_matrix(20, seed=1))
    starts = []
    for _ in range(2):
        executer = StepExecuter(problem, n_ants=4,
                                on_step=lambda step, routes: starts.append(routes[:, 0].copy()) if step == 1 else None)
        ACS(problem, executer=executer, seed=5).fit(3, verbose=False)
    assert all(np.array_equal(a, b) for a, b in zip(starts[:3], starts[3:]))


def test_fit_with_timelimit():
    problem = TSPProblem(generate_distance_matrix(15, seed=2))
    report = ACS(problem, n_ants=8, seed=0).fit(timelimit=0.5, verbose=False)
    assert report['iterations'] >= 1
    assert report['total_time'] >= 0.5


def test_fit_with_progress_bar():
    problem = TSPProblem(generate_distance_matrix(10, seed=3))
    report = ACS(problem, n_ants=4, seed=0).fit(3, verbose=True)
    assert report['iterations'] == 3


def test_custom_stopping_condition():
    class StopAfter:
        def __init__(self, n):
            self.n = n

        def init(self):
            self.iteration = 0

        def is_reached(self):
            return self.iteration >= self.n

        def next_iteration(self):
            self.iteration += 1

        def get_iteration(self):
            return self.iteration

    problem = TSPProblem(generate_distance_matrix(10, seed=4))
    report = ACS(problem, n_ants=4, seed=0).fit(stopping=StopAfter(4), verbose=True)
    assert report['iterations'] == 4
    with pytest.raises(ValueError):
        ACS(problem, n_ants=4).fit(5, stopping=StopAfter(4))


def test_patched_local_search_runs_every_iteration():
    problem = TSPProblem(generate_distance_matrix(10, seed=5))
    calls = []

    @patch_problem(problem)
    def local_search(routes, lengths):
        calls.append(routes.shape)

    ACS(problem, n_ants=6, local_search=True, seed=0).fit(7, verbose=False)
    assert calls == [(6, 10)] * 7


def test_executer_instance():
    problem = TSPProblem(generate_distance_matrix(10, seed=6))
    executer = MonolithicExecuter(problem, n_ants=5, memory='locked')
    algorithm = ACS(problem, executer=executer, seed=0)
    assert algorithm.n_ants == 5
    report = algorithm.fit(3, verbose=False)
    assert report['memory'] == 'locked'

    other = TSPProblem(generate_distance_matrix(10, seed=7))
    with pytest.raises(ValueError):
        ACS(other, executer=executer)


def test_invalid_parameters():
    problem = TSPProblem(generate_distance_matrix(10, seed=8))
    with pytest.raises(ValueError):
        ACS(problem, executer='hybrid')
    with pytest.raises(ValueError):
        ACS(problem, executer=object())
    with pytest.raises(ValueError):
        ACS(problem, executer='selective', memory='dense')
    with pytest.raises(ValueError):
        ACS(problem, memory='selective')
    with pytest.raises(ValueError):
        ACS(problem, q0=1.5)
    with pytest.raises(ValueError):
        ACS(problem, initial_pheromone=0)
    with pytest.raises(ValueError):
        ACS(problem, executer='selective', capacity=5)
    with pytest.raises(ValueError):
        ACS(problem).fit()


def test_budget():
    with pytest.raises(ValueError):
        Budget()
    with pytest.raises(ValueError):
        Budget(iterations=0)
    with pytest.raises(ValueError):
        Budget(timelimit=-1)
    budget = Budget(iterations=2)
    with pytest.raises(RuntimeError):
        budget.is_reached()
    budget.init()
    assert not budget.is_reached()
    budget.next_iteration()
    budget.next_iteration()
    assert budget.is_reached()
    assert budget.get_iteration() == 2


def test_local_search_must_be_implemented():
    class PlainTSP(TSPProblem):
        local_search = Problem.local_search

    problem = PlainTSP(generate_distance_matrix(10, seed=9))
    with pytest.raises(ValueError):
        ACS(problem, local_search=True)
    ACS(problem, local_search=False)

    @patch_problem(problem)
    def local_search(routes, lengths):
        pass

    ACS(problem, local_search=True)
