from .common import generate_distance_matrix, is_permutation
import numpy as np
import pytest
from executers import (EXECUTERS, ConstructionError, MonolithicExecuter, StepExecuter,
                       SelectiveExecuter)
from kernels.construct import OK, NO_CANDIDATE, MEMORY_INVARIANT
from problems import TSPProblem

N_ANTS = 16
STRATEGIES = [
    ('monolithic', {'memory': 'dense'}),
    ('monolithic', {'memory': 'locked'}),
    ('step', {'memory': 'dense'}),
    ('step', {'memory': 'locked'}),
    ('selective', {'capacity': 8}),
]


def make_executer(name, problem, **kwargs):
    executer = EXECUTERS[name](problem, n_ants=N_ANTS, **kwargs)
    executer.init_pheromone(problem.initial_pheromone())
    executer.init_run(0)
    return executer


def starts_for(problem, seed=0):
    return np.random.default_rng(seed).integers(0, problem.dimension, size=N_ANTS)


@pytest.mark.parametrize("name,kwargs", STRATEGIES)
@pytest.mark.parametrize("q0", [0.0, 0.9, 1.0])
def test_build_solutions_yields_valid_tours(name, kwargs, q0):
    problem = TSPProblem(generate_distance_matrix(40, seed=1))
    executer = make_executer(name, problem, q0=q0, **kwargs)
    starts = starts_for(problem)

    routes, lengths = executer.build_solutions(starts)

    assert routes.shape == (N_ANTS, problem.dimension)
    assert np.array_equal(routes[:, 0], starts)
    for route in routes:
        assert is_permutation(route, problem.dimension)
    assert np.allclose(lengths, problem.fitness(routes), rtol=1e-5)


@pytest.mark.parametrize("name,kwargs", STRATEGIES)
def test_short_neighbor_lists_fall_back_to_full_scan(name, kwargs):
    problem = TSPProblem(generate_distance_matrix(50, seed=2), n_neighbors=2)
    executer = make_executer(name, problem, **kwargs)
    routes, lengths = executer.build_solutions(starts_for(problem))
    for route in routes:
        assert is_permutation(route, problem.dimension)
    assert np.allclose(lengths, problem.fitness(routes), rtol=1e-5)


@pytest.mark.parametrize("name,kwargs", STRATEGIES)
def test_greedy_single_ant_is_nearest_neighbor_tour(name, kwargs):
    problem = TSPProblem(generate_distance_matrix(30, seed=3))
    executer = EXECUTERS[name](problem, n_ants=1, q0=1.0, **kwargs)
    executer.init_pheromone(problem.initial_pheromone())
    executer.init_run(0)
    routes, _ = executer.build_solutions(np.array([0]))
    # with a single ant the local rule keeps every edge at its initial value
    expected, _ = problem.nearest_neighbor_tour(0)
    assert np.array_equal(routes[0], expected)


def test_locked_memory_stays_symmetric_and_positive():
    problem = TSPProblem(generate_distance_matrix(60, seed=4))
    executer = MonolithicExecuter(problem, n_ants=64, memory='locked', phi=0.3)
    executer.init_pheromone(problem.initial_pheromone())
    executer.init_run(1)
    for it in range(3):
        routes, lengths = executer.build_solutions(np.random.default_rng(it).integers(0, 60, size=64))
        best = int(np.argmin(lengths))
        executer.global_update(routes[best], lengths[best])
    matrix = executer.pheromone.as_matrix()
    assert np.array_equal(matrix, matrix.T)
    assert np.all(matrix > 0)
    assert np.all(executer.pheromone.locks == 0)


@pytest.mark.parametrize("memory", ['dense', 'locked'])
def test_step_hook_runs_once_per_step(memory):
    problem = TSPProblem(generate_distance_matrix(12, seed=5))
    seen = []
    executer = StepExecuter(problem, n_ants=N_ANTS, memory=memory,
                            on_step=lambda step, routes: seen.append(step))
    executer.init_pheromone(problem.initial_pheromone())
    executer.init_run(0)
    executer.build_solutions(starts_for(problem))
    assert seen == list(range(1, problem.dimension))


def test_local_update_frequency():
    problem = TSPProblem(generate_distance_matrix(10, seed=6))
    tau0 = problem.initial_pheromone()
    executer = StepExecuter(problem, n_ants=1, phi=1.0, local_update_every=3)
    executer.init_pheromone(tau0)
    executer.init_run(0)
    # deposit a value different from the initial one to see which edges were touched
    executer.initial = 2 * tau0
    routes, _ = executer.build_solutions(np.array([0]))
    route = routes[0]
    matrix = executer.pheromone.as_matrix()
    n = problem.dimension
    for step in range(1, n):
        value = matrix[route[step - 1], route[step]]
        if step % 3 == 0:
            assert value == np.float32(2 * tau0)
        else:
            assert value == np.float32(tau0)
    # the closing edge is only deposited when the last step is due
    closing = matrix[route[n - 1], route[0]]
    assert closing == np.float32(2 * tau0 if (n - 1) % 3 == 0 else tau0)


def test_selective_local_update_inserts_tour_edges():
    problem = TSPProblem(generate_distance_matrix(20, seed=7))
    tau0 = problem.initial_pheromone()
    executer = SelectiveExecuter(problem, n_ants=1, phi=1.0, capacity=4)
    executer.init_pheromone(tau0)
    executer.init_run(0)
    executer.initial = 2 * tau0
    routes, _ = executer.build_solutions(np.array([3]))
    route = routes[0]
    memory = executer.pheromone
    for i in range(problem.dimension):
        u, v = route[i], route[(i + 1) % problem.dimension]
        assert memory.get(u, v) == np.float32(2 * tau0)
        assert memory.get(v, u) == np.float32(2 * tau0)


def test_run_context_is_required():
    problem = TSPProblem(generate_distance_matrix(10, seed=8))
    executer = MonolithicExecuter(problem, n_ants=N_ANTS)
    with pytest.raises(RuntimeError):
        executer.build_solutions(starts_for(problem))
    executer.init_pheromone(problem.initial_pheromone())
    with pytest.raises(RuntimeError):
        executer.build_solutions(starts_for(problem))
    executer.init_run(0)
    with pytest.raises(ValueError):
        executer.build_solutions(np.zeros(N_ANTS - 1, dtype=np.int64))
    with pytest.raises(ValueError):
        executer.build_solutions(np.full(N_ANTS, 10))
    with pytest.raises(ValueError):
        executer.local_update(0)
    with pytest.raises(ValueError):
        executer.init_run(-1)
    executer.release_run()
    assert executer.routes is None


def test_failed_ants_raise_construction_error():
    problem = TSPProblem(generate_distance_matrix(10, seed=9))
    executer = make_executer('monolithic', problem)
    executer.build_solutions(starts_for(problem))
    executer.status[3] = NO_CANDIDATE
    with pytest.raises(ConstructionError):
        executer._check_status()


def test_selective_memory_breach_is_reported():
    problem = TSPProblem(generate_distance_matrix(10, seed=9))
    executer = make_executer('selective', problem)
    executer.build_solutions(starts_for(problem))
    assert np.all(executer.status == OK)
    executer.status[0] = MEMORY_INVARIANT
    with pytest.raises(ConstructionError, match="selective memory"):
        executer._check_status()


def test_invalid_parameters():
    problem = TSPProblem(generate_distance_matrix(10, seed=10))
    with pytest.raises(ValueError):
        MonolithicExecuter(problem, n_ants=0)
    with pytest.raises(ValueError):
        MonolithicExecuter(problem, q0=1.5)
    with pytest.raises(ValueError):
        MonolithicExecuter(problem, phi=-0.1)
    with pytest.raises(ValueError):
        MonolithicExecuter(problem, rho=2.0)
    with pytest.raises(ValueError):
        MonolithicExecuter(problem, local_update_every=0)
    with pytest.raises(ValueError):
        MonolithicExecuter(problem, memory='selective')
    with pytest.raises(ValueError):
        SelectiveExecuter(problem, capacity=6)
