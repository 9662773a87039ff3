"""
@file test_qp_problem.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose
from qpsolvers import solve_qp

from sot_wbc.mat_logger import MatLogger
from proxsuite import proxqp

from sot_wbc.qp_problem import ActiveStatus, QPProblem, solver_hessian_type
from sot_wbc.solver_setting import SolverSetting
from sot_wbc.task import HessianType

ATOL = 1e-4


@pytest.fixture
def problem_data():
    # min 1/2 |x - [1, 1]|^2  s.t.  x0 + x1 <= 1.2,  x0 <= 0.5
    H = np.eye(2)
    g = np.array([-1.0, -1.0])
    A = np.array([[1.0, 1.0]])
    lA = np.array([-np.inf])
    uA = np.array([1.2])
    l = np.array([-2.0, -2.0])
    u = np.array([0.5, 2.0])
    return H, g, A, lA, uA, l, u


@pytest.fixture
def qp(problem_data):
    qp = QPProblem(2, 1)
    assert qp.init_problem(*problem_data)
    return qp


def test_init_problem_solution(qp):
    x = qp.get_solution()
    assert_allclose(x, [0.5, 0.7], atol=ATOL)
    assert qp.get_A().dot(x)[0] <= 1.2 + ATOL
    assert np.all(x <= qp.get_u() + ATOL)
    assert np.all(x >= qp.get_l() - ATOL)


def test_dual_solution_and_active_set(qp):
    # bound multipliers first, positive on an active upper side
    assert_allclose(qp.get_dual_solution(), [0.2, 0.0, 0.3], atol=1e-3)
    assert list(qp.get_active_bounds()) == [ActiveStatus.UPPER, ActiveStatus.INACTIVE]
    assert list(qp.get_active_constraints()) == [ActiveStatus.UPPER]
    assert qp.get_active_set().bounds is qp.get_active_bounds()


def test_matches_quadprog(qp):
    problem = qp.get_problem()
    x_ref = solve_qp(problem.P, problem.q, problem.G, problem.h,
                     lb=problem.lb, ub=problem.ub, solver="quadprog")
    assert_allclose(qp.get_solution(), x_ref, atol=ATOL)


def test_infinity_is_clamped(qp):
    assert qp.get_lA()[0] == -1e20
    assert qp.init_problem(np.eye(2), np.zeros(2), np.zeros((0, 2)), [], [],
                           [-1e30, -1e30], [np.inf, 1e25])
    assert_allclose(qp.get_l(), [-1e20, -1e20])
    assert_allclose(qp.get_u(), [1e20, 1e20])


def test_hot_start_after_update_bounds(qp):
    assert qp.update_bounds([-2.0, -2.0], [0.3, 2.0])
    assert qp.solve()
    assert_allclose(qp.get_solution(), [0.3, 0.9], atol=ATOL)


def test_update_bounds_size_mismatch(qp):
    l, u = qp.get_l().copy(), qp.get_u().copy()
    assert not qp.update_bounds([0.0, 0.0, 0.0], [1.0, 1.0, 1.0])
    assert_allclose(qp.get_l(), l)
    assert_allclose(qp.get_u(), u)


def test_update_constraints_same_rows(qp):
    assert qp.update_constraints([[1.0, 1.0]], [-np.inf], [0.8])
    assert qp.solve()
    assert_allclose(qp.get_solution(), [0.4, 0.4], atol=ATOL)


def test_update_constraints_new_rows_rebuilds(qp):
    A = np.array([[1.0, 1.0], [0.0, 1.0]])
    assert qp.update_constraints(A, [-np.inf, -np.inf], [1.2, 0.2])
    assert qp.get_number_of_constraints() == 2
    assert_allclose(qp.get_solution(), [0.5, 0.2], atol=ATOL)
    assert qp.get_active_constraints().size == 2
    assert qp.get_dual_solution().size == 4


def test_update_constraints_rejects_wrong_columns(qp):
    assert not qp.update_constraints([[1.0, 1.0, 1.0]], [0.0], [1.0])
    assert qp.get_A().shape == (1, 2)


def test_update_task_same_size(qp):
    assert qp.update_task(np.eye(2), [1.0, 1.0])
    assert qp.solve()
    assert_allclose(qp.get_solution(), [-1.0, -1.0], atol=ATOL)


def test_update_task_new_size_without_constraints():
    qp = QPProblem(2, 0, hessian_type=HessianType.IDENTITY)
    assert qp.init_problem(np.eye(2), [-1.0, 2.0], np.zeros((0, 2)), [], [], [], [])
    assert_allclose(qp.get_solution(), [1.0, -2.0], atol=ATOL)

    g = np.array([-1.0, -2.0, -3.0])
    assert qp.update_task(2.0 * np.eye(3), g)
    assert qp.get_number_of_variables() == 3
    assert qp.get_hessian_type() == HessianType.IDENTITY

    fresh = QPProblem(3, 0)
    assert fresh.init_problem(2.0 * np.eye(3), g, np.zeros((0, 3)), [], [], [], [])
    assert_allclose(qp.get_solution(), fresh.get_solution(), atol=ATOL)
    assert_allclose(qp.get_solution(), [0.5, 1.0, 1.5], atol=ATOL)


def test_update_task_new_size_with_bounds(qp):
    assert not qp.update_task(np.eye(3), np.zeros(3))
    assert qp.get_number_of_variables() == 2


def test_update_problem(qp, problem_data):
    H, g, A, lA, uA, l, u = problem_data
    assert qp.update_problem(H, -g, A, lA, uA, l, u)
    assert qp.solve()
    assert_allclose(qp.get_solution(), [-1.0, -1.0], atol=ATOL)


def test_inverted_bounds_fail(problem_data):
    H, g, A, lA, uA, l, u = problem_data
    qp = QPProblem(2, 1)
    assert not qp.init_problem(H, g, A, lA, uA, [1.0, 0.0], [0.0, 1.0])
    assert not qp.get_result().found
    assert not qp.init_problem(H, g, A, [2.0], [1.0], l, u)


def test_inverted_bounds_keep_previous_solution(qp):
    previous = qp.get_solution().copy()
    assert qp.update_bounds([1.0, 1.0], [0.0, 0.0])
    assert not qp.solve()
    assert_allclose(qp.get_solution(), previous)


def test_bad_sizes_fail():
    qp = QPProblem(2, 0)
    assert not qp.init_problem(np.ones((2, 3)), np.zeros(2), np.zeros((0, 3)),
                               [], [], [], [])
    assert not qp.init_problem(np.eye(2), np.zeros(3), np.zeros((0, 2)),
                               [], [], [], [])
    assert not qp.init_problem(np.eye(2), np.zeros(2), np.zeros((0, 2)),
                               [], [], [0.0], [1.0, 1.0])


def test_solve_before_init():
    assert not QPProblem(2, 0).solve()


def test_options():
    qp = QPProblem(2, 0)
    assert qp.get_max_wsr() == 132
    assert qp.get_eps_regularisation() == 200.0
    assert qp.get_infinity() == 1e20

    setting = SolverSetting()
    setting.max_wsr = 50
    setting.eps_regularisation = 100.0
    setting.hessian_type = "posdef"
    qp.set_options(setting)
    assert qp.get_max_wsr() == 50
    assert qp.get_eps_regularisation() == 100.0
    assert qp.get_hessian_type() == HessianType.POSDEF
    assert qp.get_options()["max_wsr"] == 50


def test_result_record(qp):
    result = qp.get_result()
    assert result.found
    assert_allclose(result.x, qp.get_solution())
    assert result.primal_residual() < ATOL
    assert result.obj == pytest.approx(
        0.5 * 0.5 ** 2 + 0.5 * 0.7 ** 2 - 1.2, abs=ATOL)


def test_log(qp):
    logger = MatLogger()
    qp.log(logger, 0)
    assert set(logger.keys()) == {"H_0", "g_0", "A_0", "lA_0", "uA_0",
                                  "l_0", "u_0", "solution_0"}


def _optimum(ub):
    # min 1/2 |x - [1, 1]|^2  s.t.  x0 + x1 <= 1.2,  x0 <= ub, for ub >= 0.2
    x0 = min(ub, 0.6)
    return np.array([x0, min(1.0, 1.2 - x0)])


def test_hot_start_follows_moving_bounds(qp, problem_data):
    H, g, A, lA, uA, l, _ = problem_data
    # alternate both sides of the kink at 0.6
    sweep = np.linspace(0.3, 0.9, 41)[::-1].tolist()
    sweep += [0.3 + 0.1 * (k % 7) for k in range(40)]
    for ub in sweep:
        u = np.array([ub, 2.0])
        assert qp.update_bounds(l, u)
        assert qp.solve()
        fresh = QPProblem(2, 1)
        assert fresh.init_problem(H, g, A, lA, uA, l, u)
        assert_allclose(qp.get_solution(), fresh.get_solution(), atol=ATOL)
        assert_allclose(qp.get_solution(), _optimum(ub), atol=ATOL)


def test_hot_start_follows_moving_constraints(qp):
    for uA in [0.8, 1.2, 0.4, 1.0, 0.9, 2.0, 0.5]:
        assert qp.update_constraints([[1.0, 1.0]], [-np.inf], [uA])
        assert qp.solve()
        x0 = min(0.5, uA / 2.0)
        expected = [x0, min(1.0, uA - x0)]
        assert_allclose(qp.get_solution(), expected, atol=ATOL)


def _failing(qp, monkeypatch, failures):
    """Make the first `failures` solver outcomes count as failed."""
    solved = qp._solved
    outcomes = []

    def _solved():
        outcomes.append(len(outcomes) >= failures and solved())
        return outcomes[-1]

    monkeypatch.setattr(qp, "_solved", _solved)
    return outcomes


def _spy(qp, monkeypatch, name):
    method = getattr(qp, name)
    calls = []

    def _call(*args):
        calls.append(args)
        return method(*args)

    monkeypatch.setattr(qp, name, _call)
    return calls


def test_warm_start_after_failed_hot_start(qp, monkeypatch):
    assert qp.update_bounds([-2.0, -2.0], [0.3, 2.0])
    outcomes = _failing(qp, monkeypatch, 1)
    warm_starts = _spy(qp, monkeypatch, "_warm_start")
    inits = _spy(qp, monkeypatch, "init_problem")

    assert qp.solve()
    assert outcomes == [False, True]
    assert len(warm_starts) == 1
    assert inits == []
    assert_allclose(qp.get_solution(), [0.3, 0.9], atol=ATOL)


def test_cold_init_after_failed_warm_start(qp, monkeypatch):
    assert qp.update_bounds([-2.0, -2.0], [0.3, 2.0])
    outcomes = _failing(qp, monkeypatch, 2)
    inits = _spy(qp, monkeypatch, "init_problem")

    assert qp.solve()
    assert outcomes == [False, False, True]
    assert len(inits) == 1
    assert_allclose(qp.get_solution(), [0.3, 0.9], atol=ATOL)
    assert list(qp.get_active_bounds()) == [ActiveStatus.UPPER, ActiveStatus.INACTIVE]


def test_every_tier_failing(qp, monkeypatch):
    previous = qp.get_solution().copy()
    assert qp.update_bounds([-2.0, -2.0], [0.3, 2.0])
    outcomes = _failing(qp, monkeypatch, 3)

    assert not qp.solve()
    assert outcomes == [False, False, False]
    assert_allclose(qp.get_solution(), previous)
    assert not qp.get_result().found


def test_solve_recovers_after_inverted_bounds(qp):
    assert qp.update_bounds([1.0, 1.0], [0.0, 0.0])
    assert not qp.solve()
    assert qp.update_bounds([-2.0, -2.0], [0.3, 2.0])
    assert qp.solve()
    assert_allclose(qp.get_solution(), [0.3, 0.9], atol=ATOL)


def test_solver_hessian_type_mapping():
    assert solver_hessian_type(HessianType.ZERO) == proxqp.dense.HessianType.Zero
    assert solver_hessian_type(HessianType.IDENTITY) == proxqp.dense.HessianType.Diagonal
    for hessian_type in (HessianType.POSDEF, HessianType.SEMIDEF,
                         HessianType.UNKNOWN):
        assert solver_hessian_type(hessian_type) == proxqp.dense.HessianType.Dense


def test_hessian_type_survives_rebuild():
    qp = QPProblem(2, 0, hessian_type=HessianType.IDENTITY)
    assert qp.get_solver_hessian_type() == proxqp.dense.HessianType.Diagonal
    assert qp.init_problem(np.eye(2), [-1.0, 2.0], np.zeros((0, 2)), [], [], [], [])
    assert qp.update_task(np.eye(3), [-1.0, -2.0, -3.0])
    assert qp.get_solver_hessian_type() == proxqp.dense.HessianType.Diagonal
    assert_allclose(qp.get_solution(), [1.0, 2.0, 3.0], atol=ATOL)


def test_set_hessian_type_reaches_solver(qp):
    assert qp.get_solver_hessian_type() == proxqp.dense.HessianType.Dense
    qp.set_hessian_type(HessianType.IDENTITY)
    assert qp.get_solver_hessian_type() == proxqp.dense.HessianType.Diagonal
    assert qp.solve()
    assert_allclose(qp.get_solution(), [0.5, 0.7], atol=ATOL)
