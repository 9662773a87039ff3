"""
@file qp_problem.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import logging
from enum import IntEnum
from typing import NamedTuple

import numpy as np
import qpsolvers
from proxsuite import proxqp

from sot_wbc.task import HessianType

logger = logging.getLogger(__name__)

DEFAULT_MAX_WSR = 132
DEFAULT_EPS_REGULARISATION = 2e2
# proximal step of the solver is BASE_EPS_REGULARISATION * eps_regularisation
BASE_EPS_REGULARISATION = 5e-9
DEFAULT_INFINITY = 1e20
DEFAULT_EPS_ABS = 1e-6
ACTIVE_TOLERANCE = 1e-9


def solver_hessian_type(hessian_type):
    """ProxQP structure of the Hessian for a HessianType."""
    if hessian_type == HessianType.ZERO:
        return proxqp.dense.HessianType.Zero
    if hessian_type == HessianType.IDENTITY:
        return proxqp.dense.HessianType.Diagonal
    return proxqp.dense.HessianType.Dense


class ActiveStatus(IntEnum):
    LOWER = -1
    INACTIVE = 0
    UPPER = 1


class ActiveSet(NamedTuple):
    """Status (ActiveStatus values) of each bound and constraint row at the
    last solution."""

    bounds: np.ndarray
    constraints: np.ndarray


def _as_vector(v):
    return np.array(v, dtype=float).reshape(-1)


def _as_matrix(M, cols):
    M = np.array(M, dtype=float)
    if M.size == 0:
        return np.zeros((0, cols))
    return np.atleast_2d(M)


class QPProblem:
    """Variables, options and execution of a single QP:

        minimize    1/2 x^T H x + g^T x
        subject to  lA <= A x <= uA
                     l <=   x <= u

    The solver instance is created for a fixed number of variables and
    constraint rows and is kept across solves so that every solve() can be
    hot-started from the previous one. The instance is rebuilt only when
    update_task() or update_constraints() change the problem dimensions.

    All the operations report failures through their boolean result; the
    cached solution is only refreshed by successful solves.
    """
    def __init__(self, number_of_variables, number_of_constraints,
                 hessian_type=HessianType.UNKNOWN,
                 eps_regularisation=DEFAULT_EPS_REGULARISATION):
        self._hessian_type = HessianType(hessian_type)
        self._max_wsr = DEFAULT_MAX_WSR
        self._eps_regularisation = float(eps_regularisation)
        self._infinity = DEFAULT_INFINITY
        self._eps_abs = DEFAULT_EPS_ABS
        self._diagnostic = False
        self._verbose = False

        self._H = np.zeros((0, 0))
        self._g = np.zeros(0)
        self._A = np.zeros((0, number_of_variables))
        self._lA = np.zeros(0)
        self._uA = np.zeros(0)
        self._l = np.zeros(0)
        self._u = np.zeros(0)

        self._solution = np.zeros(number_of_variables)
        self._dual_solution = np.zeros(number_of_variables + number_of_constraints)
        self._active_set = ActiveSet(
            np.zeros(number_of_variables, dtype=int),
            np.zeros(number_of_constraints, dtype=int))
        self._initialized = False
        self._found = False

        self._problem = None
        self._create_problem(number_of_variables, number_of_constraints)
        logger.debug("QPProblem created with %d variables, %d constraints, "
                     "hessian type %s", number_of_variables,
                     number_of_constraints, self._hessian_type.name)

    def _create_problem(self, number_of_variables, number_of_constraints):
        # the bounds are handled as identity rows after the constraint block
        self._number_of_variables = number_of_variables
        self._number_of_constraints = number_of_constraints
        self._solver_hessian_type = solver_hessian_type(self._hessian_type)
        self._problem = proxqp.dense.QP(
            number_of_variables, 0, number_of_constraints + number_of_variables,
            hessian_type=self._solver_hessian_type)
        self._apply_settings()

    def _apply_settings(self):
        settings = self._problem.settings
        settings.max_iter = self._max_wsr
        settings.eps_abs = self._eps_abs
        settings.eps_rel = 0.0
        # a hot start keeps the previous (x, z), which stays primal and dual
        # feasible when a bound moves: only the gap reveals the stale pair
        settings.check_duality_gap = True
        settings.eps_duality_gap_abs = self._eps_abs
        settings.eps_duality_gap_rel = 0.0
        settings.default_rho = self._rho()
        settings.verbose = self._verbose

    def _rho(self):
        return BASE_EPS_REGULARISATION * self._eps_regularisation

    # Options

    def get_max_wsr(self):
        """Maximum number of working set recalculations per solve."""
        return self._max_wsr

    def set_max_wsr(self, max_wsr):
        self._max_wsr = int(max_wsr)
        self._apply_settings()

    def get_eps_regularisation(self):
        return self._eps_regularisation

    def set_eps_regularisation(self, eps_regularisation):
        self._eps_regularisation = float(eps_regularisation)
        self._apply_settings()

    def get_infinity(self):
        return self._infinity

    def set_infinity(self, infinity):
        self._infinity = float(infinity)

    def get_hessian_type(self):
        return self._hessian_type

    def set_hessian_type(self, hessian_type):
        hessian_type = HessianType(hessian_type)
        if hessian_type == self._hessian_type:
            return
        self._hessian_type = hessian_type
        self._rebuild()

    def get_solver_hessian_type(self):
        """Hessian structure the solver instance was created with."""
        return self._solver_hessian_type

    def _rebuild(self):
        # same shape, new instance: the next solve() initializes it again
        self._create_problem(self._number_of_variables,
                             self._number_of_constraints)
        self._initialized = False

    def set_options(self, setting):
        """Apply a SolverSetting."""
        self._max_wsr = int(setting.max_wsr)
        self._eps_regularisation = float(setting.eps_regularisation)
        self._infinity = float(setting.infinity)
        self._eps_abs = float(setting.eps_abs)
        self._diagnostic = bool(setting.diagnostic)
        self._verbose = bool(setting.verbose)
        self._apply_settings()
        if setting.hessian_type is not None:
            self.set_hessian_type(setting.get_hessian_type())

    def get_options(self):
        return {
            "max_wsr": self._max_wsr,
            "eps_regularisation": self._eps_regularisation,
            "infinity": self._infinity,
            "eps_abs": self._eps_abs,
            "diagnostic": self._diagnostic,
            "verbose": self._verbose,
        }

    # Problem

    def init_problem(self, H, g, A, lA, uA, l, u):
        """Initialize the QP and solve it from scratch.

        Args:
            H (ndarray): Hessian, n x n.
            g (ndarray): Gradient, n.
            A (ndarray): Constraint matrix, m x n (m may be 0).
            lA, uA (ndarray): Constraint lower and upper vectors, m.
            l, u (ndarray): Bounds on x, n (or both empty).
        Returns:
            True if the problem was solved.
        """
        H = np.atleast_2d(np.array(H, dtype=float))
        g = _as_vector(g)
        A = _as_matrix(A, H.shape[1])
        lA, uA = _as_vector(lA), _as_vector(uA)
        l, u = _as_vector(l), _as_vector(u)

        if not self._check_sizes(H, g, A, lA, uA, l, u):
            return False

        self._H, self._g = H, g
        self._A, self._lA, self._uA = A, lA, uA
        self._l, self._u = l, u
        if (H.shape[1], A.shape[0]) != (self._number_of_variables,
                                        self._number_of_constraints):
            logger.debug("problem shape changed to (%d, %d), rebuilding "
                         "the solver", H.shape[1], A.shape[0])
            self._create_problem(H.shape[1], A.shape[0])

        self._check_infinity()
        if not self._check_ordering():
            # the instance is left without data, the next solve() starts over
            self._initialized = False
            self._found = False
            return False

        self._initialized = True
        self._apply_settings()
        self._problem.settings.initial_guess = proxqp.InitialGuess.NO_INITIAL_GUESS
        self._init_solver()
        self._problem.solve()

        if not self._solved():
            if self._diagnostic:
                self._check_infeasibility()
            logger.error("error initializing QP problem, status %s",
                         self._problem.results.info.status)
            self._found = False
            return False

        self._get_results()
        return True

    def update_task(self, H, g):
        """Replace H and g. A different number of variables is only accepted
        when no constraint row and no bound ties the problem to the current
        one; the solver is then rebuilt and initialized again."""
        H = np.atleast_2d(np.array(H, dtype=float))
        g = _as_vector(g)

        if H.shape[0] != H.shape[1]:
            logger.error("H is not square: %s", H.shape)
            return False
        if g.size != H.shape[0]:
            logger.error("g size: %d, H rows: %d", g.size, H.shape[0])
            return False
        if H.shape[1] != self._number_of_variables and (
                self._A.shape[0] > 0 or self._l.size > 0):
            logger.error("H cols: %d, should be: %d",
                         H.shape[1], self._number_of_variables)
            return False

        if H.shape[0] == self._H.shape[0]:
            self._H, self._g = H, g
            return True

        self._H, self._g = H, g
        if self._A.shape[1] != H.shape[1]:
            self._A = np.zeros((0, H.shape[1]))
        self._create_problem(H.shape[1], self._A.shape[0])
        return self.init_problem(self._H, self._g, self._A, self._lA, self._uA,
                                 self._l, self._u)

    def update_constraints(self, A, lA, uA):
        """Replace A, lA and uA. A different number of rows rebuilds the
        solver and initializes it again."""
        A = _as_matrix(A, self._H.shape[1])
        lA, uA = _as_vector(lA), _as_vector(uA)

        if A.shape[1] != self._H.shape[1]:
            logger.error("A cols: %d, should be: %d", A.shape[1], self._H.shape[1])
            return False
        if lA.size != A.shape[0]:
            logger.error("lA size: %d, A rows: %d", lA.size, A.shape[0])
            return False
        if lA.size != uA.size:
            logger.error("lA size: %d, uA size: %d", lA.size, uA.size)
            return False

        if A.shape[0] == self._A.shape[0]:
            self._A, self._lA, self._uA = A, lA, uA
            return True

        self._A, self._lA, self._uA = A, lA, uA
        self._create_problem(self._H.shape[1], A.shape[0])
        return self.init_problem(self._H, self._g, self._A, self._lA, self._uA,
                                 self._l, self._u)

    def update_bounds(self, l, u):
        """Replace l and u; their sizes cannot change."""
        l, u = _as_vector(l), _as_vector(u)

        if l.size != self._l.size:
            logger.error("l size: %d, should be: %d", l.size, self._l.size)
            return False
        if u.size != self._u.size:
            logger.error("u size: %d, should be: %d", u.size, self._u.size)
            return False
        if l.size != u.size:
            logger.error("l size: %d, u size: %d", l.size, u.size)
            return False

        self._l, self._u = l, u
        return True

    def update_problem(self, H, g, A, lA, uA, l, u):
        """Bounds first, then constraints, then task: a rebuild triggered by
        the task uses the constraints and bounds of this same call."""
        return (self.update_bounds(l, u)
                and self.update_constraints(A, lA, uA)
                and self.update_task(H, g))

    def solve(self):
        """Solve the current problem, hot-starting from the previous solve.

        On failure the problem is initialized again warm-started from the
        previous primal-dual solution and active set, then, as last resort,
        from scratch.
        """
        if not self._initialized:
            if self._H.size == 0:
                logger.error("solve() called before init_problem()")
                return False
            return self.init_problem(self._H, self._g, self._A, self._lA,
                                     self._uA, self._l, self._u)

        self._check_infinity()
        if not self._check_ordering():
            self._found = False
            return False

        self._apply_settings()
        self._problem.settings.initial_guess = \
            proxqp.InitialGuess.WARM_START_WITH_PREVIOUS_RESULT
        C, lC, uC = self._stacked_constraints()
        self._problem.update(H=self._H, g=self._g, C=C, l=lC, u=uC,
                             update_preconditioner=True, rho=self._rho())
        self._problem.solve()
        if self._solved():
            self._get_results()
            return True

        logger.warning("hot start failed with status %s, retrying init with "
                       "warm start", self._problem.results.info.status)
        if self._warm_start():
            return True

        logger.warning("warm start failed with status %s, retrying init",
                       self._problem.results.info.status)
        return self.init_problem(self._H, self._g, self._A, self._lA, self._uA,
                                 self._l, self._u)

    def _warm_start(self):
        x0, z0 = self._warm_start_guess()
        if x0 is None:
            return False
        self._problem.settings.initial_guess = proxqp.InitialGuess.WARM_START
        self._init_solver()
        self._problem.solve(x0, np.zeros(0), z0)
        if not self._solved():
            return False
        self._get_results()
        return True

    def _warm_start_guess(self):
        n, m = self._number_of_variables, self._number_of_constraints
        if self._solution.size != n or self._dual_solution.size != n + m:
            return None, None
        active_bounds = self._active_set.bounds != ActiveStatus.INACTIVE
        active_constraints = self._active_set.constraints != ActiveStatus.INACTIVE
        z_bounds = np.where(active_bounds, self._dual_solution[:n], 0.0)
        z_constraints = np.where(active_constraints, self._dual_solution[n:], 0.0)
        return self._solution.copy(), np.concatenate((z_constraints, z_bounds))

    def _init_solver(self):
        C, lC, uC = self._stacked_constraints()
        self._problem.init(H=self._H, g=self._g, C=C, l=lC, u=uC,
                           rho=self._rho())

    def _stacked_constraints(self):
        n = self._number_of_variables
        C = np.vstack((self._A, np.eye(n)))
        if self._l.size > 0:
            l, u = self._l, self._u
        else:
            l = np.full(n, -self._infinity)
            u = np.full(n, self._infinity)
        return C, np.concatenate((self._lA, l)), np.concatenate((self._uA, u))

    def _solved(self):
        results = self._problem.results
        return (results.info.status == proxqp.QPSolverOutput.PROXQP_SOLVED
                and np.all(np.isfinite(results.x)))

    def _get_results(self):
        n, m = self._number_of_variables, self._number_of_constraints
        results = self._problem.results
        z = np.array(results.z, dtype=float)

        self._solution = np.array(results.x, dtype=float)
        self._dual_solution = np.concatenate((z[m:], z[:m]))
        self._active_set = ActiveSet(self._active_status(z[m:]),
                                     self._active_status(z[:m]))
        self._found = True

    @staticmethod
    def _active_status(z):
        status = np.full(z.size, int(ActiveStatus.INACTIVE))
        status[z > ACTIVE_TOLERANCE] = ActiveStatus.UPPER
        status[z < -ACTIVE_TOLERANCE] = ActiveStatus.LOWER
        return status

    def _check_sizes(self, H, g, A, lA, uA, l, u):
        if H.shape[0] != H.shape[1]:
            logger.error("H is not square: %s", H.shape)
            return False
        if g.size != H.shape[0]:
            logger.error("g size: %d, H rows: %d", g.size, H.shape[0])
            return False
        if l.size != u.size:
            logger.error("l size: %d, u size: %d", l.size, u.size)
            return False
        if l.size not in (0, H.shape[1]):
            logger.error("l size: %d, should be: %d", l.size, H.shape[1])
            return False
        if lA.size != A.shape[0]:
            logger.error("lA size: %d, A rows: %d", lA.size, A.shape[0])
            return False
        if lA.size != uA.size:
            logger.error("lA size: %d, uA size: %d", lA.size, uA.size)
            return False
        if A.shape[1] != H.shape[1]:
            logger.error("A cols: %d, should be: %d", A.shape[1], H.shape[1])
            return False
        return True

    def _check_infinity(self):
        """Clamp to +-infinity the bounds and constraints set beyond it."""
        inf = self._infinity
        self._lA = np.maximum(self._lA, -inf)
        self._uA = np.minimum(self._uA, inf)
        self._l = np.maximum(self._l, -inf)
        self._u = np.minimum(self._u, inf)

    def _check_ordering(self):
        inverted = np.flatnonzero(self._l > self._u)
        if inverted.size > 0:
            logger.error("inverted bounds l > u at %s", inverted.tolist())
            return False
        inverted = np.flatnonzero(self._lA > self._uA)
        if inverted.size > 0:
            logger.error("inverted constraints lA > uA at %s", inverted.tolist())
            return False
        return True

    def _check_infeasibility(self):
        """Log the constraint rows violated at the solver's last iterate."""
        x = np.array(self._problem.results.x, dtype=float)
        if x.size != self._H.shape[1] or not np.all(np.isfinite(x)):
            logger.error("no iterate available to check infeasibility")
            return
        Ax = self._A.dot(x)
        tolerance = 10.0 * self._eps_abs
        for i in range(self._lA.size):
            level = logging.ERROR if (
                Ax[i] < self._lA[i] - tolerance or
                Ax[i] > self._uA[i] + tolerance) else logging.DEBUG
            logger.log(level, "%d: %g <= Ax = %g <= %g",
                       i, self._lA[i], Ax[i], self._uA[i])
        for i in range(self._l.size):
            if x[i] < self._l[i] - tolerance or x[i] > self._u[i] + tolerance:
                logger.error("bound %d: %g <= x = %g <= %g",
                             i, self._l[i], x[i], self._u[i])
        logger.debug("A =\n%s", self._A)

    # Results

    def get_solution(self):
        return self._solution

    def get_dual_solution(self):
        """Bound multipliers followed by constraint multipliers; positive
        where the upper side is active, negative where the lower side is."""
        return self._dual_solution

    def get_active_set(self):
        return self._active_set

    def get_active_bounds(self):
        return self._active_set.bounds

    def get_active_constraints(self):
        return self._active_set.constraints

    def get_H(self):
        return self._H

    def get_g(self):
        return self._g

    def get_A(self):
        return self._A

    def get_lA(self):
        return self._lA

    def get_uA(self):
        return self._uA

    def get_l(self):
        return self._l

    def get_u(self):
        return self._u

    def get_number_of_variables(self):
        return self._number_of_variables

    def get_number_of_constraints(self):
        return self._number_of_constraints

    def get_problem(self):
        """The current QP as a qpsolvers.Problem, with the finite sides of
        lA <= A x <= uA written as G x <= h."""
        upper = self._uA < self._infinity
        lower = self._lA > -self._infinity
        G = np.vstack((self._A[upper], -self._A[lower]))
        h = np.concatenate((self._uA[upper], -self._lA[lower]))
        if h.size == 0:
            G, h = None, None
        lb = self._l if self._l.size > 0 else None
        ub = self._u if self._u.size > 0 else None
        return qpsolvers.Problem(self._H, self._g, G, h, None, None, lb, ub)

    def get_result(self):
        """The last solution as a qpsolvers.Solution of get_problem()."""
        n, m = self._H.shape[1], self._A.shape[0]
        upper = self._uA < self._infinity
        lower = self._lA > -self._infinity
        # caches from before a failed rebuild do not fit the current problem
        x = self._solution if self._solution.size == n else np.zeros(n)
        dual = (self._dual_solution if self._dual_solution.size == n + m
                else np.zeros(n + m))
        z = dual[n:]

        solution = qpsolvers.Solution(self.get_problem())
        solution.found = self._found
        solution.x = x.copy()
        solution.y = np.zeros(0)
        solution.z = np.concatenate((np.maximum(z, 0.0)[upper],
                                     np.maximum(-z, 0.0)[lower]))
        solution.z_box = dual[:n].copy()
        solution.obj = 0.5 * x.dot(self._H).dot(x) + self._g.dot(x)
        return solution

    # Diagnostics

    def log(self, logger, i):
        """Push the problem matrices to a MatLogger, keyed by index i."""
        logger.add("H_%d" % i, self._H)
        logger.add("g_%d" % i, self._g)
        if self._A.size > 0:
            logger.add("A_%d" % i, self._A)
        if self._lA.size > 0:
            logger.add("lA_%d" % i, self._lA)
        if self._uA.size > 0:
            logger.add("uA_%d" % i, self._uA)
        if self._l.size > 0:
            logger.add("l_%d" % i, self._l)
        if self._u.size > 0:
            logger.add("u_%d" % i, self._u)
        if self._solution.size > 0:
            logger.add("solution_%d" % i, self._solution)

    def print_problem_information(self, problem_number, problem_id,
                                  constraints_id, bounds_id):
        if problem_number == -1:
            logger.info("PROBLEM ID: %s", problem_id)
        else:
            logger.info("PROBLEM %d ID: %s", problem_number, problem_id)
        logger.info("eps regularisation factor: %g", self._eps_regularisation)
        logger.info("CONSTRAINTS ID: %s", constraints_id)
        logger.info("    # OF CONSTRAINTS: %d", self._number_of_constraints)
        logger.info("BOUNDS ID: %s", bounds_id)
        logger.info("    # OF BOUNDS: %d", self._l.size)
        logger.info("# OF VARIABLES: %d", self._number_of_variables)
