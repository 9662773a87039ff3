"""
@file hqp_solver.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import logging

import numpy as np

from sot_wbc.constraints.aggregated import AggregatedConstraint
from sot_wbc.qp_problem import QPProblem
from sot_wbc.solver_setting import SolverSetting
from sot_wbc.task import HessianType

logger = logging.getLogger(__name__)


class HQPSolver:
    """Solves a Stack level by level. Level i minimizes

        ||A_i x - b_i||^2_{W_i}

    subject to its own constraints, the stack bounds and A_j x = A_j x*_j
    for every level j above it, so lower levels act in the space left free
    by the higher ones. Each level keeps its QPProblem across cycles.
    """
    def __init__(self, stack, bounds=None, setting=None):
        self.stack = stack
        self.bounds = bounds
        self.setting = setting if setting is not None else SolverSetting()
        self.problems = []
        self.solution = np.zeros(stack.num_vars)

    def get_solution(self):
        return self.solution

    def get_problems(self):
        return self.problems

    def update(self, x):
        """Update the stack at state x and solve it."""
        self.stack.update(x)
        if self.bounds is not None:
            self.bounds.update(x)
        return self.solve()

    def _global_bounds(self):
        bounds = [b for b in (self.stack.get_bounds(), self.bounds) if b is not None]
        return bounds

    def solve(self):
        levels = self.stack.get_levels()
        n = self.stack.num_vars
        if len(self.problems) != len(levels):
            self.problems = [None] * len(levels)

        bounds = self._global_bounds()
        # optimality of the levels already solved
        A_opt, b_opt = [np.zeros((0, n))], [np.zeros(0)]
        x = self.solution
        for i, level in enumerate(levels):
            A, b, W = level.get_A(), level.get_b(), level.get_weight()
            H = A.T.dot(W).dot(A)
            g = -A.T.dot(W).dot(b)

            constraints = AggregatedConstraint(
                level.get_constraints() + bounds, n,
                infinity=self.setting.infinity)
            A_opt_stack = np.vstack(A_opt)
            b_opt_stack = np.concatenate(b_opt)
            C = np.vstack((constraints.get_Aineq(), A_opt_stack))
            lC = np.concatenate((constraints.get_b_lower_bound(), b_opt_stack))
            uC = np.concatenate((constraints.get_b_upper_bound(), b_opt_stack))
            l, u = constraints.get_lower_bound(), constraints.get_upper_bound()

            if not self._solve_level(i, level, H, g, C, lC, uC, l, u):
                logger.error("HQPSolver: level %d (%s) failed, keeping the "
                             "previous solution", i, level.get_task_id())
                return False

            x = self.problems[i].get_solution()
            if A.shape[0] > 0:
                A_opt.append(A)
                b_opt.append(A.dot(x))

        self.solution = x.copy()
        return True

    def _solve_level(self, i, level, H, g, C, lC, uC, l, u):
        problem = self.problems[i]
        if problem is not None:
            problem.set_hessian_type(self._hessian_type(level, H))
            if problem.update_problem(H, g, C, lC, uC, l, u):
                return problem.solve()
            logger.debug("HQPSolver: level %d changed layout, creating a new "
                         "problem", i)

        problem = QPProblem(H.shape[1], C.shape[0])
        problem.set_options(self.setting)
        problem.set_hessian_type(self._hessian_type(level, H))
        self.problems[i] = problem
        return problem.init_problem(H, g, C, lC, uC, l, u)

    @staticmethod
    def _hessian_type(level, H):
        hessian_type = level.get_hessian_type()
        # a weighted identity task can still give a full A^T W A
        if hessian_type == HessianType.IDENTITY and np.any(H - np.diag(np.diag(H))):
            return HessianType.POSDEF
        return hessian_type

    def log(self, logger):
        for i, problem in enumerate(self.problems):
            if problem is not None:
                problem.log(logger, i)
        logger.add("hqp_solution", self.solution)

    def print_problems_information(self):
        bounds = self._global_bounds()
        bounds_id = " ".join(b.get_constraint_id() for b in bounds)
        for i, (level, problem) in enumerate(zip(self.stack.get_levels(),
                                                 self.problems)):
            if problem is None:
                continue
            constraints_id = " ".join(c.get_constraint_id()
                                      for c in level.get_constraints())
            problem.print_problem_information(i, level.get_task_id(),
                                              constraints_id, bounds_id)
