"""
@file task.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import abc
from enum import IntEnum

import numpy as np


class HessianType(IntEnum):
    """Known structure of the QP Hessian A^T W A of a task."""
    ZERO = 0
    IDENTITY = 1
    POSDEF = 2
    POSDEF_NULLSPACE = 3
    SEMIDEF = 4
    INDEF = 5
    UNKNOWN = 6


class Task(abc.ABC):
    """A weighted linear least-squares objective on the controlled variable x

        minimize ||A x - b||^2_W

    together with the list of constraints attached to it. The list holds
    references: one constraint object may be shared by several tasks and is
    never copied.

    Derived classes implement _update(x), which must leave
    A.shape == (rows, x_size) and b.shape == (rows,).
    """
    def __init__(self, task_id, x):
        x = np.asarray(x, dtype=float)
        self._task_id = task_id
        self._x_size = x.size
        self._x0 = x.copy()

        self._A = np.zeros((0, self._x_size))
        self._b = np.zeros(0)
        self._W = np.zeros((0, 0))
        self._lambda = 1.0
        self._hessian_type = HessianType.UNKNOWN
        self._constraints = []

    def __repr__(self):
        return "%s(%r, x_size=%d)" % (
            type(self).__name__, self._task_id, self._x_size)

    def get_task_id(self):
        return self._task_id

    def get_x_size(self):
        return self._x_size

    def get_A(self):
        return self._A

    def get_b(self):
        return self._b

    def get_weight(self):
        return self._W

    def set_weight(self, W):
        W = np.atleast_2d(np.asarray(W, dtype=float))
        if W.shape[0] != W.shape[1]:
            raise ValueError("weight must be square, got shape %s" % (W.shape,))
        if W.shape[0] != self._A.shape[0]:
            raise ValueError("weight has %d rows but the task has %d" % (
                W.shape[0], self._A.shape[0]))
        self._W = W

    def get_lambda(self):
        return self._lambda

    def set_lambda(self, value):
        """Error feedback gain, in [0, 1]."""
        if not 0.0 <= value <= 1.0:
            raise ValueError("lambda must be in [0, 1], got %s" % value)
        self._lambda = float(value)

    def get_hessian_type(self):
        return self._hessian_type

    def get_constraints(self):
        """The mutable list of constraints attached to this task."""
        return self._constraints

    def update(self, x):
        """Refresh the attached constraints, then A and b, at state x."""
        for constraint in self._constraints:
            constraint.update(x)
        self._update(x)
        self._check_weight()

    @abc.abstractmethod
    def _update(self, x):
        raise NotImplementedError

    def _check_weight(self):
        rows = self._A.shape[0]
        if self._W.shape != (rows, rows):
            self._W = np.eye(rows)

    def log(self, logger):
        logger.add(self._task_id + "_A", self._A)
        logger.add(self._task_id + "_b", self._b)
        logger.add(self._task_id + "_W", self._W)
        for constraint in self._constraints:
            constraint.log(logger)
