"""
@file generic.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import numpy as np

from sot_wbc.constraint import Constraint


class BilateralConstraint(Constraint):
    """b_lower <= Aineq x <= b_upper for matrices computed elsewhere.

    Either side may be an empty vector, which makes the constraint unilateral.
    """
    def __init__(self, constraint_id, Aineq, b_lower, b_upper):
        Aineq = np.atleast_2d(np.asarray(Aineq, dtype=float))
        super().__init__(constraint_id, Aineq.shape[1])
        self.set_constraint(Aineq, b_lower, b_upper)

    def set_constraint(self, Aineq, b_lower, b_upper):
        Aineq = np.atleast_2d(np.asarray(Aineq, dtype=float))
        b_lower = np.asarray(b_lower, dtype=float).reshape(-1)
        b_upper = np.asarray(b_upper, dtype=float).reshape(-1)
        if Aineq.shape[1] != self._x_size:
            raise ValueError("Aineq has %d cols, expected %d" % (
                Aineq.shape[1], self._x_size))
        for b in (b_lower, b_upper):
            if b.size not in (0, Aineq.shape[0]):
                raise ValueError("bound vector of size %d for %d rows" % (
                    b.size, Aineq.shape[0]))
        self._Aineq = Aineq
        self._b_lower_bound = b_lower
        self._b_upper_bound = b_upper


class EqualityConstraint(Constraint):
    """Aeq x = beq for matrices computed elsewhere."""
    def __init__(self, constraint_id, Aeq, beq):
        Aeq = np.atleast_2d(np.asarray(Aeq, dtype=float))
        super().__init__(constraint_id, Aeq.shape[1])
        self.set_constraint(Aeq, beq)

    def set_constraint(self, Aeq, beq):
        Aeq = np.atleast_2d(np.asarray(Aeq, dtype=float))
        beq = np.asarray(beq, dtype=float).reshape(-1)
        if Aeq.shape[1] != self._x_size:
            raise ValueError("Aeq has %d cols, expected %d" % (
                Aeq.shape[1], self._x_size))
        if beq.size != Aeq.shape[0]:
            raise ValueError("beq size %d for %d rows" % (beq.size, Aeq.shape[0]))
        self._Aeq = Aeq
        self._beq = beq


class Bounds(Constraint):
    """Fixed box l <= x <= u."""
    def __init__(self, constraint_id, lower_bound, upper_bound):
        lower_bound = np.asarray(lower_bound, dtype=float).reshape(-1)
        super().__init__(constraint_id, lower_bound.size)
        self.set_bounds(lower_bound, upper_bound)

    def set_bounds(self, lower_bound, upper_bound):
        lower_bound = np.asarray(lower_bound, dtype=float).reshape(-1)
        upper_bound = np.asarray(upper_bound, dtype=float).reshape(-1)
        if lower_bound.size != self._x_size or upper_bound.size != self._x_size:
            raise ValueError("bounds must have size %d" % self._x_size)
        self._lower_bound = lower_bound
        self._upper_bound = upper_bound
