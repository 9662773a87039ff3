"""
@file constraint.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import numpy as np


class Constraint:
    """The Constraint class describes every kind of linear relation on the
    controlled variable x:

        lower_bound <= x <= upper_bound              (bounds)
        Aeq x = beq                                  (equalities)
        b_lower_bound <= Aineq x <= b_upper_bound    (inequalities)

    Any of the blocks may be empty. Derived classes refresh the blocks in
    update(); the classification predicates are recomputed from the current
    sizes on every call and are never cached.
    """
    def __init__(self, constraint_id, x_size):
        self._constraint_id = constraint_id
        self._x_size = int(x_size)

        self._lower_bound = np.zeros(0)
        self._upper_bound = np.zeros(0)
        self._Aeq = np.zeros((0, self._x_size))
        self._beq = np.zeros(0)
        self._Aineq = np.zeros((0, self._x_size))
        self._b_lower_bound = np.zeros(0)
        self._b_upper_bound = np.zeros(0)

    def __repr__(self):
        return "%s(%r, x_size=%d)" % (
            type(self).__name__, self._constraint_id, self._x_size)

    def get_constraint_id(self):
        return self._constraint_id

    def get_x_size(self):
        return self._x_size

    def get_lower_bound(self):
        return self._lower_bound

    def get_upper_bound(self):
        return self._upper_bound

    def get_Aeq(self):
        return self._Aeq

    def get_beq(self):
        return self._beq

    def get_Aineq(self):
        return self._Aineq

    def get_b_lower_bound(self):
        return self._b_lower_bound

    def get_b_upper_bound(self):
        return self._b_upper_bound

    def is_equality_constraint(self):
        """True if the constraint enforces an equality Aeq x = beq."""
        return self._Aeq.shape[0] > 0

    def is_inequality_constraint(self):
        """True if the constraint enforces an inequality on Aineq x."""
        return self._Aineq.shape[0] > 0

    def is_unilateral_constraint(self):
        """True if the inequality is bounded on one side only."""
        return self.is_inequality_constraint() and (
            self._b_lower_bound.size == 0 or self._b_upper_bound.size == 0)

    def is_bilateral_constraint(self):
        return self.is_inequality_constraint() and not self.is_unilateral_constraint()

    def has_bounds(self):
        """True if the constraint carries a box on x, i.e. its constraint
        matrix contains an identity block."""
        return self._lower_bound.size > 0 or self._upper_bound.size > 0

    def is_bound(self):
        """True if the constraint is a pure box l <= x <= u."""
        return self.has_bounds() and not self.is_constraint()

    def is_constraint(self):
        """True if the constraint is not (only) a bound."""
        return self.is_equality_constraint() or self.is_inequality_constraint()

    def update(self, x):
        """Updates the bounds, equality and inequality blocks.

        Args:
            x (ndarray): Controlled variable state at the current step.
        """
        pass

    def log(self, logger):
        """Push the non-empty blocks to a MatLogger, keyed by constraint id."""
        if self._Aeq.size > 0:
            logger.add(self._constraint_id + "_Aeq", self._Aeq)
        if self._Aineq.size > 0:
            logger.add(self._constraint_id + "_Aineq", self._Aineq)
        if self._beq.size > 0:
            logger.add(self._constraint_id + "_beq", self._beq)
        if self._b_lower_bound.size > 0:
            logger.add(self._constraint_id + "_bLowerBound", self._b_lower_bound)
        if self._b_upper_bound.size > 0:
            logger.add(self._constraint_id + "_bUpperBound", self._b_upper_bound)
        if self._upper_bound.size > 0:
            logger.add(self._constraint_id + "_upperBound", self._upper_bound)
        if self._lower_bound.size > 0:
            logger.add(self._constraint_id + "_lowerBound", self._lower_bound)
        self._log(logger)

    def _log(self, logger):
        pass
