"""
@file aggregated.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

from enum import IntFlag

import numpy as np

from sot_wbc.aggregated import unique_by_identity
from sot_wbc.constraint import Constraint
from sot_wbc.qp_problem import DEFAULT_INFINITY


class AggregationPolicy(IntFlag):
    EQUALITIES_TO_INEQUALITIES = 1
    UNILATERAL_TO_BILATERAL = 2


DEFAULT_POLICY = (AggregationPolicy.EQUALITIES_TO_INEQUALITIES |
                  AggregationPolicy.UNILATERAL_TO_BILATERAL)


class AggregatedConstraint(Constraint):
    """Merge a list of constraints into a single one.

    Bounds are intersected element-wise, equalities and inequalities are
    stacked in list order. A constraint reachable twice in the list is
    merged once. A missing side of a bound or of an inequality row is filled
    with +-infinity whenever another constraint provides that side.
    """
    SEPARATOR = "plus"

    def __init__(self, constraints, x_size, aggregation_policy=DEFAULT_POLICY,
                 infinity=DEFAULT_INFINITY):
        constraints = unique_by_identity(constraints)
        for constraint in constraints:
            if constraint.get_x_size() != x_size:
                raise ValueError("constraint %s has x_size %d, expected %d" % (
                    constraint.get_constraint_id(), constraint.get_x_size(), x_size))

        super().__init__(self._concatenate_constraint_ids(constraints), x_size)
        self._constraints = constraints
        self._aggregation_policy = AggregationPolicy(aggregation_policy)
        self._infinity = infinity
        self._aggregate()

    @classmethod
    def _concatenate_constraint_ids(cls, constraints):
        return cls.SEPARATOR.join(c.get_constraint_id() for c in constraints)

    def get_constraint_list(self):
        return self._constraints

    def get_aggregation_policy(self):
        return self._aggregation_policy

    def update(self, x):
        for constraint in self._constraints:
            constraint.update(x)
        self._aggregate()

    def _side(self, vector, rows, sign):
        if vector.size > 0:
            return vector
        return np.full(rows, sign * self._infinity)

    def _aggregate(self):
        n = self._x_size
        lower, upper = [], []
        Aeq, beq = [], []
        Aineq, b_lower, b_upper = [], [], []
        has_lower = has_upper = False

        for constraint in self._constraints:
            if constraint.has_bounds():
                lower.append(self._side(constraint.get_lower_bound(), n, -1.0))
                upper.append(self._side(constraint.get_upper_bound(), n, 1.0))
            if constraint.is_equality_constraint():
                Aeq.append(constraint.get_Aeq())
                beq.append(constraint.get_beq())
            if constraint.is_inequality_constraint():
                rows = constraint.get_Aineq().shape[0]
                Aineq.append(constraint.get_Aineq())
                b_lower.append(self._side(constraint.get_b_lower_bound(), rows, -1.0))
                b_upper.append(self._side(constraint.get_b_upper_bound(), rows, 1.0))
                has_lower = has_lower or constraint.get_b_lower_bound().size > 0
                has_upper = has_upper or constraint.get_b_upper_bound().size > 0

        if lower:
            self._lower_bound = np.max(np.vstack(lower), axis=0)
            self._upper_bound = np.min(np.vstack(upper), axis=0)
        else:
            self._lower_bound = np.zeros(0)
            self._upper_bound = np.zeros(0)

        policy = self._aggregation_policy
        if Aeq and policy & AggregationPolicy.EQUALITIES_TO_INEQUALITIES:
            Aineq.extend(Aeq)
            b_lower.extend(beq)
            b_upper.extend(beq)
            has_lower = has_upper = True
            Aeq, beq = [], []

        self._Aeq = np.vstack(Aeq) if Aeq else np.zeros((0, n))
        self._beq = np.concatenate(beq) if beq else np.zeros(0)

        if not Aineq:
            self._Aineq = np.zeros((0, n))
            self._b_lower_bound = np.zeros(0)
            self._b_upper_bound = np.zeros(0)
            return

        self._Aineq = np.vstack(Aineq)
        bilateral = bool(policy & AggregationPolicy.UNILATERAL_TO_BILATERAL)
        self._b_lower_bound = (np.concatenate(b_lower) if bilateral or has_lower
                               else np.zeros(0))
        self._b_upper_bound = (np.concatenate(b_upper) if bilateral or has_upper
                               else np.zeros(0))
