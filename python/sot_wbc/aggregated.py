"""
@file aggregated.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import logging

import numpy as np
from scipy.linalg import block_diag

from sot_wbc.task import HessianType, Task

logger = logging.getLogger(__name__)


def unique_by_identity(items):
    """Drop repeated objects (compared with `is`), keeping the first
    occurrence of each."""
    seen = set()
    result = []
    for item in items:
        if id(item) not in seen:
            seen.add(id(item))
            result.append(item)
    return result


def contains_identity(items, item):
    return any(other is item for other in items)


class Aggregated(Task):
    """A task made of several tasks with the same x_size, stacked in list
    order:

        A = [A_1; A_2; ...],  b = [b_1; b_2; ...],  W = blkdiag(W_1, W_2, ...)

    The constraint list exposed by get_constraints() is the union, without
    repetitions, of the constraints of every component task (the aggregated
    constraints) and of the constraints attached directly to this task (the
    own constraints). Membership is recomputed at every update(); a constraint
    appended to get_constraints() is classified as own at the next update(),
    also when a component already holds it, and is then reported in both.
    """
    SEPARATOR = "plus"

    def __init__(self, tasks, x_size):
        tasks = list(tasks)
        if not tasks:
            raise ValueError("an aggregated task needs at least one task")
        for task in tasks:
            if task.get_x_size() != x_size:
                raise ValueError("task %s has x_size %d, expected %d" % (
                    task.get_task_id(), task.get_x_size(), x_size))

        super().__init__(self._concatenate_task_ids(tasks), np.zeros(x_size))
        self._tasks = tasks
        self._own_constraints = []
        self._aggregated_constraints = []
        self._generated_constraints = []
        self._weight_is_set = False
        self._hessian_type = self._compute_hessian_type()

        self._generate_constraints()
        self._update(self._x0)

    @classmethod
    def _concatenate_task_ids(cls, tasks):
        return cls.SEPARATOR.join(task.get_task_id() for task in tasks)

    def _compute_hessian_type(self):
        types = [task.get_hessian_type() for task in self._tasks]
        if len(types) == 1:
            return types[0]
        if any(t in (HessianType.IDENTITY, HessianType.POSDEF) for t in types):
            return HessianType.POSDEF
        return HessianType.SEMIDEF

    def get_task_list(self):
        return self._tasks

    def get_own_constraints(self):
        return self._own_constraints

    def get_aggregated_constraints(self):
        return self._aggregated_constraints

    def set_weight(self, W):
        super().set_weight(W)
        self._weight_is_set = True

    def update(self, x):
        for task in self._tasks:
            task.update(x)

        self._generate_constraints()
        for constraint in self._own_constraints:
            if not contains_identity(self._aggregated_constraints, constraint):
                constraint.update(x)

        self._update(x)

    def _update(self, x):
        self._A = np.vstack([task.get_A() for task in self._tasks])
        self._b = np.concatenate([task.get_b() for task in self._tasks])

        rows = self._A.shape[0]
        if self._weight_is_set:
            if self._W.shape == (rows, rows):
                return
            logger.warning("%s: weight %s does not match %d rows, "
                           "falling back to the component weights",
                           self._task_id, self._W.shape, rows)
            self._weight_is_set = False

        weights = []
        for task in self._tasks:
            task_rows = task.get_A().shape[0]
            if task_rows == 0:
                continue
            W = task.get_weight()
            weights.append(W if W.shape == (task_rows, task_rows) else np.eye(task_rows))
        self._W = block_diag(*weights) if weights else np.zeros((0, 0))

    def _generate_constraints(self):
        current = self._constraints
        # entries beyond what the last generation wrote, repeated ones
        # included, were attached directly to this task
        written = {}
        for constraint in self._generated_constraints:
            written[id(constraint)] = written.get(id(constraint), 0) + 1
        appended = []
        for constraint in current:
            if written.get(id(constraint), 0) > 0:
                written[id(constraint)] -= 1
            else:
                appended.append(constraint)

        own = [c for c in self._own_constraints if contains_identity(current, c)]
        self._own_constraints = unique_by_identity(own + appended)

        aggregated = []
        for task in self._tasks:
            aggregated.extend(task.get_constraints())
        self._aggregated_constraints = unique_by_identity(aggregated)

        # in place, references handed out by get_constraints() stay valid
        current[:] = unique_by_identity(
            self._aggregated_constraints + self._own_constraints)
        self._generated_constraints = list(current)
