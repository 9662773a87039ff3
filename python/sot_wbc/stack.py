"""
@file stack.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

from sot_wbc.aggregated import Aggregated
from sot_wbc.constraints.aggregated import AggregatedConstraint


class Stack:
    """Tasks sorted by priority (lower value first) plus the bounds shared
    by every priority level. Tasks added with the same priority are merged
    into one Aggregated level."""
    def __init__(self):
        self.num_vars = 0
        self.hierarchical_tasks = {}
        self.bounds = []
        self._levels = None
        self._aggregated_bounds = None

    def set_num_variables(self, dim):
        self.num_vars = dim

    def add_task(self, priority, task):
        if self.num_vars == 0:
            self.num_vars = task.get_x_size()
        assert task.get_x_size() == self.num_vars
        self.hierarchical_tasks.setdefault(priority, []).append(task)
        self._levels = None

    def add_bounds(self, constraint):
        if self.num_vars == 0:
            self.num_vars = constraint.get_x_size()
        assert constraint.get_x_size() == self.num_vars
        self.bounds.append(constraint)
        self._aggregated_bounds = None

    def get_priorities(self):
        return sorted(self.hierarchical_tasks)

    def get_levels(self):
        if self._levels is None:
            self._levels = []
            for priority in self.get_priorities():
                tasks = self.hierarchical_tasks[priority]
                if len(tasks) == 1:
                    self._levels.append(tasks[0])
                else:
                    self._levels.append(Aggregated(tasks, self.num_vars))
        return self._levels

    def get_bounds(self):
        """The bounds merged into one constraint, None without bounds."""
        if not self.bounds:
            return None
        if self._aggregated_bounds is None:
            self._aggregated_bounds = AggregatedConstraint(self.bounds,
                                                           self.num_vars)
        return self._aggregated_bounds

    def update(self, x):
        for level in self.get_levels():
            level.update(x)
        bounds = self.get_bounds()
        if bounds is not None:
            bounds.update(x)
