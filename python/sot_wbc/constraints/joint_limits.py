"""
@file joint_limits.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import numpy as np

from sot_wbc.constraint import Constraint


class JointLimits(Constraint):
    """Velocity-level joint limits, as a bound on the joint step dq:

        bound_scaling * (q_min - q) <= dq <= bound_scaling * (q_max - q)
    """
    def __init__(self, x, joint_upper_limits, joint_lower_limits,
                 bound_scaling=1.0, constraint_id="joint_limits"):
        x = np.asarray(x, dtype=float)
        super().__init__(constraint_id, x.size)
        self._joint_upper_limits = np.asarray(joint_upper_limits, dtype=float)
        self._joint_lower_limits = np.asarray(joint_lower_limits, dtype=float)
        if (self._joint_upper_limits.size != x.size or
                self._joint_lower_limits.size != x.size):
            raise ValueError("joint limits must have size %d" % x.size)
        self._bound_scaling = float(bound_scaling)
        self.update(x)

    def get_bound_scaling(self):
        return self._bound_scaling

    def set_bound_scaling(self, bound_scaling):
        self._bound_scaling = float(bound_scaling)

    def update(self, x):
        x = np.asarray(x, dtype=float)
        self._lower_bound = self._bound_scaling * (self._joint_lower_limits - x)
        self._upper_bound = self._bound_scaling * (self._joint_upper_limits - x)
