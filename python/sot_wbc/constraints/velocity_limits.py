"""
@file velocity_limits.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import numpy as np

from sot_wbc.constraint import Constraint


class VelocityLimits(Constraint):
    """Bound the joint step of one control cycle to the joint speed limits:
    -dq_max*dt <= dq <= dq_max*dt. dq_max is a scalar or one value per joint.
    """
    def __init__(self, dq_max, dt, x_size, constraint_id="velocity_limits"):
        super().__init__(constraint_id, x_size)
        self._dt = float(dt)
        self.set_velocity_limits(dq_max)

    def get_velocity_limits(self):
        return self._dq_max

    def set_velocity_limits(self, dq_max):
        dq_max = np.broadcast_to(np.asarray(dq_max, dtype=float),
                                 (self._x_size,)).copy()
        if np.any(dq_max < 0.0):
            raise ValueError("velocity limits must be non negative")
        self._dq_max = dq_max
        self._upper_bound = self._dq_max * self._dt
        self._lower_bound = -self._upper_bound

    def get_dt(self):
        return self._dt
