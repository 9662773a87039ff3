"""
@file postural.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import numpy as np

from sot_wbc.task import HessianType, Task


class Postural(Task):
    """Drives the joints towards a reference posture:

        A = I,  b = lambda * (q_ref - q)

    The reference starts at the initial state.
    """
    def __init__(self, x, task_id="postural"):
        super().__init__(task_id, x)
        self._hessian_type = HessianType.IDENTITY
        self._reference = self._x0.copy()
        self._W = np.eye(self._x_size)
        self._update(self._x0)

    def get_reference(self):
        return self._reference

    def set_reference(self, reference):
        reference = np.asarray(reference, dtype=float)
        if reference.size != self._x_size:
            raise ValueError("reference has size %d, expected %d" % (
                reference.size, self._x_size))
        self._reference = reference.copy()

    def get_error(self):
        return self._error

    def _update(self, x):
        self._error = self._reference - np.asarray(x, dtype=float)
        self._A = np.eye(self._x_size)
        self._b = self._lambda * self._error
