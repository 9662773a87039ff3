"""
@file convex_hull.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import numpy as np

from sot_wbc.constraint import Constraint
from sot_wbc.geometry import hull_to_halfplanes, support_polygon


class ConvexHull(Constraint):
    """Keeps a planar point (typically the CoM ground projection) inside the
    support polygon.

    The support points are expressed in a frame centred at the controlled
    point. With A_ch, b_ch the half-planes of their convex hull, the
    constraint on the step dx of the controlled variable is

        A_ch J dx <= b_ch

    where J (2 x x_size) maps dx to the planar displacement of the point.
    J defaults to the selection of the first two variables. The inequality
    is unilateral: b_lower_bound is empty.
    """
    def __init__(self, x_size, points, jacobian=None, safety_margin=0.0,
                 constraint_id="convex_hull"):
        super().__init__(constraint_id, x_size)
        self._safety_margin = float(safety_margin)
        if jacobian is None:
            jacobian = np.eye(2, x_size)
        self.set_jacobian(jacobian)
        self.set_points(points)
        self.update(None)

    def get_points(self):
        return self._points

    def set_points(self, points):
        """Support points, N x 2 or N x 3. Used from the next update()."""
        points = np.atleast_2d(np.asarray(points, dtype=float))
        if points.shape[0] < 3:
            raise ValueError("a support polygon needs at least 3 points")
        self._points = points

    def get_jacobian(self):
        return self._jacobian

    def set_jacobian(self, jacobian):
        jacobian = np.atleast_2d(np.asarray(jacobian, dtype=float))
        if jacobian.shape != (2, self._x_size):
            raise ValueError("jacobian must be 2 x %d, got %s" % (
                self._x_size, jacobian.shape))
        self._jacobian = jacobian

    def get_safety_margin(self):
        return self._safety_margin

    def get_hull(self):
        """Vertices of the support polygon at the last update()."""
        return self._hull

    def update(self, x):
        self._hull = support_polygon(self._points)
        A_ch, b_ch = hull_to_halfplanes(self._hull, self._safety_margin)
        self._Aineq = A_ch.dot(self._jacobian)
        self._b_upper_bound = b_ch
        self._b_lower_bound = np.zeros(0)

    def _log(self, logger):
        logger.add(self._constraint_id + "_hull", self._hull)
