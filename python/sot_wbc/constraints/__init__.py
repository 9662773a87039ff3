"""
@file __init__.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

from sot_wbc.constraints.aggregated import (AggregatedConstraint,
                                            AggregationPolicy)
from sot_wbc.constraints.convex_hull import ConvexHull
from sot_wbc.constraints.generic import (BilateralConstraint, Bounds,
                                         EqualityConstraint)
from sot_wbc.constraints.joint_limits import JointLimits
from sot_wbc.constraints.velocity_limits import VelocityLimits
