"""
@file __init__.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

from sot_wbc.constraint import Constraint
from sot_wbc.task import HessianType, Task
from sot_wbc.aggregated import Aggregated
from sot_wbc.qp_problem import ActiveSet, ActiveStatus, QPProblem
from sot_wbc.solver_setting import SolverSetting
from sot_wbc.mat_logger import MatLogger
from sot_wbc.stack import Stack
from sot_wbc.hqp_solver import HQPSolver
