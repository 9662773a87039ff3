"""
@file demo_postural.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01

Joint-space stack of tasks: the first two joints are kept inside a support
polygon at top priority, a postural task drives the rest of the joints to a
reference inside joint and velocity limits.
"""


import os
import sys
import inspect
import logging
import numpy as np

from sot_wbc.solver_setting import SolverSetting
from sot_wbc.stack import Stack
from sot_wbc.hqp_solver import HQPSolver
from sot_wbc.mat_logger import MatLogger
from sot_wbc.tasks import Postural
from sot_wbc.constraints import ConvexHull, JointLimits, VelocityLimits


# absolute directory of this package
rootdir = os.path.dirname(os.path.dirname(
        os.path.abspath(inspect.getfile(inspect.currentframe()))))


def main(argv):
    # Load configuration file
    if len(argv) == 1:
        cfg_file = argv[0]
    else:
        raise RuntimeError("Usage: python3 ./demo_postural.py /<config file within root folder>")

    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    setting = SolverSetting()
    configs = setting.initialize(rootdir, cfg_file)
    timestep = setting.timestep
    duration = configs["duration"]

    q = setting.joint_init_pos.copy()
    num_joints = q.size

    # Tasks and constraints
    postural = Postural(q)
    postural.set_lambda(setting.postural_lambda)
    postural.set_reference(setting.joint_ref_pos)

    joint_limits = JointLimits(q, setting.joint_upper_limits,
                               setting.joint_lower_limits)
    velocity_limits = VelocityLimits(setting.joint_vel_limits, timestep,
                                     num_joints)
    support = ConvexHull(num_joints, np.array(configs["support_points"]),
                         safety_margin=0.05)
    postural.get_constraints().append(support)

    stack = Stack()
    stack.set_num_variables(num_joints)
    stack.add_task(0, postural)
    stack.add_bounds(joint_limits)
    stack.add_bounds(velocity_limits)

    solver = HQPSolver(stack, setting=setting)
    mat_logger = MatLogger(os.path.join(rootdir, configs["log_filename"]))

    # The first two joints are read as a planar point relative to the
    # polygon, which moves with them.
    for step in range(int(duration / timestep)):
        support.set_points(np.array(configs["support_points"]) - q[0:2])
        if not solver.update(q):
            print("Stack could not be solved at step", step)
            break
        q = q + solver.get_solution()
        solver.log(mat_logger)
        mat_logger.add("q", q)

    solver.print_problems_information()

    print("final posture:", q)
    print("posture error:", np.linalg.norm(postural.get_error()))
    mat_logger.flush()


if __name__ == '__main__':
    main(sys.argv[1:])
