"""
@file solver_setting.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import logging

import numpy as np
import yaml

from sot_wbc.qp_problem import (DEFAULT_EPS_ABS, DEFAULT_EPS_REGULARISATION,
                                DEFAULT_INFINITY, DEFAULT_MAX_WSR)
from sot_wbc.task import HessianType

logger = logging.getLogger(__name__)


def load_yaml(filename):
    with open(filename, "r") as f:
        return yaml.safe_load(f)


class SolverSetting:

    def __init__(self):
        self.max_wsr = DEFAULT_MAX_WSR
        self.eps_regularisation = DEFAULT_EPS_REGULARISATION
        self.infinity = DEFAULT_INFINITY
        self.eps_abs = DEFAULT_EPS_ABS
        self.hessian_type = "unknown"
        self.diagnostic = False
        self.verbose = False

        self.timestep = 0.002
        self.joint_init_pos = np.zeros(0)
        self.joint_ref_pos = np.zeros(0)
        self.joint_upper_limits = np.zeros(0)
        self.joint_lower_limits = np.zeros(0)
        self.joint_vel_limits = np.zeros(0)
        self.postural_lambda = 1.0

    def get_hessian_type(self):
        return HessianType[str(self.hessian_type).upper()]

    def initialize(self, rootdir, cfg_file, solver_vars_yaml="solver_variables"):
        configs = load_yaml(rootdir + cfg_file)
        cfg = configs[solver_vars_yaml]
        self.max_wsr = int(cfg.get("max_wsr", self.max_wsr))
        self.eps_regularisation = float(cfg.get("eps_regularisation",
                                                self.eps_regularisation))
        self.infinity = float(cfg.get("infinity", self.infinity))
        self.eps_abs = float(cfg.get("eps_abs", self.eps_abs))
        self.hessian_type = cfg.get("hessian_type", self.hessian_type)
        self.diagnostic = bool(cfg.get("diagnostic", self.diagnostic))
        self.verbose = bool(cfg.get("verbose", self.verbose))
        # fail early on an unknown name
        self.get_hessian_type()
        logger.info("SolverSetting: max_wsr: %d, eps_regularisation: %g, "
                    "infinity: %g", self.max_wsr, self.eps_regularisation,
                    self.infinity)

        self.timestep = float(cfg.get("timestep", self.timestep))
        self.joint_init_pos = np.array(cfg.get("joint_init_pos", []), dtype=float)
        self.joint_ref_pos = np.array(cfg.get("joint_ref_pos", []), dtype=float)
        self.joint_upper_limits = np.array(cfg.get("joint_upper_limits", []),
                                           dtype=float)
        self.joint_lower_limits = np.array(cfg.get("joint_lower_limits", []),
                                           dtype=float)
        self.joint_vel_limits = np.array(cfg.get("joint_vel_limits", []),
                                         dtype=float)
        self.postural_lambda = float(cfg.get("postural_lambda",
                                             self.postural_lambda))
        return configs
