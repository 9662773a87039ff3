"""
@file mat_logger.py
@package sot_wbc
@author Xinyuan Liu (liuxinyuan872@gmail.com)
@license License BSD-3-Clause
@Copyright (c) 2026, Harbin Institute of Technology.
@date 2026-01
"""

import logging
import re

import numpy as np
from scipy.io import savemat

logger = logging.getLogger(__name__)


def _variable_name(name):
    # MATLAB variable names: letters, digits and underscores
    return re.sub(r"\W", "_", name)


class MatLogger:
    """Collects matrix snapshots by name and writes them to a .mat file.

    Each add() appends one sample to the series stored under the name. A
    series whose samples all have the same shape is saved as one array with
    the sample index first; otherwise it is saved as a cell array.
    """
    def __init__(self, path=None):
        self._path = path
        self._data = {}

    def add(self, name, value):
        key = _variable_name(name)
        self._data.setdefault(key, []).append(np.array(value, copy=True))

    def keys(self):
        return list(self._data.keys())

    def get(self, name):
        samples = self._data[_variable_name(name)]
        if len({sample.shape for sample in samples}) == 1:
            return np.stack(samples)
        series = np.empty(len(samples), dtype=object)
        for i, sample in enumerate(samples):
            series[i] = sample
        return series

    def clear(self):
        self._data.clear()

    def flush(self, path=None):
        """Write every series to path (or to the path given at construction)."""
        path = path if path is not None else self._path
        if path is None:
            raise ValueError("no output path for the MatLogger")
        savemat(path, {key: self.get(key) for key in self._data})
        logger.info("MatLogger: %d series written to %s", len(self._data), path)
