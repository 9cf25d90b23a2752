# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from abc import ABC, abstractmethod
from typing import Dict, List

import numpy as np

from brownout.utils.exception.simulator_exception import InvalidConfigError


class AbsUtilizationModel(ABC):
    """CPU utilization model of a cloudlet.

    A value set with ``set_utilization`` overrides the model at exactly that time,
    this is how the dimmer throttles a cloudlet for the current interval.
    """

    def __init__(self):
        self._overrides: Dict[float, float] = {}

    def get_utilization(self, time: float) -> float:
        if time in self._overrides:
            return self._overrides[time]

        return self._get_utilization(time)

    def set_utilization(self, utilization: float, time: float):
        self._overrides[time] = utilization

    def discard_overrides_before(self, time: float):
        """Forget the overrides of times that are never read again."""
        for override_time in [t for t in self._overrides if t < time]:
            del self._overrides[override_time]

    @abstractmethod
    def _get_utilization(self, time: float) -> float:
        pass


class UtilizationModelConstant(AbsUtilizationModel):
    def __init__(self, utilization: float):
        super().__init__()
        self._utilization = utilization

    def _get_utilization(self, time: float) -> float:
        return self._utilization


class UtilizationModelTrace(AbsUtilizationModel):
    """Utilization read from a trace sampled every ``interval``.

    Values between two samples are interpolated, the last sample is held after the trace ends.
    """

    def __init__(self, samples: List[float], interval: float):
        super().__init__()
        if not samples:
            raise InvalidConfigError("Utilization trace cannot be empty.")
        if interval <= 0:
            raise InvalidConfigError(f"Utilization trace interval must be positive, got {interval}.")

        self._samples = np.asarray(samples, dtype=float)
        self._times = np.arange(len(samples), dtype=float) * interval

    def _get_utilization(self, time: float) -> float:
        return float(np.interp(time, self._times, self._samples))


def build_utilization_model(conf) -> AbsUtilizationModel:
    """Build utilization model from its configuration, a bare number means a constant model."""
    if isinstance(conf, (int, float)):
        return UtilizationModelConstant(float(conf))

    model_type = conf.get("type")

    if model_type == "constant":
        return UtilizationModelConstant(conf["value"])
    elif model_type == "trace":
        return UtilizationModelTrace(conf["samples"], conf["interval"])

    raise InvalidConfigError(f"Unknown utilization model type: '{model_type}'.")
