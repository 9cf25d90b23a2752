# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from abc import ABC, abstractmethod
from typing import List

import numpy as np

from brownout.utils.exception.simulator_exception import InvalidConfigError


class AbsPowerModel(ABC):
    """Map a CPU utilization in [0, 1] to the instantaneous power of a host (unit: W)."""

    @abstractmethod
    def get_power(self, utilization: float) -> float:
        pass


class PowerModelLinear(AbsPowerModel):
    """Power grows linearly from the idle power to the max power."""

    def __init__(self, max_power: float, static_power_percent: float):
        self.max_power = max_power
        self.static_power = static_power_percent * max_power

    def get_power(self, utilization: float) -> float:
        return self.static_power + (self.max_power - self.static_power) * utilization


class PowerModelCalibrated(AbsPowerModel):
    """Convert the CPU utilization to power with a calibration parameter.

    The formulation refers to https://dl.acm.org/doi/epdf/10.1145/1273440.1250665
    """

    def __init__(self, idle_power: float, busy_power: float, calibration_parameter: float):
        self.idle_power = idle_power
        self.busy_power = busy_power
        self.calibration_parameter = calibration_parameter

    def get_power(self, utilization: float) -> float:
        utilization = min(1, utilization)
        return (
            self.idle_power
            + (self.busy_power - self.idle_power) * (2 * utilization - pow(utilization, self.calibration_parameter))
        )


class PowerModelSpecPower(AbsPowerModel):
    """Power model built on SPECpower measurements.

    The table holds the power at 0%, 10%, ..., 100% utilization, values in between are linearly interpolated.
    """

    def __init__(self, power_table: List[float]):
        if len(power_table) != 11:
            raise InvalidConfigError(f"SPECpower table needs 11 values, got {len(power_table)}.")

        self._power_table = np.asarray(power_table, dtype=float)
        self._utilization_points = np.linspace(0.0, 1.0, num=len(power_table))

    def get_power(self, utilization: float) -> float:
        return float(np.interp(utilization, self._utilization_points, self._power_table))


def build_power_model(conf: dict) -> AbsPowerModel:
    """Build power model from its configuration.

    Args:
        conf (dict): Configuration with a "type" key, one of "linear", "calibrated", "spec".

    Returns:
        AbsPowerModel: The power model instance.
    """
    model_type = conf.get("type")

    if model_type == "linear":
        return PowerModelLinear(conf["max_power"], conf.get("static_power_percent", 0.7))
    elif model_type == "calibrated":
        return PowerModelCalibrated(conf["idle_power"], conf["busy_power"], conf["calibration_parameter"])
    elif model_type == "spec":
        return PowerModelSpecPower(conf["power_table"])

    raise InvalidConfigError(f"Unknown power model type: '{model_type}'.")
