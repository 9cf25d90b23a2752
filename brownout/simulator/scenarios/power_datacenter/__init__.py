# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from .allocation_policy import AbsVmAllocationPolicy, StaticVmAllocationPolicy, ThresholdVmAllocationPolicy
from .business_engine import PowerDatacenterBusinessEngine
from .cloudlet import Cloudlet, OptionalComponent
from .common import MigrationAction, MigrationPayload, clamp_utilization
from .dimmer import DimmerController, build_selector, compute_dimmer_value, utilization_after_dimmer
from .energy import EnergyAccountant
from .enums import DatacenterState, Events, SelectionStrategy
from .host import PowerHost
from .migration import MigrationOrchestrator
from .power_model import (
    AbsPowerModel, PowerModelCalibrated, PowerModelLinear, PowerModelSpecPower, build_power_model
)
from .utilization_model import (
    AbsUtilizationModel, UtilizationModelConstant, UtilizationModelTrace, build_utilization_model
)
from .virtual_machine import VirtualMachine

__all__ = [
    "AbsVmAllocationPolicy", "StaticVmAllocationPolicy", "ThresholdVmAllocationPolicy",
    "PowerDatacenterBusinessEngine",
    "Cloudlet", "OptionalComponent",
    "MigrationAction", "MigrationPayload", "clamp_utilization",
    "DimmerController", "build_selector", "compute_dimmer_value", "utilization_after_dimmer",
    "EnergyAccountant",
    "DatacenterState", "Events", "SelectionStrategy",
    "PowerHost",
    "MigrationOrchestrator",
    "AbsPowerModel", "PowerModelCalibrated", "PowerModelLinear", "PowerModelSpecPower", "build_power_model",
    "AbsUtilizationModel", "UtilizationModelConstant", "UtilizationModelTrace", "build_utilization_model",
    "VirtualMachine"
]
