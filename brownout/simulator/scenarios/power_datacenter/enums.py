# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from enum import Enum


class Events(Enum):
    """Power datacenter related events."""
    # Periodic processing of the datacenter, the only kind that is canceled and rescheduled.
    DATACENTER_TICK = "datacenter_tick"
    # A VM transfer is completed, never canceled once scheduled.
    VM_MIGRATE = "vm_migrate"
    # A cloudlet arrives at its VM.
    CLOUDLET_SUBMIT = "cloudlet_submit"


class DatacenterState(Enum):
    """State of the datacenter tick machine."""
    # No cloudlet submitted yet, or the latest submission happened at this very time.
    AWAITING_WORKLOAD = "awaiting_workload"
    ACTIVE = "active"


class SelectionStrategy(Enum):
    """Strategies to pick the optional component disabled by the dimmer."""
    NEAREST_UTILIZATION = "nearest_utilization"
    LOWEST_UTILIZATION = "lowest_utilization"
    HIGHEST_UTILIZATION_PRICE_RATIO = "highest_utilization_price_ratio"
    LOWEST_PRICE = "lowest_price"
