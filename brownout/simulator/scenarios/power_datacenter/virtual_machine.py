# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from typing import List, Optional, Tuple

from .cloudlet import Cloudlet

# Progress below this amount of MI counts as done, it absorbs float noise.
FINISHED_LENGTH_EPSILON = 1e-6


class VirtualMachine:
    """VM object.

    The VM only keeps the id of its host, the host owns the VM list.

    Args:
        id (int): The VM id.
        mips (float): MIPS of each processing element.
        pes (int): Number of processing elements.
        ram (int): The memory of the VM. The unit is (MB).
        bw (float): The bandwidth of the VM.
    """
    def __init__(self, id: int, mips: float, pes: int, ram: int, bw: float = 0.0):
        self.id: int = id
        self.mips: float = mips
        self.pes: int = pes
        self.ram: int = ram
        self.bw: float = bw

        # The host id that the VM is assigned, None if it is not placed.
        self.host_id: Optional[int] = None
        self.in_migration: bool = False

        # (time, requested mips) pairs, append only.
        self._state_history: List[Tuple[float, float]] = []
        self._cloudlets: List[Cloudlet] = []

    @property
    def capacity(self) -> float:
        """float: Total MIPS of the VM."""
        return self.mips * self.pes

    @property
    def state_history(self) -> List[Tuple[float, float]]:
        return self._state_history

    @property
    def cloudlets(self) -> List[Cloudlet]:
        return self._cloudlets

    @property
    def running_cloudlets(self) -> List[Cloudlet]:
        return [cloudlet for cloudlet in self._cloudlets if not cloudlet.is_finished]

    @property
    def is_completed(self) -> bool:
        """bool: The VM had workload and all of it is done."""
        return len(self._cloudlets) > 0 and all(cloudlet.is_finished for cloudlet in self._cloudlets)

    def submit_cloudlet(self, cloudlet: Cloudlet, time: float):
        cloudlet.last_update_time = time
        self._cloudlets.append(cloudlet)

    def get_requested_mips(self, time: float) -> float:
        return sum(self._get_allocated_mips(time))

    def add_state_history(self, time: float, requested_mips: float):
        # Several passes at the same time keep the latest state only.
        if self._state_history and self._state_history[-1][0] == time:
            self._state_history[-1] = (time, requested_mips)
        else:
            self._state_history.append((time, requested_mips))

    def update_processing(self, time: float) -> float:
        """Bring the running cloudlets up to the given time.

        Cloudlets progress at the MIPS allocated at the beginning of each interval.

        Returns:
            float: Estimated time of the next cloudlet completion, inf if nothing runs.
        """
        running_cloudlets = self.running_cloudlets
        # Rates are fixed for the whole interval, before any cloudlet finishes in it.
        rates = [
            self._get_allocated_mips(cloudlet.last_update_time, cloudlet)
            if cloudlet.last_update_time is not None and time > cloudlet.last_update_time else 0.0
            for cloudlet in running_cloudlets
        ]

        for cloudlet, rate in zip(running_cloudlets, rates):
            if rate > 0:
                cloudlet.finished_length += rate * (time - cloudlet.last_update_time)
            cloudlet.last_update_time = time
            cloudlet.discard_utilization_before(time)

        for cloudlet in running_cloudlets:
            if cloudlet.remaining_length <= FINISHED_LENGTH_EPSILON:
                cloudlet.finished_length = cloudlet.length
                cloudlet.finish_time = time

        next_event_time = float("inf")
        running_cloudlets = self.running_cloudlets
        allocated_mips = self._get_allocated_mips(time)

        for cloudlet, mips in zip(running_cloudlets, allocated_mips):
            if mips > 0:
                next_event_time = min(next_event_time, time + cloudlet.remaining_length / mips)

        return next_event_time

    def _get_allocated_mips(self, time: float, cloudlet: Cloudlet = None):
        """MIPS allocated to the running cloudlets, scaled down when they ask for more than the VM has."""
        running_cloudlets = self.running_cloudlets
        requested = [max(0.0, c.get_utilization(time)) * self.capacity for c in running_cloudlets]
        total_requested = sum(requested)
        scale = self.capacity / total_requested if total_requested > self.capacity else 1.0
        allocated = [mips * scale for mips in requested]

        if cloudlet is not None:
            return allocated[running_cloudlets.index(cloudlet)]

        return allocated

    def __repr__(self):
        return "%s {id: %r, host_id: %r, in_migration: %r}" % \
            (self.__class__.__name__, self.id, self.host_id, self.in_migration)
