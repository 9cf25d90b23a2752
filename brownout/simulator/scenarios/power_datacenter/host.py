# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from typing import List, Set

from .common import clamp_utilization
from .power_model import AbsPowerModel
from .virtual_machine import VirtualMachine


class PowerHost:
    """Physical host with a power model.

    Args:
        id (int): The host id.
        mips (float): MIPS of each processing element.
        pes (int): Number of processing elements.
        ram (int): Memory capacity (unit: MB).
        bw (float): Bandwidth available for VM transfers.
        power_model (AbsPowerModel): Utilization to power conversion of this host.
        logger: Logger used to report clamped utilization.
    """

    def __init__(
        self, id: int, mips: float, pes: int, ram: int, bw: float, power_model: AbsPowerModel, logger=None
    ):
        self.id: int = id
        self.mips: float = mips
        self.pes: int = pes
        self.ram: int = ram
        self.bw: float = bw
        self.power_model: AbsPowerModel = power_model
        self._logger = logger

        self._vms: List[VirtualMachine] = []
        # VMs reserved on this host while their memory is being transferred.
        self._vms_migrating_in: List[VirtualMachine] = []

        self.previous_utilization: float = 0.0
        self.utilization: float = 0.0

        self.disabled_tags: Set[str] = set()
        self.dimmer_value: float = 1.0
        self._revenue_loss: float = 0.0

    @property
    def capacity(self) -> float:
        """float: Total MIPS of the host."""
        return self.mips * self.pes

    @property
    def vms(self) -> List[VirtualMachine]:
        return self._vms

    @property
    def vms_migrating_in(self) -> List[VirtualMachine]:
        return self._vms_migrating_in

    @property
    def revenue_loss(self) -> float:
        return self._revenue_loss

    @property
    def allocated_ram(self) -> int:
        return sum(vm.ram for vm in self._vms) + sum(vm.ram for vm in self._vms_migrating_in)

    @property
    def allocated_mips(self) -> float:
        return sum(vm.capacity for vm in self._vms) + sum(vm.capacity for vm in self._vms_migrating_in)

    def add_revenue_loss(self, amount: float):
        # Revenue loss never decreases.
        if amount > 0:
            self._revenue_loss += amount

    def is_suitable_for_vm(self, vm: VirtualMachine) -> bool:
        return (
            self.allocated_ram + vm.ram <= self.ram
            and self.allocated_mips + vm.capacity <= self.capacity
        )

    def add_vm(self, vm: VirtualMachine):
        self._vms.append(vm)
        vm.host_id = self.id

    def remove_vm(self, vm: VirtualMachine):
        if vm in self._vms:
            self._vms.remove(vm)
            vm.host_id = None

    def add_migrating_in_vm(self, vm: VirtualMachine):
        if vm not in self._vms_migrating_in:
            self._vms_migrating_in.append(vm)

    def remove_migrating_in_vm(self, vm: VirtualMachine):
        if vm in self._vms_migrating_in:
            self._vms_migrating_in.remove(vm)

    def get_completed_vms(self) -> List[VirtualMachine]:
        """VMs whose workload is done and that are not moving."""
        return [vm for vm in self._vms if vm.is_completed and not vm.in_migration]

    def get_power(self, utilization: float = None) -> float:
        return self.power_model.get_power(self.utilization if utilization is None else utilization)

    def energy_linear_interpolation(self, from_utilization: float, to_utilization: float, time: float) -> float:
        """Energy over an interval in which the utilization moved linearly.

        Args:
            from_utilization (float): Utilization at the beginning of the interval.
            to_utilization (float): Utilization at the end of the interval.
            time (float): Interval length.

        Returns:
            float: Energy consumed in the interval (unit: W * time unit).
        """
        from_power = self.get_power(from_utilization)
        to_power = self.get_power(to_utilization)

        return (from_power + (to_power - from_power) / 2) * time

    def advance_workload(self, time: float) -> float:
        """Process the VM workload up to the given time and refresh the utilization.

        Returns:
            float: Earliest time a VM on this host expects an event, inf if the host is idle.
        """
        self.previous_utilization = self.utilization

        next_event_time = float("inf")
        for vm in self._vms:
            next_event_time = min(next_event_time, vm.update_processing(time))

        requested_mips = 0.0
        for vm in self._vms:
            vm_requested_mips = vm.get_requested_mips(time)
            vm.add_state_history(time, vm_requested_mips)
            requested_mips += vm_requested_mips

        self.utilization = clamp_utilization(
            requested_mips / self.capacity if self.capacity > 0 else 0.0,
            self._logger,
            f"Host #{self.id} utilization"
        )

        return next_event_time

    def __repr__(self):
        return "%s {id: %r, utilization: %r, vms: %r}" % \
            (self.__class__.__name__, self.id, self.utilization, [vm.id for vm in self._vms])
