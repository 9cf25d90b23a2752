# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .common import MigrationAction
from .host import PowerHost
from .virtual_machine import VirtualMachine


class AbsVmAllocationPolicy(ABC):
    """Decide the host of each VM.

    Args:
        hosts (List[PowerHost]): Hosts of the datacenter.
    """

    def __init__(self, hosts: List[PowerHost]):
        self._hosts = hosts
        self._vm_host_mapping: Dict[int, PowerHost] = {}

    @property
    def hosts(self) -> List[PowerHost]:
        return self._hosts

    def find_host_for_vm(self, vm: VirtualMachine) -> Optional[PowerHost]:
        """First fit."""
        for host in self._hosts:
            if host.is_suitable_for_vm(vm):
                return host

        return None

    def allocate(self, vm: VirtualMachine, host: PowerHost = None) -> bool:
        """Place the VM on the host, or on the first suitable host if not given.

        Returns:
            bool: True if the VM is placed.
        """
        if host is None:
            host = self.find_host_for_vm(vm)
        elif not host.is_suitable_for_vm(vm):
            host = None

        if host is None:
            return False

        host.add_vm(vm)
        self._vm_host_mapping[vm.id] = host

        return True

    def release(self, vm: VirtualMachine):
        host = self._vm_host_mapping.pop(vm.id, None)

        if host is not None:
            host.remove_vm(vm)

    def get_host(self, vm: VirtualMachine) -> Optional[PowerHost]:
        return self._vm_host_mapping.get(vm.id, None)

    @abstractmethod
    def plan_migrations(self, vms: List[VirtualMachine]) -> Optional[List[MigrationAction]]:
        """Compute the VM moves for the current state of the datacenter.

        Args:
            vms (List[VirtualMachine]): The whole VM population.

        Returns:
            List[MigrationAction]: Moves to issue, None or empty if nothing to do.
        """
        pass


class StaticVmAllocationPolicy(AbsVmAllocationPolicy):
    """First fit placement, VMs never move once placed."""

    def plan_migrations(self, vms: List[VirtualMachine]) -> Optional[List[MigrationAction]]:
        return None


class ThresholdVmAllocationPolicy(AbsVmAllocationPolicy):
    """Move one VM away from every host above the utilization threshold.

    The smallest VM (by memory) of an overloaded host goes to the least utilized
    host that stays at or under the threshold with it. VMs without a host get a
    first placement.

    Args:
        hosts (List[PowerHost]): Hosts of the datacenter.
        upper_threshold (float): Utilization above which a host is overloaded.
    """

    def __init__(self, hosts: List[PowerHost], upper_threshold: float):
        super().__init__(hosts)
        self._upper_threshold = upper_threshold

    def plan_migrations(self, vms: List[VirtualMachine]) -> Optional[List[MigrationAction]]:
        plan: List[MigrationAction] = []
        # Utilization each host would have after the planned moves.
        expected_utilization = {host.id: host.utilization for host in self._hosts}

        for vm in vms:
            if vm.host_id is None and not vm.in_migration:
                target = self._find_target(vm, None, expected_utilization, plan)

                if target is not None:
                    plan.append(MigrationAction(vm, target))

        for host in self._hosts:
            if host.utilization <= self._upper_threshold:
                continue

            candidates = [vm for vm in host.vms if not vm.in_migration]
            if not candidates:
                continue

            vm = min(candidates, key=lambda candidate: candidate.ram)
            target = self._find_target(vm, host, expected_utilization, plan)

            if target is not None:
                load = self._get_vm_load(vm, host)
                expected_utilization[host.id] -= load
                plan.append(MigrationAction(vm, target))

        return plan

    def _find_target(self, vm, source, expected_utilization, plan) -> Optional[PowerHost]:
        planned_ram = {}
        for action in plan:
            planned_ram[action.host.id] = planned_ram.get(action.host.id, 0) + action.vm.ram

        best_host = None
        best_utilization = None

        for host in self._hosts:
            if host is source or not host.is_suitable_for_vm(vm):
                continue

            if host.allocated_ram + planned_ram.get(host.id, 0) + vm.ram > host.ram:
                continue

            utilization_after = expected_utilization[host.id] + self._get_vm_load(vm, host)
            if utilization_after > self._upper_threshold:
                continue

            if best_utilization is None or expected_utilization[host.id] < best_utilization:
                best_host = host
                best_utilization = expected_utilization[host.id]

        if best_host is not None:
            expected_utilization[best_host.id] += self._get_vm_load(vm, best_host)

        return best_host

    def _get_vm_load(self, vm: VirtualMachine, host: PowerHost) -> float:
        if not vm.state_history or host.capacity <= 0:
            return 0.0

        return vm.state_history[-1][1] / host.capacity
