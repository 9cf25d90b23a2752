# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from typing import List, Optional

from brownout.event_buffer import EventBuffer
from brownout.utils import DummyLogger
from brownout.utils.exception.simulator_exception import InvalidConfigError, InvalidMigrationTargetError

from .common import MigrationAction, MigrationPayload
from .enums import Events
from .host import PowerHost
from .virtual_machine import VirtualMachine


class MigrationOrchestrator:
    """Issue the VM moves of a migration plan.

    Half of the target bandwidth is reserved for the transfer, the other half
    stays with the running VMs.

    Args:
        event_buffer (EventBuffer): Buffer the migration complete events go to.
        hosts (List[PowerHost]): Hosts of the datacenter, a target must be one of them.
        bandwidth_conversion (float): Conversion constant between the VM memory unit and the bandwidth unit.
        logger: Logger for the migration announcements.
    """

    def __init__(self, event_buffer: EventBuffer, hosts: List[PowerHost], bandwidth_conversion: float, logger=None):
        if bandwidth_conversion <= 0:
            raise InvalidConfigError(f"Bandwidth conversion must be positive, got {bandwidth_conversion}.")

        self._event_buffer = event_buffer
        self._hosts = hosts
        self._bandwidth_conversion = bandwidth_conversion
        self._logger = logger or DummyLogger()

        self._migration_count = 0

    @property
    def migration_count(self) -> int:
        """int: Number of migrations issued in this run."""
        return self._migration_count

    def transfer_delay(self, vm: VirtualMachine, host: PowerHost) -> float:
        return vm.ram / (host.bw / 2 / self._bandwidth_conversion)

    def migrate(self, vm: VirtualMachine, target_host: PowerHost, tick: float) -> MigrationPayload:
        """Reserve the VM on the target and schedule the end of its transfer.

        Raises:
            InvalidMigrationTargetError: The target is missing, outside the datacenter or has no bandwidth.
                Nothing is changed in this case.
        """
        if target_host is None:
            raise InvalidMigrationTargetError(f"VM #{vm.id} has no migration target.")

        if not any(host is target_host for host in self._hosts):
            raise InvalidMigrationTargetError(f"Host #{target_host.id} is not part of the datacenter.")

        if target_host.bw <= 0:
            raise InvalidMigrationTargetError(f"Host #{target_host.id} has no bandwidth to receive VM #{vm.id}.")

        source_host = self._get_source_host(vm)

        target_host.add_migrating_in_vm(vm)
        vm.in_migration = True

        delay = self.transfer_delay(vm, target_host)
        payload = MigrationPayload(vm, source_host, target_host, delay)

        migrate_event = self._event_buffer.gen_atom_event(tick + delay, Events.VM_MIGRATE, payload)
        self._event_buffer.insert_event(migrate_event)

        self._migration_count += 1

        if source_host is None:
            self._logger.info(f"{tick:.2f}: Migration of VM #{vm.id} to Host #{target_host.id} is started")
        else:
            self._logger.info(
                f"{tick:.2f}: Migration of VM #{vm.id} from Host #{source_host.id} "
                f"to Host #{target_host.id} is started"
            )

        return payload

    def issue(self, plan: Optional[List[MigrationAction]], tick: float) -> List[MigrationPayload]:
        """Issue every entry of the plan, invalid entries are logged and skipped.

        Returns:
            List[MigrationPayload]: Migrations actually started.
        """
        started = []

        for action in plan or []:
            try:
                started.append(self.migrate(action.vm, action.host, tick))
            except InvalidMigrationTargetError as ex:
                self._logger.warn(f"{tick:.2f}: Migration of VM #{action.vm.id} is skipped, {ex}")

        return started

    def reset(self):
        self._migration_count = 0

    def _get_source_host(self, vm: VirtualMachine) -> Optional[PowerHost]:
        if vm.host_id is None:
            return None

        for host in self._hosts:
            if host.id == vm.host_id:
                return host

        return None
