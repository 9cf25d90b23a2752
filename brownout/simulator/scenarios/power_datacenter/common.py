# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from typing import Optional

from brownout.utils import DummyLogger


def clamp_utilization(utilization: float, logger=None, source: str = "utilization") -> float:
    """Clamp a utilization value into [0, 1].

    Out of range values supplied by collaborators are not fatal, they are logged and clamped.
    """
    if 0.0 <= utilization <= 1.0:
        return utilization

    (logger or DummyLogger()).warn(f"{source} {utilization} is out of [0, 1], clamped.")

    return min(max(0.0, utilization), 1.0)


class MigrationAction:
    """One entry of a migration plan produced by an allocation policy.

    Args:
        vm (VirtualMachine): The VM to move.
        host (PowerHost): The target host.
    """

    def __init__(self, vm, host):
        self.vm = vm
        self.host = host

    def __repr__(self):
        return "%s {vm_id: %r, host_id: %r}" % (
            self.__class__.__name__, self.vm.id, None if self.host is None else self.host.id
        )


class MigrationPayload:
    """Payload of the migration complete event.

    Args:
        vm (VirtualMachine): The migrating VM.
        source_host (PowerHost): Host the VM leaves, None for a first placement.
        target_host (PowerHost): Host the VM is reserved on.
        delay (float): Transfer delay of the VM memory.
    """
    def __init__(self, vm, source_host: Optional[object], target_host, delay: float):
        self.vm = vm
        self.source_host = source_host
        self.target_host = target_host
        self.delay = delay

    @property
    def is_first_placement(self) -> bool:
        return self.source_host is None

    def __repr__(self):
        return "%s {vm_id: %r, source_host_id: %r, target_host_id: %r, delay: %r}" % (
            self.__class__.__name__,
            self.vm.id,
            None if self.source_host is None else self.source_host.id,
            self.target_host.id,
            self.delay
        )
