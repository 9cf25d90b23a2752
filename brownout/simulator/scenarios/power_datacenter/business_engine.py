# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import math
import os
from typing import List, Optional

from brownout.event_buffer import AtomEvent, EventBuffer
from brownout.simulator.scenarios.abs_business_engine import AbsBusinessEngine
from brownout.simulator.scenarios.helpers import DocableDict
from brownout.utils import LogFormat, Logger, convert_dottable, load_yaml_config, merge_options
from brownout.utils.exception.simulator_exception import InvalidConfigError, NoHostForDimmerError

from .allocation_policy import AbsVmAllocationPolicy, StaticVmAllocationPolicy, ThresholdVmAllocationPolicy
from .cloudlet import Cloudlet, OptionalComponent
from .common import MigrationPayload
from .dimmer import DimmerController
from .energy import EnergyAccountant
from .enums import DatacenterState, Events
from .host import PowerHost
from .migration import MigrationOrchestrator
from .power_model import build_power_model
from .utilization_model import build_utilization_model
from .virtual_machine import VirtualMachine

metrics_desc = """
Power datacenter metrics used provide statistics information until now.
It contains following keys:

total_energy_consumption (float): Accumulative energy consumed by all hosts (unit: W * sec).
migration_count (int): Accumulative VM migrations issued, first placements included.
dimmer_times (int): Accumulative times a host had its optional components throttled.
dimmer_eligible_times (int): Accounted time frames multiplied by the host amount,
                        each of them may have triggered the dimmer.
idle_host_samples (List[Tuple[float, int]]): (time, number of hosts at zero utilization), one entry
                        per sampling time in time order. The time is the event time minus the sampling
                        offset, e.g. 300 for a sample taken at 300.1.
revenue_loss (float): Accumulative price of the optional components disabled on all hosts.
"""

DEFAULT_TOPOLOGY = "toy.2_hosts"


class PowerDatacenterBusinessEngine(AbsBusinessEngine):
    """Power aware datacenter with a brownout dimmer.

    Every scheduling interval the datacenter throttles the overloaded hosts,
    advances the workload, accounts the energy and issues the VM migrations
    planned by the allocation policy.
    """

    def __init__(
        self,
        event_buffer: EventBuffer,
        topology: Optional[str],
        start_tick: float,
        max_tick: float,
        additional_options: dict = None
    ):
        super().__init__(
            scenario_name="power_datacenter", event_buffer=event_buffer,
            topology=topology if topology else DEFAULT_TOPOLOGY, start_tick=start_tick, max_tick=max_tick,
            additional_options=additional_options
        )

        # Load configurations.
        self._load_configs()
        self._init_logger()
        self._register_events()

        self._init_components()
        self._init_datacenter()
        self._init_events()

    @property
    def configs(self) -> dict:
        """dict: Current configuration."""
        return self._config

    @property
    def hosts(self) -> List[PowerHost]:
        return self._hosts

    @property
    def vms(self) -> List[VirtualMachine]:
        """List[VirtualMachine]: VMs that still have a workload to run."""
        return self._vms

    @property
    def cloudlets(self) -> List[Cloudlet]:
        return self._cloudlets

    @property
    def allocation_policy(self) -> AbsVmAllocationPolicy:
        return self._allocation_policy

    @property
    def last_process_tick(self) -> float:
        return self._last_process_tick

    @property
    def state(self) -> DatacenterState:
        """DatacenterState: State of the datacenter at the latest event time."""
        if self._cloudlet_submitted_tick is None or self._cloudlet_submitted_tick == self._current_tick:
            return DatacenterState.AWAITING_WORKLOAD

        return DatacenterState.ACTIVE

    @property
    def total_energy(self) -> float:
        return self._energy_accountant.total_energy

    @property
    def migration_count(self) -> int:
        return self._migration_orchestrator.migration_count

    @property
    def dimmer_times(self) -> int:
        return self._dimmer_controller.dimmer_times

    @property
    def revenue_loss(self) -> float:
        """float: Revenue loss of the whole datacenter."""
        return sum(host.revenue_loss for host in self._hosts)

    @property
    def is_in_migration(self) -> bool:
        """bool: Whether a VM is being transferred."""
        return any(vm.in_migration for vm in self._vms)

    def step(self, tick: float):
        """Update the clock, the real work happens in the event handlers of this time.

        Args:
            tick (float): Current simulated time.
        """
        self._current_tick = tick

    def post_step(self, tick: float) -> bool:
        return tick >= self._max_tick

    def reset(self):
        """Reset internal states for episode."""
        self._current_tick = self._start_tick

        self._dimmer_controller.reset()
        self._energy_accountant.reset()

        # Hosts, VMs and the migration orchestrator are rebuilt from the configuration.
        self._init_datacenter()
        self._init_events()

    def get_metrics(self) -> DocableDict:
        """Get current environment metrics information.

        Returns:
            DocableDict: Metrics information.
        """
        return DocableDict(
            metrics_desc,
            total_energy_consumption=self._energy_accountant.total_energy,
            migration_count=self._migration_orchestrator.migration_count,
            dimmer_times=self._dimmer_controller.dimmer_times,
            dimmer_eligible_times=len(self._energy_accountant.eligible_ticks) * len(self._hosts),
            idle_host_samples=list(self._energy_accountant.idle_host_samples),
            revenue_loss=self.revenue_loss
        )

    def _load_configs(self):
        """Load configurations."""
        # Update self._config_path with current file path.
        self.update_config_root_path(__file__)

        config = load_yaml_config(os.path.join(self._config_path, "config.yml"))
        self._config = convert_dottable(merge_options(config, self._additional_options))

        self._scheduling_interval: float = self._config.scheduling_interval
        self._disable_migrations: bool = self._config.migration.get("disable", False)

        if self._scheduling_interval <= 0:
            raise InvalidConfigError(f"Scheduling interval must be positive, got {self._scheduling_interval}.")

        if self._config.sampling.period <= 0:
            raise InvalidConfigError(f"Sampling period must be positive, got {self._config.sampling.period}.")

    def _init_logger(self):
        self._logger = Logger(
            tag=self._scenario_name,
            format_=LogFormat.trace,
            dump_folder=self._config.get("log_dump_folder", None),
            stdout_level=self._config.get("log_level", "INFO")
        )

    def _register_events(self):
        self._event_buffer.register_event_handler(Events.DATACENTER_TICK, self._on_datacenter_tick)
        self._event_buffer.register_event_handler(Events.VM_MIGRATE, self._on_vm_migrate)
        self._event_buffer.register_event_handler(Events.CLOUDLET_SUBMIT, self._on_cloudlet_submit)

    def _init_components(self):
        dimmer_conf = self._config.dimmer
        self._dimmer_controller = DimmerController(
            up_threshold=dimmer_conf.up_threshold,
            component_lower_threshold=dimmer_conf.component_lower_threshold,
            strategy=dimmer_conf.strategy,
            logger=self._logger
        )

        self._energy_accountant = EnergyAccountant(
            sampling_period=self._config.sampling.period,
            sampling_offset=self._config.sampling.offset,
            logger=self._logger
        )

        self._power_models = {}
        for name, power_model_conf in self._config.power_models.items():
            self._power_models[name] = build_power_model(power_model_conf)

    def _init_datacenter(self):
        """Build hosts, VMs and cloudlets from the configuration, ids start from 0."""
        self._hosts: List[PowerHost] = []
        for host_conf in self._config.hosts:
            if host_conf.power_model not in self._power_models:
                raise InvalidConfigError(f"Unknown power model: '{host_conf.power_model}'.")

            for _ in range(host_conf.get("amount", 1)):
                self._hosts.append(
                    PowerHost(
                        id=len(self._hosts),
                        mips=host_conf.mips,
                        pes=host_conf.pes,
                        ram=host_conf.ram,
                        bw=host_conf.bw,
                        power_model=self._power_models[host_conf.power_model],
                        logger=self._logger
                    )
                )

        self._vms: List[VirtualMachine] = []
        for vm_conf in self._config.vms:
            for _ in range(vm_conf.get("amount", 1)):
                self._vms.append(
                    VirtualMachine(
                        id=len(self._vms), mips=vm_conf.mips, pes=vm_conf.pes, ram=vm_conf.ram,
                        bw=vm_conf.get("bw", 0)
                    )
                )

        self._cloudlets: List[Cloudlet] = []
        for cloudlet_conf in self._config.get("cloudlets", []):
            components = [
                OptionalComponent(tag=component.tag, utilization=component.utilization, price=component.price)
                for component in cloudlet_conf.get("components", [])
            ]
            self._cloudlets.append(
                Cloudlet(
                    id=len(self._cloudlets),
                    vm_id=cloudlet_conf.vm_id,
                    length=cloudlet_conf.length,
                    utilization_model=build_utilization_model(cloudlet_conf.utilization),
                    optional_components=components,
                    submit_time=cloudlet_conf.get("submit_time", 0.0)
                )
            )

        migration_conf = self._config.migration
        if migration_conf.get("policy", "threshold") == "static":
            self._allocation_policy = StaticVmAllocationPolicy(self._hosts)
        else:
            self._allocation_policy = ThresholdVmAllocationPolicy(
                self._hosts, migration_conf.get("upper_threshold", self._config.dimmer.up_threshold)
            )

        self._migration_orchestrator = MigrationOrchestrator(
            event_buffer=self._event_buffer,
            hosts=self._hosts,
            bandwidth_conversion=migration_conf.bandwidth_conversion,
            logger=self._logger
        )

        for vm in self._vms:
            if not self._allocation_policy.allocate(vm):
                self._logger.warn(f"VM #{vm.id} cannot be placed at the beginning, it waits for a host.")

        self._last_process_tick: float = self._start_tick
        # Time of the latest cloudlet submission, None until the first one.
        self._cloudlet_submitted_tick: Optional[float] = None
        self._current_tick: float = self._start_tick

    def _init_events(self):
        datacenter_tick_event = self._event_buffer.gen_atom_event(self._start_tick, Events.DATACENTER_TICK)
        self._event_buffer.insert_event(datacenter_tick_event)

        for cloudlet in self._cloudlets:
            submit_event = self._event_buffer.gen_atom_event(
                self._start_tick + cloudlet.submit_time, Events.CLOUDLET_SUBMIT, cloudlet
            )
            self._event_buffer.insert_event(submit_event)

    def _on_datacenter_tick(self, event: AtomEvent):
        self._current_tick = event.tick
        self._update_cloudlet_processing(event.tick)

    def _on_cloudlet_submit(self, event: AtomEvent):
        tick = event.tick
        self._current_tick = tick
        cloudlet: Cloudlet = event.payload

        self._update_cloudlet_processing(tick)

        vm = self._find_vm(cloudlet.vm_id)
        if vm is None:
            self._logger.warn(f"{tick:.2f}: VM #{cloudlet.vm_id} of Cloudlet #{cloudlet.id} is gone, dropped.")
            return

        vm.submit_cloudlet(cloudlet, tick)
        self._cloudlet_submitted_tick = tick

        self._logger.debug(f"{tick:.2f}: Cloudlet #{cloudlet.id} is submitted to VM #{vm.id}")

        # The workload must be processed even if the datacenter went quiet before this arrival.
        if self._event_buffer.find_first_pending(Events.DATACENTER_TICK) is None:
            self._schedule_tick(tick)

    def _on_vm_migrate(self, event: AtomEvent):
        tick = event.tick
        self._current_tick = tick
        payload: MigrationPayload = event.payload
        vm = payload.vm
        target_host = payload.target_host

        self._update_processing(tick)

        self._allocation_policy.release(vm)
        target_host.remove_migrating_in_vm(vm)
        vm.in_migration = False

        if self._allocation_policy.allocate(vm, target_host):
            self._logger.info(f"{tick:.2f}: Migration of VM #{vm.id} to Host #{target_host.id} is completed")
        else:
            self._logger.error(f"{tick:.2f}: Allocation of VM #{vm.id} to the destination Host #{target_host.id} failed")

            if not self._allocation_policy.allocate(vm):
                self._logger.error(f"{tick:.2f}: VM #{vm.id} has no host any more")

        next_migration = self._event_buffer.find_first_pending(Events.VM_MIGRATE)
        if next_migration is None or next_migration.tick > tick:
            self._update_processing_force(tick)

    def _update_cloudlet_processing(self, tick: float):
        """Process the datacenter at the given time and plan the next processing."""
        if self._cloudlet_submitted_tick is None or self._cloudlet_submitted_tick == tick:
            self._schedule_tick(tick)
            return

        if tick > self._last_process_tick:
            min_next_event_time = self._update_processing_force(tick)

            if not self._disable_migrations:
                migration_plan = self._allocation_policy.plan_migrations(self._vms)
                self._migration_orchestrator.issue(migration_plan, tick)

            if not math.isinf(min_next_event_time):
                self._schedule_tick(tick)

            self._last_process_tick = tick

    def _update_processing(self, tick: float) -> float:
        """Process the datacenter only if time passed since the last processing."""
        if tick > self._last_process_tick:
            return self._update_processing_force(tick)

        return 0.0

    def _update_processing_force(self, tick: float) -> float:
        """Throttle, advance and account all hosts at the given time.

        Returns:
            float: Earliest next event time reported by the hosts.
        """
        min_next_event_time = float("inf")

        self._logger.debug(f"New resource usage for the time frame starting at {tick:.2f}:")

        try:
            dimmer_value = self._dimmer_controller.compute_dimmer_value(self._hosts)
        except NoHostForDimmerError as ex:
            self._logger.warn(f"{tick:.2f}: {ex}, dimmer value falls back to 1.")
            dimmer_value = 1.0

        for host in self._hosts:
            # The dimmer works on the utilization of the last interval, before the host moves on.
            self._dimmer_controller.trigger(host, tick, dimmer_value)

            min_next_event_time = min(min_next_event_time, host.advance_workload(tick))

            self._logger.debug(f"{tick:.2f}: [Host #{host.id}] utilization is {host.utilization * 100:.2f}%")

        self._energy_accountant.account(self._hosts, tick, self._last_process_tick)

        for host in self._hosts:
            for vm in host.get_completed_vms():
                self._allocation_policy.release(vm)
                self._vms.remove(vm)

                self._logger.debug(f"{tick:.2f}: VM #{vm.id} has been deallocated from Host #{host.id}")

        self._last_process_tick = tick

        return min_next_event_time

    def _schedule_tick(self, tick: float):
        self._event_buffer.cancel_pending(Events.DATACENTER_TICK)

        datacenter_tick_event = self._event_buffer.gen_atom_event(
            tick + self._scheduling_interval, Events.DATACENTER_TICK
        )
        self._event_buffer.insert_event(datacenter_tick_event)

    def _find_vm(self, vm_id: int) -> Optional[VirtualMachine]:
        for vm in self._vms:
            if vm.id == vm_id:
                return vm

        return None
