# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from typing import List, Set, Tuple

from brownout.utils import DummyLogger

from .host import PowerHost

# Tolerance of the sampling phase check, simulated times are floats.
SAMPLING_TOLERANCE = 1e-6


class EnergyAccountant:
    """Accumulate the datacenter energy and sample the idle hosts.

    Args:
        sampling_period (float): Period of the idle host samples.
        sampling_offset (float): Phase of the samples, a sample is taken at ``t`` if ``(t - offset) % period == 0``.
        logger: Logger for the per interval trace.
    """

    def __init__(self, sampling_period: float, sampling_offset: float, logger=None):
        self._sampling_period = sampling_period
        self._sampling_offset = sampling_offset
        self._logger = logger or DummyLogger()

        self._total_energy: float = 0.0
        self._idle_host_samples: List[Tuple[float, int]] = []
        self._eligible_ticks: Set[float] = set()

    @property
    def total_energy(self) -> float:
        """float: Energy consumed by all hosts since the beginning of the run."""
        return self._total_energy

    @property
    def idle_host_samples(self) -> List[Tuple[float, int]]:
        """List[Tuple[float, int]]: (sampling time minus offset, number of hosts at zero utilization), in time order."""
        return self._idle_host_samples

    @property
    def eligible_ticks(self) -> Set[float]:
        """Set[float]: Times at which an interval was accounted, each one may have triggered the dimmer."""
        return self._eligible_ticks

    def is_sampling_tick(self, tick: float) -> bool:
        remainder = (tick - self._sampling_offset) % self._sampling_period

        return remainder < SAMPLING_TOLERANCE or self._sampling_period - remainder < SAMPLING_TOLERANCE

    def account(self, hosts: List[PowerHost], tick: float, last_tick: float) -> float:
        """Account the energy of the interval ending at ``tick``.

        Hosts must have been advanced to ``tick`` already, so that their previous and
        current utilization bound the interval.

        Returns:
            float: Energy of all hosts in this interval, 0 if the interval is empty.
        """
        time_diff = tick - last_tick

        if time_diff <= 0:
            return 0.0

        self._logger.debug(f"Energy consumption for the last time frame from {last_tick:.2f} to {tick:.2f}:")

        self._eligible_ticks.add(tick)

        interval_energy = 0.0
        idle_host_number = 0

        for host in hosts:
            host_energy = host.energy_linear_interpolation(host.previous_utilization, host.utilization, time_diff)
            interval_energy += host_energy

            self._logger.debug(
                f"{tick:.2f}: [Host #{host.id}] utilization at {last_tick:.2f} was "
                f"{host.previous_utilization * 100:.2f}%, now is {host.utilization * 100:.2f}%"
            )
            self._logger.debug(f"{tick:.2f}: [Host #{host.id}] energy is {host_energy:.2f} W*sec")

            if host.utilization == 0:
                idle_host_number += 1

        self._logger.debug(f"{tick:.2f}: Data center's energy is {interval_energy:.2f} W*sec")

        if self.is_sampling_tick(tick):
            # Samples are keyed by the sampling period boundary, without the phase.
            self._idle_host_samples.append((tick - self._sampling_offset, idle_host_number))

        self._total_energy += interval_energy

        return interval_energy

    def reset(self):
        self._total_energy = 0.0
        self._idle_host_samples.clear()
        self._eligible_ticks.clear()
