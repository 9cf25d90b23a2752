# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import numpy as np

from brownout.utils import DummyLogger
from brownout.utils.exception.simulator_exception import InvalidConfigError, NoHostForDimmerError

from .cloudlet import Cloudlet, OptionalComponent
from .enums import SelectionStrategy
from .host import PowerHost


def compute_dimmer_value(hosts: List[PowerHost], up_threshold: float) -> float:
    """Share of hosts that are not overloaded.

    A host is overloaded when its previous utilization is above the threshold.

    Raises:
        NoHostForDimmerError: There is no host at all.
    """
    if len(hosts) == 0:
        raise NoHostForDimmerError()

    overloaded = sum(1 for host in hosts if host.previous_utilization > up_threshold)

    return 1 - overloaded / len(hosts)


def utilization_after_dimmer(previous_utilization: float, cloudlet: Cloudlet, lower_threshold: float) -> float:
    """Utilization left to the cloudlet once its disabled components stop.

    Falls back to ``lower_threshold`` when nothing, or less than it, would be left.
    """
    utilization = previous_utilization - cloudlet.disabled_utilization()

    if utilization <= 0 or utilization < lower_threshold:
        return lower_threshold

    return utilization


class AbsComponentSelector(ABC):
    """Pick the optional component to disable for a target utilization reduction."""

    def select(self, components: List[OptionalComponent], target: float) -> Optional[OptionalComponent]:
        """Select a component.

        Args:
            components (List[OptionalComponent]): Optional components of the cloudlet.
            target (float): Utilization the dimmer wants to take back from the cloudlet.

        Returns:
            OptionalComponent: The selected component, None if there is no component.
        """
        if len(components) == 0:
            return None

        utilization = np.array([component.utilization for component in components], dtype=float)
        price = np.array([component.price for component in components], dtype=float)

        return components[self._select_index(utilization, price, target)]

    @abstractmethod
    def _select_index(self, utilization: np.ndarray, price: np.ndarray, target: float) -> int:
        pass


class NearestUtilizationSelector(AbsComponentSelector):
    """Component whose utilization is the closest to the target."""

    def _select_index(self, utilization: np.ndarray, price: np.ndarray, target: float) -> int:
        return int(np.argmin(np.abs(utilization - target)))


class LowestUtilizationSelector(AbsComponentSelector):
    """Smallest utilization still above the target, the first component if none is above."""

    def _select_index(self, utilization: np.ndarray, price: np.ndarray, target: float) -> int:
        above_target = utilization > target

        if not above_target.any():
            return 0

        return int(np.argmin(np.where(above_target, utilization, np.inf)))


class HighestUtilizationPriceRatioSelector(AbsComponentSelector):
    """Most utilization saved per unit of price, a free component with any utilization wins."""

    def _select_index(self, utilization: np.ndarray, price: np.ndarray, target: float) -> int:
        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = np.where(price > 0, utilization / price, np.where(utilization > 0, np.inf, 0.0))

        return int(np.argmax(ratio))


class LowestPriceSelector(AbsComponentSelector):
    """Cheapest component, whatever it saves."""

    def _select_index(self, utilization: np.ndarray, price: np.ndarray, target: float) -> int:
        return int(np.argmin(price))


SELECTORS: Dict[SelectionStrategy, type] = {
    SelectionStrategy.NEAREST_UTILIZATION: NearestUtilizationSelector,
    SelectionStrategy.LOWEST_UTILIZATION: LowestUtilizationSelector,
    SelectionStrategy.HIGHEST_UTILIZATION_PRICE_RATIO: HighestUtilizationPriceRatioSelector,
    SelectionStrategy.LOWEST_PRICE: LowestPriceSelector,
}


def build_selector(strategy) -> AbsComponentSelector:
    """Build the selector of a strategy, given by enum member or by its value."""
    try:
        strategy = SelectionStrategy(strategy)
    except ValueError:
        raise InvalidConfigError(f"Unknown component selection strategy: '{strategy}'.")

    return SELECTORS[strategy]()


class DimmerController:
    """Throttle the optional components of the cloudlets on overloaded hosts.

    Args:
        up_threshold (float): Previous utilization above which a host is overloaded.
        component_lower_threshold (float): Utilization given to a cloudlet that would be left with nothing.
        strategy (SelectionStrategy): How the component to disable is chosen.
        logger: Logger for the dimmer announcements.
    """

    def __init__(self, up_threshold: float, component_lower_threshold: float, strategy, logger=None):
        if not 0 < up_threshold < 1:
            raise InvalidConfigError(f"Dimmer up threshold must be in (0, 1), got {up_threshold}.")

        if component_lower_threshold < 0:
            raise InvalidConfigError(
                f"Component lower threshold cannot be negative, got {component_lower_threshold}."
            )

        self._up_threshold = up_threshold
        self._component_lower_threshold = component_lower_threshold
        self._selector = build_selector(strategy)
        self._logger = logger or DummyLogger()

        self._dimmer_times = 0

    @property
    def up_threshold(self) -> float:
        return self._up_threshold

    @property
    def dimmer_times(self) -> int:
        """int: How many times a host had its components throttled."""
        return self._dimmer_times

    def is_overloaded(self, host: PowerHost) -> bool:
        return host.previous_utilization > self._up_threshold

    def compute_dimmer_value(self, hosts: List[PowerHost]) -> float:
        return compute_dimmer_value(hosts, self._up_threshold)

    def trigger(self, host: PowerHost, tick: float, dimmer_value: float) -> bool:
        """Throttle the host if it is overloaded.

        Args:
            host (PowerHost): Host to check, it must not be advanced to ``tick`` yet.
            tick (float): Current simulated time, throttled utilization applies from it.
            dimmer_value (float): Dimmer value of this tick.

        Returns:
            bool: True if the dimmer was triggered on this host.
        """
        if not self.is_overloaded(host):
            return False

        self._dimmer_times += 1
        host.dimmer_value = dimmer_value

        # Tags disabled at the previous trigger do not carry over.
        host.disabled_tags.clear()

        for vm in host.vms:
            for cloudlet in vm.running_cloudlets:
                cloudlet.enable_all_components()

        self._logger.info(f"Dimmer is triggered at {tick:.2f} on Host #{host.id}, dimmer value is {dimmer_value:.2f}.")

        for vm in host.vms:
            if not vm.state_history or vm.capacity <= 0:
                self._logger.debug(f"VM #{vm.id} has no utilization history yet, skipped by the dimmer.")
                continue

            vm_utilization = vm.state_history[-1][1] / vm.capacity
            target = vm_utilization * (1 - dimmer_value)

            for cloudlet in vm.running_cloudlets:
                self._throttle(host, cloudlet, vm_utilization, target, tick)

        return True

    def reset(self):
        self._dimmer_times = 0

    def _throttle(self, host: PowerHost, cloudlet: Cloudlet, vm_utilization: float, target: float, tick: float):
        components = cloudlet.optional_components

        for component in components:
            if component.tag in host.disabled_tags:
                component.enabled = False

        selected = self._selector.select(components, target)

        if selected is None:
            self._logger.debug(f"Cloudlet #{cloudlet.id} has no optional component, not throttled.")
            return

        selected.enabled = False
        host.disabled_tags.add(selected.tag)
        host.add_revenue_loss(selected.price)

        utilization = utilization_after_dimmer(vm_utilization, cloudlet, self._component_lower_threshold)
        cloudlet.set_utilization(utilization, tick)

        self._logger.debug(
            f"{tick:.2f}: Cloudlet #{cloudlet.id} disabled component '{selected.tag}', "
            f"utilization is set to {utilization:.4f}."
        )
