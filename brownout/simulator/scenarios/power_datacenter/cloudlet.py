# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from typing import List, Optional

from .utilization_model import AbsUtilizationModel


class OptionalComponent:
    """A detachable part of a cloudlet workload.

    Args:
        tag (str): Tag of the component, unique within its cloudlet.
        utilization (float): Share of the cloudlet CPU demand this component contributes.
        price (float): Revenue lost when the component is disabled.
        enabled (bool): Whether the component currently runs.
    """

    def __init__(self, tag: str, utilization: float, price: float, enabled: bool = True):
        self.tag = tag
        self.utilization = utilization
        self.price = price
        self.enabled = enabled

    def __repr__(self):
        return "%s {tag: %r, utilization: %r, price: %r, enabled: %r}" % \
            (self.__class__.__name__, self.tag, self.utilization, self.price, self.enabled)


class Cloudlet:
    """Workload unit running on exactly one VM.

    Args:
        id (int): Cloudlet id.
        vm_id (int): Id of the VM the cloudlet runs on.
        length (float): Instructions to execute (unit: MI).
        utilization_model (AbsUtilizationModel): CPU utilization model of the cloudlet.
        optional_components (List[OptionalComponent]): Components the dimmer may disable.
        submit_time (float): Time offset of the submission from the simulation start.
    """

    def __init__(
        self,
        id: int,
        vm_id: int,
        length: float,
        utilization_model: AbsUtilizationModel,
        optional_components: List[OptionalComponent] = None,
        submit_time: float = 0.0
    ):
        self.id: int = id
        self.vm_id: int = vm_id
        self.length: float = length
        self.submit_time: float = submit_time
        self.utilization_model: AbsUtilizationModel = utilization_model

        self._optional_components: List[OptionalComponent] = list(optional_components or [])
        tags = [component.tag for component in self._optional_components]
        if len(tags) != len(set(tags)):
            raise ValueError(f"Optional component tags of cloudlet {id} are not unique: {tags}.")

        self.finished_length: float = 0.0
        # Time the cloudlet progress was last brought up to date, set on arrival.
        self.last_update_time: Optional[float] = None
        self.finish_time: Optional[float] = None

    @property
    def optional_components(self) -> List[OptionalComponent]:
        return self._optional_components

    @property
    def is_finished(self) -> bool:
        return self.finish_time is not None

    @property
    def remaining_length(self) -> float:
        return max(0.0, self.length - self.finished_length)

    def get_utilization(self, time: float) -> float:
        return self.utilization_model.get_utilization(time)

    def set_utilization(self, utilization: float, time: float):
        self.utilization_model.set_utilization(utilization, time)

    def discard_utilization_before(self, time: float):
        # The cloudlet never reads its utilization before its last update again.
        self.utilization_model.discard_overrides_before(time)

    def enable_all_components(self):
        for component in self._optional_components:
            component.enabled = True

    def disabled_utilization(self) -> float:
        """Sum of the utilization of the disabled components."""
        return sum(component.utilization for component in self._optional_components if not component.enabled)

    def __repr__(self):
        return "%s {id: %r, vm_id: %r, length: %r, finished_length: %r}" % \
            (self.__class__.__name__, self.id, self.vm_id, self.length, self.finished_length)
