# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import os
from abc import ABC, abstractmethod
from pathlib import Path

from brownout.event_buffer import EventBuffer


class AbsBusinessEngine(ABC):
    """Abstract class for all the business engine, a business engine is the core part of a scenario,
    used to hold all related logics.

    A business engine should have a name that used to identify it, built-in scenarios also use it to
    find built-in topologies.

    The core part of business engine is the step and post_step methods:

    1. step: Will be called one time at each simulated time that has pending events, before they are dispatched.
    2. post_step: Will be called after all the events of that time being processed, \
    simulator use the return value of this method (bool), to decide if it should stop simulation.

    Args:
        scenario_name (str): Name of the scenario.
        event_buffer (EventBuffer): Used to process events.
        topology (str): Config name, or path of an existing topology folder.
        start_tick (float): Start time of this business engine.
        max_tick (float): Max time of this business engine.
        additional_options (dict): Additional options for this business engine from outside.
    """

    def __init__(
        self, scenario_name: str, event_buffer: EventBuffer, topology: str,
        start_tick: float, max_tick: float, additional_options: dict = None
    ):
        self._scenario_name = scenario_name
        self._topology = topology
        self._event_buffer = event_buffer
        self._start_tick = start_tick
        self._max_tick = max_tick
        self._additional_options = additional_options if additional_options is not None else {}
        self._config_path = None

        assert start_tick >= 0
        assert max_tick > start_tick

    @property
    def scenario_name(self) -> str:
        return self._scenario_name

    def update_config_root_path(self, business_engine_file_path: str):
        """Helper method used to update the config path with business engine path if you
        follow the way to load configuration file as built-in scenarios.

        This method assuming that all the configuration (topologies) is under their scenario folder,
        and named as topologies, each topology is one folder.

        Examples:

            .. code-block:: python

                # Define a business engine.
                class MyBusinessEngine(AbsBusinessEngine):
                    def __init__(self, *args, **kwargs):
                        super().__init__("my_be", *args, **kwargs)

                        # Use __file__ as parameter.
                        self.update_config_root_path(__file__)

        Args:
            business_engine_file_path(str): Full path of real business engine file.
        """
        if self._topology:
            path = Path(self._topology)

            if path.exists() and path.is_dir():
                # if topology is a existing path, then use it as config root path
                self._config_path = self._topology
            else:
                be_file_path = os.path.split(os.path.realpath(business_engine_file_path))[0]
                self._config_path = os.path.join(be_file_path, "topologies", self._topology)

    @abstractmethod
    def step(self, tick: float):
        """Method that is called at each simulated time, usually used to trigger business logic at current time.

        Args:
            tick (float): Current time from simulator.
        """
        pass

    @property
    def configs(self) -> dict:
        """dict: Configurations of this business engine."""
        pass

    @abstractmethod
    def reset(self):
        """Reset states business engine."""
        pass

    def post_step(self, tick: float) -> bool:
        """This method will be called at the end of each simulated time, used to post-process,
        for complex business logic with many events, it maybe not easy to determine
        if stop the scenario at the middle of a time, so this method is used to avoid this.

        Args:
            tick (float): Current time.

        Returns:
            bool: If simulator should stop simulation at current time.
        """
        return False

    def get_metrics(self) -> dict:
        """Get statistics information, may different for scenarios.

        Returns:
            dict: Dictionary about metrics, content and format determined by business engine.
        """
        return {}
