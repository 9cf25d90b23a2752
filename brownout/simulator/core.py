# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from importlib import import_module
from inspect import getmembers, isclass
from typing import Generator, List, Optional, Tuple

from brownout.event_buffer import AtomEvent, EventBuffer
from brownout.utils.exception.simulator_exception import BusinessEngineNotFoundError

from .scenarios.abs_business_engine import AbsBusinessEngine


class Env:
    """Default environment implementation using generator.

    The environment owns the virtual clock: it jumps to the earliest pending event time,
    lets the business engine step, dispatches the events of that time, and repeats until
    the duration is exhausted or nothing is pending any more.

    Args:
        scenario (str): Scenario name under brownout/simulator/scenarios folder.
        topology (str): Topology name under specified scenario folder.
            If it points to an existing folder, the corresponding topology will be used for the built-in scenario.
        start_tick (float): Start time of the scenario.
        durations (float): Simulated duration of this environment from start_tick.
        business_engine_cls (type): Class of business engine. If specified, use it to construct the be instance,
            or search internally by scenario.
        disable_finished_events (bool): Disable finished events list, with this set to True, EventBuffer will
            drop finished event objects.
        options (dict): Additional parameters passed to business engine.
    """

    def __init__(
        self,
        scenario: str = None,
        topology: str = None,
        start_tick: float = 0.0,
        durations: float = 86400.0,
        business_engine_cls: type = None,
        disable_finished_events: bool = False,
        options: Optional[dict] = None,
    ) -> None:
        self._scenario = scenario
        self._topology = topology
        self._start_tick = start_tick
        self._durations = durations
        self._business_engine_cls = business_engine_cls
        self._additional_options = options if options is not None else {}

        self._name = (
            f"{self._scenario}:{self._topology}" if business_engine_cls is None else business_engine_cls.__name__
        )

        self._tick = start_tick
        self._event_buffer = EventBuffer(disable_finished_events)

        # Initialize the business engine.
        self._init_business_engine()

        # The generator used to push the simulator forward.
        self._simulate_generator = self._simulate()

    def step(self) -> Tuple[Optional[dict], bool]:
        """Push the environment to the next simulated time that has pending events.

        Returns:
            tuple: a tuple of (metrics, is_done).
        """
        try:
            metrics, _is_done = next(self._simulate_generator)
        except StopIteration:
            return None, True

        return metrics, _is_done

    def run(self) -> dict:
        """Run the simulation to the end.

        Returns:
            dict: Metrics at the end of the simulation.
        """
        metrics, is_done = self.step()

        while not is_done:
            metrics, is_done = self.step()

        return metrics if metrics is not None else self.metrics

    def reset(self) -> None:
        """Reset environment."""
        self._tick = self._start_tick

        self._simulate_generator.close()

        self._event_buffer.reset()

        self._business_engine.reset()

        self._simulate_generator = self._simulate()

    @property
    def configs(self) -> dict:
        """dict: Configurations of current environment."""
        return self._business_engine.configs

    @property
    def name(self) -> str:
        """str: Name of current environment."""
        return self._name

    @property
    def tick(self) -> float:
        """float: Current simulated time of environment."""
        return self._tick

    @property
    def business_engine(self) -> AbsBusinessEngine:
        return self._business_engine

    @property
    def metrics(self) -> dict:
        """Some statistics information provided by business engine.

        Returns:
            dict: Dictionary of metrics, content and format is determined by business engine.
        """

        return self._business_engine.get_metrics()

    def get_finished_events(self) -> List[AtomEvent]:
        """List[AtomEvent]: All events finished so far."""
        return self._event_buffer.get_finished_events()

    def get_pending_events(self, tick: float) -> List[AtomEvent]:
        """Pending events at certain time.

        Args:
            tick (float): Specified time to query.
        """
        return self._event_buffer.get_pending_events(tick)

    def _init_business_engine(self) -> None:
        """Initialize business engine object.

        NOTE:
        1. For built-in scenarios, they will always under "brownout/simulator/scenarios" folder.
        2. For external scenarios, the business engine instance is built with the loaded business engine class.
        """
        max_tick = self._start_tick + self._durations

        if self._business_engine_cls is not None:
            business_class = self._business_engine_cls
        else:
            # Combine the business engine import path.
            business_class_path = f"brownout.simulator.scenarios.{self._scenario}.business_engine"

            # Load the module to find business engine for that scenario.
            business_module = import_module(business_class_path)

            business_class = None

            for _, obj in getmembers(business_module, isclass):
                if issubclass(obj, AbsBusinessEngine) and obj != AbsBusinessEngine:
                    # We find it.
                    business_class = obj

                    break

            if business_class is None:
                raise BusinessEngineNotFoundError()

        self._business_engine: AbsBusinessEngine = business_class(
            event_buffer=self._event_buffer,
            topology=self._topology,
            start_tick=self._start_tick,
            max_tick=max_tick,
            additional_options=self._additional_options,
        )

    def _simulate(self) -> Generator[Tuple[dict, bool], None, None]:
        """This is the generator to wrap each episode process."""
        max_tick = self._start_tick + self._durations

        while True:
            tick = self._event_buffer.next_tick

            # Nothing left to do, or the next event is beyond the simulated duration.
            if tick is None or tick > max_tick:
                break

            self._tick = tick

            # Ask business engine to do thing for this time before its events are dispatched.
            self._business_engine.step(tick)

            self._event_buffer.execute(tick)

            # Check the end time of the simulation to decide if we should end the simulation.
            if self._business_engine.post_step(tick):
                break

            yield self._business_engine.get_metrics(), False

        # The end.
        yield self._business_engine.get_metrics(), True
