# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


import heapq
from collections import defaultdict
from itertools import count
from typing import Callable, Dict, Iterator, List, Optional

from .event import AtomEvent
from .event_state import EventState

EventList = List[AtomEvent]


class EventBuffer:
    """
    EventBuffer used to hold events, and dispatch them at specified simulated time.

    NOTE:
        Ticks are simulated times (float), the buffer always dispatches the earliest pending
        time first. Events of the same time are dispatched in insert order, including the
        events inserted by handlers of that time.

    Args:
        disable_finished_events (bool): Is disable the method to get finished event list,
            EventBuffer will drop the finished events, not push them into finished events list,
            so it will cause method "get_finished_events" return empty list.
    """

    def __init__(self, disable_finished_events: bool = False):
        self._pending_events: Dict[float, EventList] = defaultdict(list)
        # Heap of pending ticks, a tick may stay here after its events are gone.
        self._pending_ticks: List[float] = []
        self._handlers = defaultdict(list)

        # used to hold all the events that been processed
        self._finished_events: EventList = []

        self._event_count: Iterator[int] = count()

        self._disable_finished_events = disable_finished_events

    @property
    def next_tick(self) -> Optional[float]:
        """Optional[float]: Earliest time that still has pending events, None if nothing is pending."""
        while self._pending_ticks:
            tick = self._pending_ticks[0]

            if self._pending_events.get(tick):
                return tick

            heapq.heappop(self._pending_ticks)
            self._pending_events.pop(tick, None)

        return None

    def get_finished_events(self) -> EventList:
        """Get all the processed events, call this function before reset method.

        Returns:
            EventList: List of event object.
        """
        return self._finished_events

    def get_pending_events(self, tick: float) -> EventList:
        """Get pending event at specified tick.

        Args:
            tick (float): tick of events to get.

        Returns:
            EventList: List of event object.
        """
        return list(self._pending_events.get(tick, []))

    def reset(self):
        """Reset internal states, this method will clear all events.

        NOTE:
            After reset the get_finished_event method will return empty list.
        """
        self._finished_events.clear()
        self._pending_events.clear()
        self._pending_ticks.clear()

    def gen_atom_event(self, tick: float, event_type: object, payload: object = None) -> AtomEvent:
        """Generate an atom event.

        Args:
            tick (float): Time that the event will be processed.
            event_type (object): Type of this event.
            payload (object): Payload of event, used to pass data to handlers.

        Returns:
            AtomEvent: Atom event object
        """
        return AtomEvent(next(self._event_count), tick, event_type, payload)

    def register_event_handler(self, event_type: object, handler: Callable):
        """Register an event with handler, when there is an event need to be processed,
        EventBuffer will invoke the handler if there are any event's type match specified at each tick.

        NOTE:
            Callback function should only hold one parameter that is the event object.

        Args:
            event_type (object): Type of event that the handler want to process.
            handler (Callable): Handler that will process the event.
        """
        self._handlers[event_type].append(handler)

    def insert_event(self, event: AtomEvent):
        """Insert an event to the pending queue.

        Args:
            event (AtomEvent): Event to insert, usually get event object from gen_atom_event.
        """
        if event.tick not in self._pending_events or not self._pending_events[event.tick]:
            heapq.heappush(self._pending_ticks, event.tick)

        event.state = EventState.PENDING
        self._pending_events[event.tick].append(event)

    def cancel_pending(self, event_type: object) -> int:
        """Cancel all the pending events with the specified type.

        Args:
            event_type (object): Type of events to cancel.

        Returns:
            int: Number of canceled events.
        """
        canceled = 0

        for tick, events in self._pending_events.items():
            remained = []

            for event in events:
                if event.event_type == event_type:
                    event.state = EventState.CANCELED
                    canceled += 1
                else:
                    remained.append(event)

            self._pending_events[tick] = remained

        return canceled

    def find_first_pending(self, event_type: object) -> Optional[AtomEvent]:
        """Find the earliest pending event with the specified type.

        Args:
            event_type (object): Type of event to find.

        Returns:
            Optional[AtomEvent]: The earliest pending event, None if there is no such event.
        """
        for tick in sorted(tick for tick, events in self._pending_events.items() if events):
            for event in self._pending_events[tick]:
                if event.event_type == event_type:
                    return event

        return None

    def execute(self, tick: float) -> EventList:
        """Process and dispatch event by tick.

        Args:
            tick (float): Tick used to process events.

        Returns:
            EventList: Events finished at this tick.
        """
        executed = []
        cur_events_list = self._pending_events.get(tick)

        while cur_events_list:
            next_event = cur_events_list.pop(0)
            next_event.state = EventState.EXECUTING

            # Invoke handlers.
            if next_event.event_type in self._handlers:
                for handler in self._handlers[next_event.event_type]:
                    handler(next_event)

            next_event.state = EventState.FINISHED
            executed.append(next_event)

            if not self._disable_finished_events:
                self._finished_events.append(next_event)

            # Handlers may cancel events of this tick, which rebinds the list.
            cur_events_list = self._pending_events.get(tick)

        return executed
