# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.
from typing import Optional

from .event_state import EventState


class AtomEvent:
    """Basic event object that used to hold information that for callback.

    Note:
        The payload of event can be any object that related with specified logic.

    Args:
        id (int): Id of this event.
        tick (float): Simulated time that this event will be processed.
        event_type (object): Type of this event, EventBuffer will use this to match handlers.
        payload (object): Payload of this event.

    Attributes:
        id (int): Id of this event, ids grow with the creation order.
        tick (float): Process time of this event.
        payload (object): Payload of this event, can be any object.
        event_type (object): Type of this event, can be any type.
        state (EventState): Internal life-circle state of event.
    """

    def __init__(self, id: Optional[int], tick: Optional[float], event_type: object, payload: object) -> None:
        self.id: Optional[int] = id
        self.tick: Optional[float] = tick
        self.payload: object = payload
        self.event_type: object = event_type
        self.state: EventState = EventState.PENDING

    def __repr__(self):
        return "%s {id: %r, tick: %r, event_type: %r, state: %r}" % \
            (self.__class__.__name__, self.id, self.tick, self.event_type, self.state.name)
