# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import unittest

from brownout.event_buffer import AtomEvent, EventBuffer, EventState


class TestEventBuffer(unittest.TestCase):
    def setUp(self):
        self.eb = EventBuffer()

    def test_gen_event(self):
        """Test event generating correct"""
        evt = self.eb.gen_atom_event(1.5, 1, (0, 0))

        # fields should be same as specified
        self.assertEqual(AtomEvent, type(evt))
        self.assertEqual(evt.tick, 1.5)
        self.assertEqual(evt.event_type, 1)
        self.assertEqual(evt.payload, (0, 0))

        # ids grow with the creation order
        self.assertEqual(evt.id + 1, self.eb.gen_atom_event(2, 1).id)

    def test_insert_event(self):
        """Test insert event works as expected"""

        # pending pool should be empty at beginning
        self.assertEqual(len(self.eb._pending_events), 0)
        self.assertIsNone(self.eb.next_tick)

        evt = self.eb.gen_atom_event(1, 1, 1)

        self.eb.insert_event(evt)

        # after insert one event, we should have 1 in pending pool
        self.assertEqual(len(self.eb.get_pending_events(1)), 1)
        self.assertEqual(self.eb.next_tick, 1)

    def test_next_tick_is_earliest_pending_time(self):
        for tick in [300.1, 0.1, 16.384]:
            self.eb.insert_event(self.eb.gen_atom_event(tick, "tick"))

        self.assertEqual(self.eb.next_tick, 0.1)

        self.eb.execute(0.1)
        self.assertEqual(self.eb.next_tick, 16.384)

        self.eb.execute(16.384)
        self.eb.execute(300.1)
        self.assertIsNone(self.eb.next_tick)

    def test_event_dispatch(self):
        """Test event dispatching work as expected"""
        def cb(evt):
            # test event tick
            self.assertEqual(1, evt.tick, msg="recieved event tick should be 1")

            # test event payload
            self.assertTupleEqual((1, 3), evt.payload, msg="recieved event's payload should be (1, 3)")

        evt = self.eb.gen_atom_event(1, 1, (1, 3))

        self.eb.insert_event(evt)

        self.eb.register_event_handler(1, cb)

        executed = self.eb.execute(1)  # no need to check return value here

        self.assertEqual(len(executed), 1)
        self.assertEqual(evt.state, EventState.FINISHED)
        self.assertListEqual(self.eb.get_finished_events(), [evt])

    def test_events_inserted_by_handler_at_same_tick(self):
        """Events inserted by a handler for the current time are dispatched in the same execution"""
        dispatched = []

        def cb(evt):
            dispatched.append(evt.payload)

            if evt.payload == "first":
                self.eb.insert_event(self.eb.gen_atom_event(evt.tick, "type", "third"))

        self.eb.register_event_handler("type", cb)
        self.eb.insert_event(self.eb.gen_atom_event(5, "type", "first"))
        self.eb.insert_event(self.eb.gen_atom_event(5, "type", "second"))

        self.eb.execute(5)

        self.assertListEqual(dispatched, ["first", "second", "third"])
        self.assertIsNone(self.eb.next_tick)

    def test_cancel_pending(self):
        tick_events = [self.eb.gen_atom_event(tick, "tick") for tick in (300, 600)]
        migrate_event = self.eb.gen_atom_event(300, "migrate")

        for evt in tick_events + [migrate_event]:
            self.eb.insert_event(evt)

        canceled = self.eb.cancel_pending("tick")

        self.assertEqual(canceled, 2)
        self.assertTrue(all(evt.state == EventState.CANCELED for evt in tick_events))
        self.assertListEqual(self.eb.get_pending_events(300), [migrate_event])
        self.assertListEqual(self.eb.get_pending_events(600), [])

        # only the migration is left
        self.assertEqual(self.eb.next_tick, 300)
        self.eb.execute(300)
        self.assertIsNone(self.eb.next_tick)

    def test_cancel_from_handler_of_same_tick(self):
        dispatched = []

        def cancel_ticks(evt):
            dispatched.append(evt.event_type)
            self.eb.cancel_pending("tick")

        self.eb.register_event_handler("submit", cancel_ticks)
        self.eb.register_event_handler("tick", lambda evt: dispatched.append(evt.event_type))

        self.eb.insert_event(self.eb.gen_atom_event(1, "submit"))
        self.eb.insert_event(self.eb.gen_atom_event(1, "tick"))
        self.eb.insert_event(self.eb.gen_atom_event(1, "submit"))

        self.eb.execute(1)

        self.assertListEqual(dispatched, ["submit", "submit"])

    def test_find_first_pending(self):
        self.assertIsNone(self.eb.find_first_pending("migrate"))

        late = self.eb.gen_atom_event(20, "migrate", "late")
        early = self.eb.gen_atom_event(10, "migrate", "early")
        same_time = self.eb.gen_atom_event(10, "migrate", "same time")

        self.eb.insert_event(late)
        self.eb.insert_event(self.eb.gen_atom_event(5, "tick"))
        self.eb.insert_event(early)
        self.eb.insert_event(same_time)

        self.assertIs(self.eb.find_first_pending("migrate"), early)

    def test_disable_finished_events(self):
        eb = EventBuffer(disable_finished_events=True)
        eb.insert_event(eb.gen_atom_event(0, 1))

        executed = eb.execute(0)

        self.assertEqual(len(executed), 1)
        self.assertListEqual(eb.get_finished_events(), [])

    def test_reset(self):
        self.eb.insert_event(self.eb.gen_atom_event(0, 1))
        self.eb.insert_event(self.eb.gen_atom_event(1, 1))
        self.eb.execute(0)

        self.eb.reset()

        self.assertIsNone(self.eb.next_tick)
        self.assertListEqual(self.eb.get_finished_events(), [])
        self.assertListEqual(self.eb.get_pending_events(1), [])


if __name__ == "__main__":
    unittest.main()
