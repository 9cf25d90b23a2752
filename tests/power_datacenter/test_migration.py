# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import unittest

from brownout.event_buffer import EventBuffer
from brownout.simulator.scenarios.power_datacenter import (
    Events, MigrationAction, MigrationOrchestrator, PowerHost, PowerModelLinear, VirtualMachine
)
from brownout.utils.exception.simulator_exception import InvalidConfigError, InvalidMigrationTargetError


def build_host(id: int, bw: float = 1000) -> PowerHost:
    return PowerHost(id=id, mips=2000, pes=1, ram=4096, bw=bw, power_model=PowerModelLinear(200, 0.5))


class TestMigrationOrchestrator(unittest.TestCase):
    def setUp(self):
        self.eb = EventBuffer()
        self.hosts = [build_host(0), build_host(1)]
        self.orchestrator = MigrationOrchestrator(self.eb, self.hosts, bandwidth_conversion=8000)

        self.vm = VirtualMachine(id=0, mips=1000, pes=1, ram=1024)
        self.hosts[0].add_vm(self.vm)

    def test_transfer_delay(self):
        # half of 1000 Mbit/s, 8000 conversion: 1024 / (1000 / 2 / 8000)
        self.assertAlmostEqual(self.orchestrator.transfer_delay(self.vm, self.hosts[1]), 16384)

    def test_migrate(self):
        payload = self.orchestrator.migrate(self.vm, self.hosts[1], 300.1)

        self.assertEqual(self.orchestrator.migration_count, 1)
        self.assertTrue(self.vm.in_migration)
        self.assertListEqual(self.hosts[1].vms_migrating_in, [self.vm])

        # ownership does not move before the transfer is done
        self.assertListEqual(self.hosts[0].vms, [self.vm])
        self.assertListEqual(self.hosts[1].vms, [])

        self.assertIs(payload.source_host, self.hosts[0])
        self.assertIs(payload.target_host, self.hosts[1])
        self.assertAlmostEqual(payload.delay, 16384)
        self.assertFalse(payload.is_first_placement)

        event = self.eb.find_first_pending(Events.VM_MIGRATE)
        self.assertIsNotNone(event)
        self.assertAlmostEqual(event.tick, 300.1 + 16384)
        self.assertIs(event.payload, payload)

    def test_first_placement(self):
        vm = VirtualMachine(id=1, mips=1000, pes=1, ram=512)

        payload = self.orchestrator.migrate(vm, self.hosts[1], 0)

        self.assertIsNone(payload.source_host)
        self.assertTrue(payload.is_first_placement)
        self.assertEqual(self.orchestrator.migration_count, 1)

    def test_invalid_target_is_rejected_before_any_change(self):
        outsider = build_host(9)
        no_bandwidth_host = build_host(2, bw=0)
        self.hosts.append(no_bandwidth_host)

        for target in [None, outsider, no_bandwidth_host]:
            with self.assertRaises(InvalidMigrationTargetError):
                self.orchestrator.migrate(self.vm, target, 10)

        self.assertEqual(self.orchestrator.migration_count, 0)
        self.assertFalse(self.vm.in_migration)
        self.assertListEqual(outsider.vms_migrating_in, [])
        self.assertListEqual(no_bandwidth_host.vms_migrating_in, [])
        self.assertIsNone(self.eb.next_tick)

    def test_issue_plan(self):
        other_vm = VirtualMachine(id=1, mips=500, pes=1, ram=2048)
        self.hosts[1].add_vm(other_vm)

        plan = [MigrationAction(self.vm, self.hosts[1]), MigrationAction(other_vm, self.hosts[0])]
        started = self.orchestrator.issue(plan, 600.1)

        self.assertEqual(len(started), 2)
        self.assertEqual(self.orchestrator.migration_count, len(plan))
        self.assertEqual(len(self.eb.get_pending_events(600.1 + 16384)), 1)
        self.assertEqual(len(self.eb.get_pending_events(600.1 + 32768)), 1)

    def test_issue_skips_invalid_entries(self):
        plan = [MigrationAction(self.vm, None), MigrationAction(self.vm, self.hosts[1])]

        started = self.orchestrator.issue(plan, 0)

        self.assertEqual(len(started), 1)
        self.assertEqual(self.orchestrator.migration_count, 1)

    def test_issue_nothing(self):
        self.assertListEqual(self.orchestrator.issue(None, 0), [])
        self.assertListEqual(self.orchestrator.issue([], 0), [])
        self.assertEqual(self.orchestrator.migration_count, 0)

    def test_invalid_bandwidth_conversion(self):
        with self.assertRaises(InvalidConfigError):
            MigrationOrchestrator(self.eb, self.hosts, bandwidth_conversion=0)

    def test_reset(self):
        self.orchestrator.migrate(self.vm, self.hosts[1], 0)

        self.orchestrator.reset()

        self.assertEqual(self.orchestrator.migration_count, 0)


if __name__ == "__main__":
    unittest.main()
