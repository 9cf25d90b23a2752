# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import os
import unittest

from brownout.event_buffer import EventBuffer
from brownout.simulator import Env
from brownout.simulator.scenarios.power_datacenter import DatacenterState, Events, PowerDatacenterBusinessEngine
from brownout.utils.exception.simulator_exception import InvalidConfigError

TOPOLOGY_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "data", "power_datacenter", "two_hosts")

# Two 2000 MIPS hosts, both VMs fit on the first one.
MIGRATION_OPTIONS = {
    "hosts": [
        {"amount": 2, "mips": 2000, "pes": 1, "ram": 4096, "bw": 1000000, "power_model": "linear_200w"}
    ],
    "cloudlets": [
        {"vm_id": 0, "submit_time": 0.1, "length": 100000000, "utilization": 0.95},
        {"vm_id": 1, "submit_time": 0.1, "length": 100000000, "utilization": 0.7},
    ],
}


def build_env(durations: float, options: dict = None) -> Env:
    return Env(
        business_engine_cls=PowerDatacenterBusinessEngine, topology=TOPOLOGY_PATH, durations=durations,
        options=options
    )


class TestPowerDatacenterStateMachine(unittest.TestCase):
    def test_awaiting_workload(self):
        env = build_env(1000)
        be: PowerDatacenterBusinessEngine = env.business_engine

        # tick at the start time
        env.step()
        self.assertEqual(be.state, DatacenterState.AWAITING_WORKLOAD)
        self.assertEqual(env.tick, 0)
        self.assertEqual(len(env.get_pending_events(300.0)), 1)

        # submissions at 0.1 move the next tick one interval after them
        env.step()
        self.assertAlmostEqual(env.tick, 0.1)
        self.assertEqual(be.state, DatacenterState.AWAITING_WORKLOAD)
        self.assertListEqual(env.get_pending_events(300.0), [])

        tick_event = env.business_engine._event_buffer.find_first_pending(Events.DATACENTER_TICK)
        self.assertAlmostEqual(tick_event.tick, 300.1)
        self.assertEqual(be.total_energy, 0)
        self.assertEqual(be.last_process_tick, 0)

        env.step()
        self.assertAlmostEqual(env.tick, 300.1)
        self.assertEqual(be.state, DatacenterState.ACTIVE)
        self.assertAlmostEqual(be.last_process_tick, 300.1)
        self.assertGreater(be.total_energy, 0)

    def test_run_with_dimmer(self):
        env = build_env(1300)
        be: PowerDatacenterBusinessEngine = env.business_engine

        metrics = env.run()

        self.assertAlmostEqual(env.tick, 1200.1)

        # host 0 is seen overloaded at 900.1 and 1200.1, host 1 never
        self.assertEqual(metrics["dimmer_times"], 2)
        self.assertEqual(be.hosts[0].revenue_loss, 5)
        self.assertEqual(be.hosts[1].revenue_loss, 0)
        self.assertEqual(metrics["revenue_loss"], 5)

        # "recommendation" then "rating" is disabled
        cloudlet = be.cloudlets[0]
        self.assertAlmostEqual(cloudlet.get_utilization(be.last_process_tick), 0.35)
        self.assertSetEqual(be.hosts[0].disabled_tags, {"rating"})

        # one VM per host, nothing can move
        self.assertEqual(metrics["migration_count"], 0)

        self.assertEqual(metrics["dimmer_eligible_times"], 4 * 2)

        samples = metrics["idle_host_samples"]
        self.assertEqual(len(samples), 4)
        for (time, count), expected_time in zip(samples, [300, 600, 900, 1200]):
            self.assertAlmostEqual(time, expected_time)
            self.assertEqual(count, 0)

        # P(u) = 100 + 100u
        expected_energy = (147.5 + 125) * 300.1 + (195 + 150) * 300 + (175 + 150) * 300 + (145 + 150) * 300
        self.assertAlmostEqual(metrics["total_energy_consumption"], expected_energy, places=4)

    def test_properties_hold_at_every_step(self):
        env = build_env(6000)
        be: PowerDatacenterBusinessEngine = env.business_engine

        previous_energy = 0
        previous_revenue_loss = [0] * len(be.hosts)

        is_done = False
        while not is_done:
            metrics, is_done = env.step()

            for host in be.hosts:
                self.assertGreaterEqual(host.utilization, 0)
                self.assertLessEqual(host.utilization, 1)
                self.assertGreaterEqual(host.revenue_loss, previous_revenue_loss[host.id])
                previous_revenue_loss[host.id] = host.revenue_loss

            self.assertGreaterEqual(metrics["total_energy_consumption"], previous_energy)
            previous_energy = metrics["total_energy_consumption"]

        sample_times = [time for time, _ in metrics["idle_host_samples"]]
        self.assertListEqual(sample_times, sorted(sample_times))
        self.assertEqual(len(sample_times), len(set(sample_times)))
        self.assertEqual(len(sample_times), 19)

    def test_quiescent_after_workload_is_done(self):
        options = {
            "cloudlets": [{"vm_id": 0, "submit_time": 0.1, "length": 285000, "utilization": 0.95}],
        }
        env = build_env(86400, options)
        be: PowerDatacenterBusinessEngine = env.business_engine

        metrics = env.run()

        # nothing scheduled after the only cloudlet finishes
        self.assertAlmostEqual(env.tick, 300.1)
        self.assertTrue(be.cloudlets[0].is_finished)

        # the VM of the finished cloudlet is deallocated
        self.assertListEqual([vm.id for vm in be.vms], [1])
        self.assertListEqual(be.hosts[0].vms, [])

        self.assertEqual(len(metrics["idle_host_samples"]), 1)
        self.assertAlmostEqual(metrics["idle_host_samples"][0][0], 300)
        self.assertEqual(metrics["idle_host_samples"][0][1], 2)

    def test_reset(self):
        env = build_env(1300)
        env.run()

        env.reset()

        be: PowerDatacenterBusinessEngine = env.business_engine
        metrics = env.metrics
        self.assertEqual(metrics["total_energy_consumption"], 0)
        self.assertEqual(metrics["dimmer_times"], 0)
        self.assertListEqual(metrics["idle_host_samples"], [])
        self.assertEqual(metrics["revenue_loss"], 0)
        self.assertEqual(be.state, DatacenterState.AWAITING_WORKLOAD)

        metrics = env.run()
        self.assertEqual(metrics["dimmer_times"], 2)


class TestPowerDatacenterMigration(unittest.TestCase):
    def test_vm_moves_to_other_host(self):
        env = build_env(310, MIGRATION_OPTIONS)
        be: PowerDatacenterBusinessEngine = env.business_engine
        vm = be.vms[0]

        self.assertListEqual([v.host_id for v in be.vms], [0, 0])

        env.run()

        # (950 + 700) / 2000 on host 0 at 300.1, vm 0 leaves
        self.assertEqual(be.migration_count, 1)
        self.assertTrue(vm.in_migration)
        self.assertTrue(be.is_in_migration)
        self.assertListEqual(be.hosts[1].vms_migrating_in, [vm])
        self.assertEqual(vm.host_id, 0)

        migrate_event = env.business_engine._event_buffer.find_first_pending(Events.VM_MIGRATE)
        # 1024 / (1000000 / 2 / 8000)
        self.assertAlmostEqual(migrate_event.tick, 300.1 + 16.384)

    def test_migration_completes(self):
        env = build_env(400, MIGRATION_OPTIONS)
        be: PowerDatacenterBusinessEngine = env.business_engine
        vm = be.vms[0]

        metrics = env.run()

        self.assertEqual(metrics["migration_count"], 1)
        self.assertFalse(be.is_in_migration)
        self.assertEqual(vm.host_id, 1)
        self.assertListEqual(be.hosts[1].vms, [vm])
        self.assertListEqual(be.hosts[1].vms_migrating_in, [])
        self.assertListEqual([v.id for v in be.hosts[0].vms], [1])

        self.assertAlmostEqual(be.last_process_tick, 300.1 + 16.384)
        self.assertAlmostEqual(be.hosts[0].utilization, 0.35)
        self.assertAlmostEqual(be.hosts[1].utilization, 0.475)

    def test_simultaneous_migrations_process_once_after_the_last(self):
        # Four 2000 MIPS hosts, the first two are overloaded by two VMs each.
        options = {
            "hosts": [
                {"amount": 4, "mips": 2000, "pes": 1, "ram": 4096, "bw": 1000000, "power_model": "linear_200w"}
            ],
            "vms": [{"amount": 4, "mips": 1000, "pes": 1, "ram": 1024}],
            "cloudlets": [
                {"vm_id": vm_id, "submit_time": 0.1, "length": 100000000, "utilization": utilization}
                for vm_id, utilization in enumerate([0.95, 0.7, 0.95, 0.7])
            ],
        }
        env = build_env(400, options)
        be: PowerDatacenterBusinessEngine = env.business_engine

        forced_ticks = []
        update_processing_force = be._update_processing_force

        def record_update_processing_force(tick: float) -> float:
            forced_ticks.append(tick)
            return update_processing_force(tick)

        be._update_processing_force = record_update_processing_force

        self.assertListEqual([vm.host_id for vm in be.vms], [0, 0, 1, 1])

        metrics = env.run()

        # both transfers take 1024 / (1000000 / 2 / 8000) and land together
        self.assertEqual(metrics["migration_count"], 2)
        self.assertListEqual([vm.host_id for vm in be.vms], [2, 0, 3, 1])
        self.assertFalse(be.is_in_migration)

        # the second landing neither repeats the pass before it nor runs one after the first
        self.assertEqual(len(forced_ticks), 3)
        self.assertAlmostEqual(forced_ticks[0], 300.1)
        self.assertAlmostEqual(forced_ticks[1], 300.1 + 16.384)
        self.assertAlmostEqual(forced_ticks[2], 300.1 + 16.384)
        self.assertAlmostEqual(be.last_process_tick, 300.1 + 16.384)

        # hosts 0 and 1 are dimmed by each of the two passes at the landing time
        self.assertEqual(metrics["dimmer_times"], 4)

    def test_disabled_migration(self):
        options = dict(MIGRATION_OPTIONS, migration={"disable": True})
        env = build_env(400, options)
        be: PowerDatacenterBusinessEngine = env.business_engine

        metrics = env.run()

        self.assertEqual(metrics["migration_count"], 0)
        self.assertListEqual([v.host_id for v in be.vms], [0, 0])
        self.assertIsNone(be._event_buffer.find_first_pending(Events.VM_MIGRATE))


class TestPowerDatacenterConfig(unittest.TestCase):
    def test_options_override_topology(self):
        env = build_env(10, {"scheduling_interval": 60, "dimmer": {"strategy": "lowest_price"}})

        self.assertEqual(env.configs.scheduling_interval, 60)
        self.assertEqual(env.configs.dimmer.strategy, "lowest_price")
        # untouched keys are kept
        self.assertEqual(env.configs.dimmer.up_threshold, 0.8)

    def test_invalid_config(self):
        for options in [
            {"scheduling_interval": 0},
            {"sampling": {"period": -300}},
            {"dimmer": {"strategy": "random"}},
            {"dimmer": {"up_threshold": 1.2}},
            {"hosts": [{"mips": 1000, "pes": 1, "ram": 1024, "bw": 1000, "power_model": "unknown"}]},
        ]:
            with self.assertRaises(InvalidConfigError):
                PowerDatacenterBusinessEngine(
                    event_buffer=EventBuffer(), topology=TOPOLOGY_PATH, start_tick=0, max_tick=10,
                    additional_options=options
                )

    def test_datacenter_without_host_keeps_running(self):
        env = build_env(1000, {"hosts": []})
        be: PowerDatacenterBusinessEngine = env.business_engine

        # VMs wait for a host
        self.assertListEqual([vm.host_id for vm in be.vms], [None, None])

        metrics = env.run()

        # the dimmer value cannot be computed, the pass goes on without it
        self.assertAlmostEqual(be.last_process_tick, 300.1)
        self.assertEqual(metrics["dimmer_times"], 0)
        self.assertEqual(metrics["total_energy_consumption"], 0)
        self.assertEqual(metrics["dimmer_eligible_times"], 0)
        self.assertEqual(metrics["migration_count"], 0)

    def test_cloudlet_of_missing_vm_is_dropped(self):
        env = build_env(1000, {"vms": [{"amount": 1, "mips": 1000, "pes": 1, "ram": 1024}]})
        be: PowerDatacenterBusinessEngine = env.business_engine

        env.run()

        self.assertEqual(len(be.vms[0].cloudlets), 1)
        self.assertIsNone(be.cloudlets[1].last_update_time)


if __name__ == "__main__":
    unittest.main()
