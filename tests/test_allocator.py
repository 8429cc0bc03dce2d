"""
Tests for the greedy multi-target allocator
"""

import unittest

from netops.allocation.actions import Action
from netops.allocation.allocator import Target, allocate
from netops.allocation.capacity import WorkerHost, build_capacity_inventory

UNIT = {Action.HARVEST: 1.0, Action.REPLENISH: 1.0, Action.SUPPRESS: 1.0}


def _hosts(*sizes):
    return build_capacity_inventory(
        [WorkerHost(hostname=f"h{i}", max_ram=s) for i, s in enumerate(sizes)],
        primary_reserve=0.0,
    )


def _target(name, demand, action=Action.HARVEST, value=1.0):
    t = Target(hostname=name, money_available=1, money_max=1, hack_difficulty=1, min_difficulty=1, value=value)
    t.action = action
    t.demand = demand
    return t


class TestAllocator(unittest.TestCase):
    """Test cases for allocate()."""

    def test_single_target_takes_overflow(self):
        """100 units of capacity, demand 40: the target ends up with all 100."""
        t = _target("T", 40)
        plan = allocate(_hosts(100), [t], UNIT)
        self.assertEqual(t.assigned, 100)
        self.assertEqual(plan.overflow_units, 60)
        self.assertEqual(len(plan.assignments), 1)
        self.assertEqual(plan.assignments[0].units, 100)

    def test_two_targets_two_hosts(self):
        """Hosts (10, 5), demands (8, 20): T1 gets 8, T2 gets 7, nothing overflows."""
        t1, t2 = _target("T1", 8), _target("T2", 20)
        plan = allocate(_hosts(10, 5), [t1, t2], UNIT)
        self.assertEqual(t1.assigned, 8)
        self.assertEqual(t2.assigned, 7)
        self.assertEqual(plan.overflow_units, 0)
        self.assertEqual(plan.units_by_host(), {"h0": 10, "h1": 5})
        self.assertEqual([t.hostname for t in plan.unsaturated], ["T2"])

    def test_per_host_units_never_exceed_capacity(self):
        """Units placed on a host never cost more than its free RAM."""
        costs = {Action.HARVEST: 1.7, Action.REPLENISH: 1.75, Action.SUPPRESS: 1.75}
        hosts = _hosts(64, 16, 8, 4, 2)
        free = {h.hostname: h.available_ram for h in hosts}
        targets = [
            _target("a", 30, Action.SUPPRESS),
            _target("b", 12, Action.REPLENISH),
            _target("c", 50, Action.HARVEST),
        ]
        plan = allocate(hosts, targets, costs)
        used = {}
        for a in plan.assignments:
            used[a.host] = used.get(a.host, 0.0) + a.units * costs[a.action]
        for host, ram in used.items():
            self.assertLessEqual(ram, free[host] + 1e-9)
        for h in hosts:
            self.assertGreaterEqual(h.available_ram, -1e-9)

    def test_non_overflow_targets_never_exceed_demand(self):
        """Only the top target can exceed its demand."""
        targets = [_target("a", 5), _target("b", 3), _target("c", 2)]
        allocate(_hosts(50, 50), targets, UNIT)
        self.assertEqual(targets[1].assigned, 3)
        self.assertEqual(targets[2].assigned, 2)
        self.assertEqual(targets[0].assigned, 95)

    def test_rank_order_saturation(self):
        """With equal demand a higher ranked target is never less saturated."""
        targets = [_target(n, 10) for n in ("a", "b", "c", "d")]
        allocate(_hosts(12, 7, 3), targets, UNIT)
        assigned = [t.assigned for t in targets]
        self.assertEqual(sum(assigned), 22)
        for hi, lo in zip(assigned, assigned[1:]):
            self.assertGreaterEqual(hi, lo)

    def test_same_host_assignments_are_merged(self):
        """Repeated placement of one target on one host becomes a single assignment."""
        t = _target("T", 3)
        plan = allocate(_hosts(10), [t], UNIT)
        pairs = [(a.host, a.target) for a in plan.assignments]
        self.assertEqual(len(pairs), len(set(pairs)))

    def test_host_too_small_is_skipped(self):
        """A host that cannot fit one unit of any unsaturated target is passed over."""
        costs = {Action.HARVEST: 4.0}
        t = _target("T", 2)
        plan = allocate(_hosts(3, 2), [t], costs)
        self.assertEqual(t.assigned, 0)
        self.assertEqual(plan.assignments, [])

    def test_empty_inputs(self):
        """No hosts or no targets produce an empty plan."""
        self.assertEqual(allocate([], [_target("T", 5)], UNIT).total_units, 0)
        self.assertEqual(allocate(_hosts(10), [], UNIT).total_units, 0)

    def test_missing_action_or_cost_raises(self):
        """Targets must be classified and every action priced."""
        t = _target("T", 5)
        t.action = None
        with self.assertRaises(ValueError):
            allocate(_hosts(10), [t], UNIT)
        with self.assertRaises(ValueError):
            allocate(_hosts(10), [_target("T", 5, Action.SUPPRESS)], {Action.HARVEST: 1.0})
        with self.assertRaises(ValueError):
            allocate(_hosts(10), [_target("T", 5)], {Action.HARVEST: 0.0})


class TestCapacityInventory(unittest.TestCase):
    """Test cases for build_capacity_inventory()."""

    def test_reserve_and_ordering(self):
        """Home keeps its reserve, empty hosts are dropped, largest first."""
        hosts = [
            WorkerHost("home", max_ram=64, ram_used=8),
            WorkerHost("a", max_ram=16),
            WorkerHost("b", max_ram=32, ram_used=32),
            WorkerHost("c", max_ram=0),
            WorkerHost("d", max_ram=128, ram_used=100),
        ]
        inv = build_capacity_inventory(hosts, primary_reserve=32)
        self.assertEqual([(w.hostname, w.available_ram) for w in inv], [("d", 28.0), ("home", 24.0), ("a", 16.0)])

    def test_inputs_not_modified(self):
        """The inventory holds copies."""
        h = WorkerHost("a", max_ram=16)
        inv = build_capacity_inventory([h], primary_reserve=0)
        inv[0].available_ram = 0
        self.assertEqual(h.available_ram, 0.0)
        self.assertEqual(h.free_ram, 16.0)

    def test_reserve_larger_than_host(self):
        """A reserve bigger than the host leaves nothing."""
        inv = build_capacity_inventory([WorkerHost("home", max_ram=16)], primary_reserve=32)
        self.assertEqual(inv, [])


if __name__ == "__main__":
    unittest.main()
