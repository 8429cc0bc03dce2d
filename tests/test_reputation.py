"""
Tests for reputation tracking and the reputation manager
"""

import math
import unittest

from netops.host.api import PlayerSkills
from netops.host.sim_host import build_world
from netops.purchasing.aug_planner import PurchaseItem
from netops.reputation.rep_tracker import (
    FactionSummary,
    RateTracker,
    RepConfig,
    RepManager,
    analyze_factions,
    estimate_eta,
    find_next_augmentation,
    select_best_work_type,
)


def _rep_world(joined=None):
    if joined is None:
        joined = {"CyberSec": {"rep": 100, "augmentations": ["A1", "A2"]}}
    return build_world({
        "player": {"money": 1000, "hacking": 100},
        "factions": {
            "joined": joined,
            "augmentations": {
                "A1": {"rep_req": 500, "price": 10},
                "A2": {"rep_req": 50, "price": 20},
                "B1": {"rep_req": 10_000, "price": 30},
            },
        },
    })


class _Clock:
    def __init__(self, *times):
        self.times = list(times)

    def __call__(self):
        return self.times.pop(0)


class TestRateTracker(unittest.TestCase):
    """Test cases for RateTracker."""

    def test_smoothing(self):
        """Each new sample contributes 30% of its instantaneous rate."""
        t = RateTracker()
        self.assertEqual(t.update("A", 100, 0), 0.0)
        self.assertAlmostEqual(t.update("A", 200, 10), 3.0)
        self.assertAlmostEqual(t.update("A", 300, 20), 5.1)

    def test_key_change_resets(self):
        """Switching keys starts over at zero."""
        t = RateTracker()
        t.update("A", 100, 0)
        t.update("A", 200, 10)
        self.assertEqual(t.update("B", 50, 20), 0.0)
        self.assertAlmostEqual(t.update("B", 60, 30), 0.3)

    def test_zero_previous_value_ignored(self):
        """A sample after a zero value does not move the rate."""
        t = RateTracker()
        t.update("A", 0, 0)
        self.assertEqual(t.update("A", 100, 10), 0.0)

    def test_no_time_elapsed(self):
        """Two samples at the same instant do not move the rate."""
        t = RateTracker()
        t.update("A", 100, 5)
        self.assertEqual(t.update("A", 200, 5), 0.0)


class TestTargetSelection(unittest.TestCase):
    """Test cases for find_next_augmentation(), work type and ETA."""

    def test_smallest_positive_gap(self):
        """The augmentation closest to unlocking wins; unlocked ones are skipped."""
        factions = [
            FactionSummary("F1", rep=100, favor=0, available=[
                PurchaseItem("done", "F1", 1, rep_req=50), PurchaseItem("far", "F1", 1, rep_req=1000),
            ]),
            FactionSummary("F2", rep=400, favor=0, available=[PurchaseItem("near", "F2", 1, rep_req=500)]),
        ]
        nxt = find_next_augmentation(factions)
        self.assertEqual(nxt.aug.name, "near")
        self.assertEqual(nxt.faction.name, "F2")
        self.assertEqual(nxt.rep_gap, 100)

    def test_nothing_to_unlock(self):
        """No positive gap, no target."""
        self.assertIsNone(find_next_augmentation([FactionSummary("F", rep=10, favor=0)]))

    def test_work_type(self):
        """Hacking work when hacking beats combat average and charisma; field otherwise."""
        self.assertEqual(select_best_work_type(PlayerSkills(hacking=100)), "hacking")
        self.assertEqual(select_best_work_type(PlayerSkills(hacking=10, strength=50, defense=50,
                                                            dexterity=50, agility=50)), "field")
        self.assertEqual(select_best_work_type(PlayerSkills(hacking=10, charisma=20)), "field")

    def test_eta(self):
        """ETA is zero when done and infinite without progress."""
        self.assertEqual(estimate_eta(0, 5), 0.0)
        self.assertTrue(math.isinf(estimate_eta(100, 0)))
        self.assertEqual(estimate_eta(100, 4), 25.0)

    def test_analyze_factions_sorted_by_rep(self):
        """Available augmentations are ordered by reputation requirement."""
        summary = analyze_factions(_rep_world().factions)
        self.assertEqual([a.name for a in summary[0].available], ["A2", "A1"])


class TestRepManager(unittest.TestCase):
    """Test cases for RepManager."""

    def test_starts_work_and_tracks_rate(self):
        """Work starts once; later cycles measure the rep rate."""
        world = _rep_world()
        manager = RepManager(world.factions, clock=_Clock(0, 10))
        report = manager.run_once()
        self.assertEqual(report.target.aug.name, "A1")
        self.assertTrue(report.work_started)
        self.assertEqual(report.work_type, "hacking")
        self.assertEqual(world.player.work.faction_name, "CyberSec")
        self.assertTrue(math.isinf(report.eta_seconds))

        world.factions.factions["CyberSec"].rep = 200
        report = manager.run_once()
        self.assertFalse(report.work_started)
        self.assertAlmostEqual(report.rate, 3.0)
        self.assertAlmostEqual(report.eta_seconds, 100.0)
        self.assertTrue(any("A1" in line for line in report.lines))

    def test_no_work(self):
        """With no_work set the player is left alone."""
        world = _rep_world()
        RepManager(world.factions, RepConfig(no_work=True), clock=_Clock(0)).run_once()
        self.assertIsNone(world.player.work)

    def test_forced_faction(self):
        """A forced faction overrides auto-selection."""
        world = _rep_world({
            "CyberSec": {"rep": 100, "augmentations": ["A1", "A2"]},
            "Sector-12": {"rep": 0, "augmentations": ["B1"]},
        })
        report = RepManager(world.factions, RepConfig(faction="Sector-12"), clock=_Clock(0)).run_once()
        self.assertEqual(report.target.faction.name, "Sector-12")
        self.assertEqual(report.target.rep_gap, 10_000)

    def test_forced_faction_not_joined(self):
        """An unknown forced faction falls back to auto-selection."""
        report = RepManager(_rep_world().factions, RepConfig(faction="Nope"), clock=_Clock(0)).run_once()
        self.assertEqual(report.target.aug.name, "A1")

    def test_no_factions(self):
        """Without factions there is no target."""
        report = RepManager(_rep_world({}).factions, clock=_Clock(0)).run_once()
        self.assertIsNone(report.target)
        self.assertTrue(any("No faction" in line for line in report.lines))


if __name__ == "__main__":
    unittest.main()
