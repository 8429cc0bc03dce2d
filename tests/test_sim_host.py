"""
Tests for the in-memory world
"""

import math
import unittest
from pathlib import Path

from netops.allocation.actions import Action
from netops.host.sim_host import load_world
from world_fixtures import make_world

ROOT = Path(__file__).resolve().parents[1]


class TestInMemoryHost(unittest.TestCase):
    """Test cases for InMemoryHost."""

    def setUp(self):
        self.world = make_world()
        self.host = self.world.host

    def test_controlled_hosts(self):
        """Only rooted servers with RAM are worker hosts."""
        names = sorted(h.hostname for h in self.host.list_controlled_hosts())
        self.assertEqual(names, ["home", "n1"])

    def test_run_script_requires_file_root_and_ram(self):
        """Missing script copy, no root or too little RAM all fail with pid 0."""
        self.assertEqual(self.host.run_script("/workers/hack.js", "n1", 1, "n1"), 0)
        self.assertTrue(self.host.copy_files(["/workers/hack.js"], "n1"))
        self.assertEqual(self.host.run_script("/workers/hack.js", "n1", 10, "n1"), 0)
        pid = self.host.run_script("/workers/hack.js", "n1", 9, "n1")
        self.assertGreater(pid, 0)
        self.assertAlmostEqual(self.host.get_server("n1").ram_used, 9 * 1.7)
        self.assertEqual(self.host.run_script("/workers/hack.js", "locked", 1, "n1"), 0)
        self.assertEqual(self.host.run_script("/workers/hack.js", "home", 0, "n1"), 0)

    def test_copy_requires_source_file(self):
        """Copying a file the source does not have fails."""
        self.assertFalse(self.host.copy_files(["/nope.js"], "n1"))
        self.assertFalse(self.host.copy_files(["/workers/hack.js"], "nowhere"))

    def test_kill_all_frees_ram(self):
        """kill_all releases the RAM booked by its processes."""
        self.host.run_script("/workers/grow.js", "home", 4, "n1")
        self.assertEqual(self.host.kill_all("home"), 1)
        self.assertAlmostEqual(self.host.get_server("home").ram_used, 0.0)

    def test_action_times(self):
        """Grow and weaken take fixed multiples of the hack time."""
        self.assertEqual(self.host.action_time("n1", Action.HARVEST), 1000.0)
        self.assertAlmostEqual(self.host.action_time("n1", Action.REPLENISH), 3200.0)
        self.assertAlmostEqual(self.host.action_time("n1", Action.SUPPRESS), 4000.0)

    def test_growth_analyze(self):
        """No growth needed below x1; otherwise log(multiplier) / log(rate)."""
        self.assertEqual(self.host.growth_analyze("n1", 1.0), 0.0)
        expected = math.log(2.0) / math.log(1.0025)
        self.assertAlmostEqual(self.host.growth_analyze("n1", 2.0), expected)

    def test_share_power(self):
        """Each running share thread adds to the power."""
        self.host.run_script("/workers/share.js", "home", 2)
        self.assertAlmostEqual(self.host.share_power(), 1.0002)

    def test_purchase_and_upgrade(self):
        """Buying needs a power-of-two size and money; upgrades pay the difference."""
        self.host.player.money = 10 * 55000
        self.assertEqual(self.host.purchased_server_cost(6), math.inf)
        name = self.host.purchase_server("pserv", 8)
        self.assertEqual(name, "pserv")
        self.assertIn("pserv", self.host.scan("home"))
        self.assertAlmostEqual(self.host.money(), 2 * 55000)
        self.assertEqual(self.host.upgrade_cost("pserv", 16), 8 * 55000)
        self.assertFalse(self.host.upgrade_server("pserv", 16))
        self.assertEqual(self.host.purchase_server("pserv", 2), "pserv-1")


class TestLoadWorld(unittest.TestCase):
    """Test cases for world snapshots on disk."""

    def test_missing_file(self):
        """Unknown world files raise FileNotFoundError."""
        with self.assertRaises(FileNotFoundError):
            load_world(str(ROOT / "configs" / "no_such_world.yaml"))

    def test_example_world(self):
        """The bundled example snapshot loads with all three surfaces."""
        world = load_world(str(ROOT / "configs" / "world_example.yaml"))
        self.assertIn("joesguns", world.host.servers)
        self.assertIn("ECP", world.market.symbols())
        self.assertIn("CyberSec", world.factions.joined_factions())
        self.assertEqual(world.host.hacking_level(), 120)


if __name__ == "__main__":
    unittest.main()
