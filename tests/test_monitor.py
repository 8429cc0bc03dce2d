"""
Tests for the network dashboard, the share filler and console formatting
"""

import unittest

from netops.allocation.actions import Action, SHARE_SCRIPT
from netops.allocation.share_filler import ShareConfig, ShareFiller
from netops.host.api import ServerSnapshot
from netops.monitor.dashboard import (
    Dashboard,
    busiest_hosts,
    collect_jobs,
    expected_money,
    jobs_by_target,
    ram_stats,
    target_status,
)
from netops.utils.formatting import C, format_num, format_percent, format_ram, format_time, make_bar, pad

from world_fixtures import make_world


class _Clock:
    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now


class TestDashboard(unittest.TestCase):
    """Test cases for the dashboard helpers."""

    def setUp(self):
        self.world = make_world()
        host = self.world.host
        host.dispatch("home", Action.HARVEST, "n1", 4)
        host.dispatch("home", Action.REPLENISH, "n1", 2)
        host.dispatch("home", Action.SUPPRESS, "n2", 3)

    def test_jobs_by_target(self):
        """Threads pivot into hack/grow/weaken columns, busiest target first."""
        table = jobs_by_target(collect_jobs(self.world.host))
        self.assertEqual(list(table.index), ["n1", "n2"])
        self.assertEqual(table.loc["n1"].tolist(), [4, 2, 0, 6])
        self.assertEqual(table.loc["n2"].tolist(), [0, 0, 3, 3])

    def test_non_worker_processes_ignored(self):
        """Share threads are not jobs."""
        self.world.host.run_script(SHARE_SCRIPT, "home", 1)
        self.assertEqual(len(collect_jobs(self.world.host)), 3)

    def test_expected_money(self):
        """Hack threads times fraction times chance times available money."""
        table = jobs_by_target(collect_jobs(self.world.host))
        self.assertAlmostEqual(expected_money(self.world.host, table), 250.0)

    def test_ram_and_busiest(self):
        """RAM totals cover rooted hosts with RAM; busiest lists worker threads."""
        stats = ram_stats(self.world.host)
        self.assertEqual(stats.total, 80.0)
        self.assertAlmostEqual(stats.used, 4 * 1.70 + 2 * 1.75 + 3 * 1.75)
        self.assertEqual((stats.active_servers, stats.total_servers), (1, 2))
        self.assertEqual(busiest_hosts(self.world.host), [("home", 9)])

    def test_target_status(self):
        """Security alert first, then low money, then ready."""
        label, color = target_status(ServerSnapshot("a", hack_difficulty=12, min_difficulty=5))
        self.assertEqual((label, color), ("Sec +7", C.RED))
        label, color = target_status(ServerSnapshot("b", money_available=50, money_max=100))
        self.assertEqual((label, color), ("50% $", C.YELLOW))
        self.assertEqual(target_status(ServerSnapshot("c", money_available=90, money_max=100))[0], "Ready")

    def test_snapshot(self):
        """A snapshot measures the money rate across refreshes."""
        clock = _Clock()
        money = iter([100.0, 200.0])
        dash = Dashboard(self.world.host, money_fn=lambda: next(money), clock=clock)
        first = dash.snapshot()
        self.assertEqual(first.money_rate, 0.0)
        self.assertTrue(any("NETWORK DASHBOARD" in line for line in first.lines))
        clock.now = 10.0
        second = dash.snapshot()
        self.assertAlmostEqual(second.money_rate, 3.0)
        self.assertEqual(second.uptime_s, 10.0)

    def test_empty_network(self):
        """No jobs renders a hint instead of a table."""
        dash = Dashboard(make_world().host, clock=_Clock())
        snap = dash.snapshot()
        self.assertTrue(snap.jobs.empty)
        self.assertEqual(snap.expected, 0.0)
        self.assertTrue(any("No hacking activity" in line for line in snap.lines))


class TestShareFiller(unittest.TestCase):
    """Test cases for ShareFiller."""

    def test_fills_free_ram(self):
        """Every host gets floor(free / share RAM) threads after its reserve."""
        world = make_world()
        filler = ShareFiller(world.host, ShareConfig(min_free=4, home_reserve=32))
        filler.deploy()
        report = filler.run_once()
        self.assertEqual(report.threads_by_host, {"home": 8, "n1": 3})
        self.assertEqual(report.launched, 11)
        self.assertEqual(report.hosts_used, 2)
        self.assertAlmostEqual(report.share_power, 1.0011)

        again = filler.run_once(stamp=1)
        self.assertEqual(again.launched, 0)
        self.assertEqual(again.total_threads, 11)

    def test_without_deploy_only_home_runs(self):
        """Hosts without the share script are skipped."""
        world = make_world()
        report = ShareFiller(world.host, ShareConfig(min_free=4, home_reserve=32)).run_once()
        self.assertEqual(report.threads_by_host, {"home": 8})

    def test_missing_script(self):
        """A host without the share script cannot run the filler."""
        world = make_world()
        world.host.scripts.pop(SHARE_SCRIPT)
        with self.assertRaises(RuntimeError):
            ShareFiller(world.host)


class TestFormatting(unittest.TestCase):
    """Test cases for the console formatting helpers."""

    def test_format_num(self):
        """Suffixes k/m/b/t/q with two decimals."""
        self.assertEqual(format_num(999), "999")
        self.assertEqual(format_num(1500), "1.50k")
        self.assertEqual(format_num(-2_500_000), "-2.50m")
        self.assertEqual(format_num(float("inf")), "-")

    def test_format_ram(self):
        """GB, TB and MB."""
        self.assertEqual(format_ram(64), "64GB")
        self.assertEqual(format_ram(2048), "2TB")
        self.assertEqual(format_ram(0.5), "512MB")
        self.assertEqual(format_ram(0), "0GB")

    def test_format_time(self):
        """Seconds, minutes, hours and days; ??? for bad input."""
        self.assertEqual(format_time(5), "5s")
        self.assertEqual(format_time(125), "2m 5s")
        self.assertEqual(format_time(3 * 3600 + 120), "3h 2m")
        self.assertEqual(format_time(90_000), "1d 1h")
        self.assertEqual(format_time(-1), "???")

    def test_bar_and_pad(self):
        """Bars clamp to their width; pad truncates or fills."""
        self.assertEqual(make_bar(2.0, 4).count("█"), 4)
        self.assertEqual(make_bar(-1.0, 4).count("░"), 4)
        self.assertEqual(pad("abcdef", 3), "abc")
        self.assertEqual(pad("ab", 4), "ab  ")
        self.assertEqual(format_percent(0.1234, 1), "12.3%")


if __name__ == "__main__":
    unittest.main()
