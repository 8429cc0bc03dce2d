"""
Tests for discovery, path finding and the network map
"""

import unittest

from netops.network.discovery import (
    connect_commands,
    discover_with_depth,
    get_all_servers,
    path_to,
    path_to_list,
)
from netops.network.network_map import filter_rows, network_map, parse_sort_spec, render_map
from world_fixtures import make_world


class AdjacencyHost:
    def __init__(self, links):
        self.links = links

    def scan(self, hostname):
        return list(self.links.get(hostname, []))


GRAPH = AdjacencyHost({
    "home": ["a", "c"],
    "a": ["home", "b"],
    "b": ["a", "d", "c"],
    "c": ["home", "b"],
    "d": ["b"],
})


class TestDiscovery(unittest.TestCase):
    """Test cases for BFS discovery."""

    def test_get_all_servers_bfs_order(self):
        """Every reachable host once, start first, breadth first."""
        self.assertEqual(get_all_servers(GRAPH), ["home", "a", "c", "b", "d"])

    def test_depth_and_parent(self):
        """Shallowest depth wins; the first parent found at that depth is kept."""
        disc = discover_with_depth(GRAPH)
        self.assertEqual(disc.depth_by_host, {"home": 0, "a": 1, "c": 1, "b": 2, "d": 3})
        self.assertEqual(disc.parent_by_host["b"], "a")
        self.assertEqual(disc.hosts, ["home", "a", "c", "b", "d"])

    def test_max_depth(self):
        """Hosts beyond max_depth are not expanded."""
        disc = discover_with_depth(GRAPH, max_depth=1)
        self.assertEqual(disc.hosts, ["home", "a", "c"])

    def test_paths(self):
        """Path strings and connect one-liners."""
        disc = discover_with_depth(GRAPH)
        self.assertEqual(path_to_list(disc.parent_by_host, "d"), ["home", "a", "b", "d"])
        self.assertEqual(path_to(disc.parent_by_host, "d"), "a > b > d")
        self.assertEqual(path_to(disc.parent_by_host, "d", include_start=True), "home > a > b > d")
        self.assertEqual(connect_commands(disc.parent_by_host, "b"), "connect a; connect b")
        self.assertEqual(path_to_list(disc.parent_by_host, "nowhere"), [])


class TestNetworkMap(unittest.TestCase):
    """Test cases for the network map table."""

    def setUp(self):
        self.host = make_world().host

    def test_rows_and_display_path(self):
        """One row per server; display path drops the start and the server itself."""
        df = network_map(self.host)
        self.assertEqual(len(df), 5)
        deep = df[df["host"] == "deep"].iloc[0]
        self.assertEqual(deep["depth"], 2)
        self.assertEqual(deep["path"], "locked")

    def test_sort_spec(self):
        """'!' sorts descending; unknown fields fall back to host; duplicates are dropped."""
        cols, asc = parse_sort_spec("!ramMax,bogus,host")
        self.assertEqual(cols, ["ramMax", "host"])
        self.assertEqual(asc, [False, True])

        df = network_map(self.host, sort="!ramMax,host")
        self.assertEqual(list(df["host"]), ["home", "locked", "n1", "deep", "n2"])

    def test_filters(self):
        """Boolean aliases, comparisons and negation combine with AND."""
        df = network_map(self.host)
        rooted = filter_rows(df, "rooted")
        self.assertEqual(sorted(rooted["host"]), ["home", "n1", "n2"])
        cheap = filter_rows(df, "rooted,!p,reqHack<=1")
        self.assertEqual(sorted(cheap["host"]), ["n1", "n2"])
        self.assertEqual(list(filter_rows(df, "host=n1")["host"]), ["n1"])

    def test_limit(self):
        """limit keeps the first N rows after sorting."""
        df = network_map(self.host, sort="host", limit=2)
        self.assertEqual(list(df["host"]), ["deep", "home"])

    def test_render_skips_serverless_rows(self):
        """Rows with no RAM are left out of the rendered table."""
        lines = render_map(network_map(self.host))
        body = "\n".join(lines)
        self.assertIn("n1", body)
        self.assertNotIn("n2 ", body)
        self.assertTrue(lines[-1].startswith("Sort fields:"))


if __name__ == "__main__":
    unittest.main()
