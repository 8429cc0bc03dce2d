# SPDX-License-Identifier: MIT
"""
Server discovery over the host's ``scan`` adjacency.

Only ``scan(hostname) -> list[str]`` is needed from the host, so anything
exposing that method (the full HostAPI or a test double) works here.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass
class Discovery:
    hosts: List[str]
    depth_by_host: Dict[str, int]
    parent_by_host: Dict[str, Optional[str]]


def get_all_servers(api, start: str = "home") -> List[str]:
    """All reachable hostnames in BFS order, ``start`` first."""
    seen = {start}
    order = [start]
    queue = deque([start])

    while queue:
        current = queue.popleft()
        for neighbor in api.scan(current):
            if neighbor not in seen:
                seen.add(neighbor)
                order.append(neighbor)
                queue.append(neighbor)

    return order


def discover_with_depth(api, start: str = "home", max_depth: int = -1) -> Discovery:
    """
    BFS keeping the shallowest depth and its parent per host.

    ``max_depth < 0`` means unlimited. Hosts are returned sorted by
    (depth, hostname).
    """
    depth_by_host: Dict[str, int] = {start: 0}
    parent_by_host: Dict[str, Optional[str]] = {start: None}
    queue = deque([start])

    while queue:
        cur = queue.popleft()
        cur_depth = depth_by_host[cur]

        for n in api.scan(cur):
            cand_depth = cur_depth + 1
            prev_depth = depth_by_host.get(n)

            if prev_depth is None or cand_depth < prev_depth:
                depth_by_host[n] = cand_depth
                parent_by_host[n] = cur

                if max_depth < 0 or cand_depth < max_depth:
                    queue.append(n)

    hosts = sorted(depth_by_host, key=lambda h: (depth_by_host[h], h))
    return Discovery(hosts=hosts, depth_by_host=depth_by_host, parent_by_host=parent_by_host)


def path_to_list(parent_by_host: Dict[str, Optional[str]], target: str) -> List[str]:
    """Hostnames from the discovery start to ``target``; empty if unknown."""
    if target not in parent_by_host:
        return []
    path = []
    cur: Optional[str] = target
    while cur is not None:
        path.append(cur)
        cur = parent_by_host.get(cur)
    path.reverse()
    return path


def path_to(parent_by_host: Dict[str, Optional[str]], target: str, include_start: bool = False) -> str:
    """Path as "home > n00dles > CSEC" (start omitted unless asked for)."""
    path = path_to_list(parent_by_host, target)
    if not include_start:
        path = path[1:]
    return " > ".join(path)


def connect_commands(parent_by_host: Dict[str, Optional[str]], target: str) -> str:
    """Terminal one-liner that walks from the start host to ``target``."""
    return "; ".join(f"connect {h}" for h in path_to_list(parent_by_host, target)[1:])
