# SPDX-License-Identifier: MIT
"""
Allocation package

Provides:
- Capacity inventory (free RAM per worker host)
- Target scoring, action classification and demand sizing
- Greedy multi-target allocator and the per-cycle hacker loop
"""
from netops.allocation.actions import Action, classify_action, worker_script
from netops.allocation.allocator import AllocationPlan, Assignment, Target, allocate
from netops.allocation.capacity import WorkerHost, build_capacity_inventory

__all__ = [
    "Action",
    "classify_action",
    "worker_script",
    "AllocationPlan",
    "Assignment",
    "Target",
    "allocate",
    "WorkerHost",
    "build_capacity_inventory",
]
