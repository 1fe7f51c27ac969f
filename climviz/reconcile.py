"""
Keyed reconciliation (enter / update / exit)
============================================

Given the keys of the shapes currently on screen and the keys the next frame
wants, decide which shapes to create, which to keep and retarget, and which
to drop. Keys are stable identities: "<country>_<industry>" for lines, the
year for bar groups.

`delays` reproduces the staggered reordering of the bar chart: a shape waits
`delay_step` ms per position it moves. New shapes count as moving from
position 0.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Sequence


@dataclass
class ReconcilePlan:
    enter: List[Hashable] = field(default_factory=list)
    update: List[Hashable] = field(default_factory=list)
    exit: List[Hashable] = field(default_factory=list)
    delays: Dict[Hashable, float] = field(default_factory=dict)

    @property
    def order(self) -> List[Hashable]:
        """Keys that will be on screen, in desired order."""
        return list(self.delays)

    def __bool__(self) -> bool:
        return bool(self.enter or self.update or self.exit)


def reconcile(previous: Sequence[Hashable], desired: Sequence[Hashable], delay_step: float = 0) -> ReconcilePlan:
    if len(set(desired)) != len(desired):
        raise ValueError("desired keys must be unique")

    prev_index = {k: i for i, k in enumerate(previous)}
    wanted = set(desired)
    plan = ReconcilePlan()
    for i, k in enumerate(desired):
        if k in prev_index:
            plan.update.append(k)
        else:
            plan.enter.append(k)
        plan.delays[k] = abs(i - prev_index.get(k, 0)) * delay_step
    plan.exit = [k for k in previous if k not in wanted]
    return plan
