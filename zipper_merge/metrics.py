# -*- coding: utf-8 -*-
"""
zipper_merge/metrics.py

Sliding-window traffic metrics:
- CompletionRecord: origin lane, travel time and expiry of an exited vehicle
- MetricsTracker: trail / completion bookkeeping, throughput and fairness

Throughput = unexpired trails / retention window [veh/s].
Fairness   = 1 / (1 + CV) of unexpired travel times, CV = population std / mean.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
from scipy.stats import variation


@dataclass(frozen=True)
class CompletionRecord:
    """Exit record of one vehicle"""
    start_lane: int
    travel_time: float       # [s] spawn -> exit
    expiration_time: float   # [s] simulated time the record is purged


class MetricsTracker:
    """
    Keeps trail and completion records for ``retention_window`` seconds.

    Both lists are append-only until ``purge`` drops records whose expiry
    has passed.
    """

    def __init__(self, retention_window: float = 10.0):
        self.retention_window = retention_window
        self.trails: List[float] = []
        self.completed: List[CompletionRecord] = []
        self.total_exits = 0
        # Every travel time since construction, keyed by origin lane
        self.lifetime_travel_times: Dict[int, List[float]] = {}

    def record_exit(self, start_lane: int, spawn_time: float, now: float) -> CompletionRecord:
        expiration = now + self.retention_window
        self.trails.append(expiration)
        record = CompletionRecord(
            start_lane=start_lane,
            travel_time=now - spawn_time,
            expiration_time=expiration,
        )
        self.completed.append(record)
        self.total_exits += 1
        self.lifetime_travel_times.setdefault(start_lane, []).append(record.travel_time)
        return record

    def purge(self, now: float):
        """Keep only records that have not expired yet."""
        self.trails = [t for t in self.trails if t > now]
        self.completed = [rec for rec in self.completed if rec.expiration_time > now]

    def throughput(self, now: Optional[float] = None) -> float:
        """Vehicles per second over the retention window."""
        if now is not None:
            self.purge(now)
        return len(self.trails) / self.retention_window

    def fairness(self, now: Optional[float] = None) -> float:
        """
        Travel-time fairness in (0, 1].

        Returns:
            1.0 for fewer than two records or a zero mean, otherwise 1 / (1 + CV)
        """
        if now is not None:
            self.purge(now)
        if len(self.completed) < 2:
            return 1.0

        times = np.array([rec.travel_time for rec in self.completed], dtype=float)
        if np.mean(times) == 0:
            return 1.0

        cv = float(variation(times))
        return 1.0 / (1.0 + cv)

    def mean_travel_time(self) -> float:
        if not self.completed:
            return 0.0
        return float(np.mean([rec.travel_time for rec in self.completed]))

    def travel_time_by_lane(self) -> Dict[int, float]:
        """Mean travel time per origin lane over the unexpired records."""
        by_lane: Dict[int, List[float]] = {}
        for rec in self.completed:
            by_lane.setdefault(rec.start_lane, []).append(rec.travel_time)
        return {lane: float(np.mean(times)) for lane, times in sorted(by_lane.items())}

    def lifetime_mean_travel_time(self) -> float:
        times = [t for lane_times in self.lifetime_travel_times.values() for t in lane_times]
        return float(np.mean(times)) if times else 0.0

    def lifetime_travel_time_by_lane(self) -> Dict[int, float]:
        return {lane: float(np.mean(times))
                for lane, times in sorted(self.lifetime_travel_times.items())}

    def reset(self):
        self.trails = []
        self.completed = []
        self.total_exits = 0
        self.lifetime_travel_times = {}
