# -*- coding: utf-8 -*-
"""
zipper_merge/simulator.py

Zipper merge simulator:
- ZipperMergeSimulator: owns one Road and a simulated clock
- Two periodic triggers: vehicle spawn (spawn_interval) and tick (tick_interval)
- History sampling (throughput, fairness, vehicles on road, mean speed)
- Final statistics for the console and the CLI's JSON output

Triggers never overlap: when a spawn and a tick fall due at the same
simulated time the spawn is processed first, then the tick runs to
completion.
"""

import gc
import sys
from typing import Dict, List, Optional

import numpy as np

from .parameters import ZipperMergeParameters
from .road import Road
from .utils import SCRIPT_VERSION, random_bounded_normal
from .vehicle import Vehicle

# Float tolerance when comparing trigger times
_TIME_EPS = 1e-9


class ZipperMergeSimulator:
    """
    Simulated-clock orchestration of spawns and ticks on a single road.

    The clock only moves forward through ``step`` / ``run``; there is no
    wall-clock timer.
    """

    def __init__(self,
                 params: Optional[ZipperMergeParameters] = None,
                 load_level: str = 'medium'):
        """
        Args:
            params: System parameters (defaults when omitted)
            load_level: Label used in logs ("low", "medium", "high", "saturated")

        Raises:
            InvalidRoadError: If the road layout in ``params`` is unusable
        """
        self.params = params if params is not None else ZipperMergeParameters()
        self.load_level = load_level

        if self.params.seed is not None:
            np.random.seed(self.params.seed)

        self.running = False
        self._build_state()

    def _build_state(self):
        self.road = Road.from_parameters(self.params)
        self.time = 0.0
        self._spawns_fired = 0
        self._ticks_fired = 0
        self._samples_taken = 0
        self._heartbeats = 0

        # Sampled every history_interval
        self.history: Dict[str, List[float]] = {
            't': [],
            'vehicles': [],
            'throughput': [],
            'fairness': [],
            'mean_speed': [],
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        return self.running

    def start(self):
        if self.running:
            return
        self.running = True

    def stop(self):
        if not self.running:
            return
        self.running = False

    def reset(self):
        """Discard the road and rebuild it from the same configuration."""
        was_running = self.running
        self.stop()
        self._build_state()
        if was_running:
            self.start()

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------
    @property
    def next_spawn_time(self) -> float:
        return (self._spawns_fired + 1) * self.params.spawn_interval

    @property
    def next_tick_time(self) -> float:
        return (self._ticks_fired + 1) * self.params.tick_interval

    @property
    def merge_log(self) -> List[Dict]:
        return self.road.merge_log

    def generate_random_vehicle(self) -> Optional[Vehicle]:
        """Spawn one vehicle with bounded-normal traits (None if no entry is free)."""
        p = self.params
        merge_tendency = random_bounded_normal(p.merge_tendency, p.merge_tendency_variance)
        cooperation = random_bounded_normal(p.cooperation, p.cooperation_variance)
        aggressiveness = random_bounded_normal(p.aggressiveness, p.aggressiveness_variance)
        self.road.time = self.time
        return self.road.spawn_vehicle(merge_tendency, cooperation, aggressiveness)

    def simulation_update(self) -> List[Vehicle]:
        """Run one tick at the current simulated time."""
        return self.road.drive_vehicles(self.time)

    def step(self) -> float:
        """
        Advance the clock to the next trigger and process it.

        Returns:
            The simulated time after the step
        """
        spawn_at = self.next_spawn_time
        tick_at = self.next_tick_time

        if spawn_at <= tick_at + _TIME_EPS:
            self.time = spawn_at
            self._spawns_fired += 1
            self.generate_random_vehicle()
        else:
            self.time = tick_at
            self._ticks_fired += 1
            self.simulation_update()

        self._sample_history()
        return self.time

    def _sample_history(self):
        interval = self.params.history_interval
        if interval <= 0:
            return
        while self._samples_taken * interval <= self.time + _TIME_EPS:
            self._samples_taken += 1
            speeds = [v.speed for v in self.road.vehicles.values()]
            self.history['t'].append(self.time)
            self.history['vehicles'].append(len(speeds))
            self.history['throughput'].append(self.road.cars_per_second())
            self.history['fairness'].append(self.road.fairness())
            self.history['mean_speed'].append(float(np.mean(speeds)) if speeds else 0.0)

    def _heartbeat(self):
        interval = self.params.heartbeat_interval
        if interval <= 0:
            return
        if self.time + _TIME_EPS < (self._heartbeats + 1) * interval:
            return
        self._heartbeats = int((self.time + _TIME_EPS) // interval)
        sys.stdout.flush()

        speeds = [v.speed for v in self.road.vehicles.values()]
        if speeds:
            avg_speed = sum(speeds) / len(speeds)
            min_speed = min(speeds)
        else:
            avg_speed = min_speed = 0.0
        print(f"[HEARTBEAT] t={self.time:.1f}s | Vehicles: {len(speeds)} | "
              f"Exited: {self.road.metrics.total_exits} | "
              f"Avg v={avg_speed:.1f}ft/s | Min v={min_speed:.1f}ft/s | "
              f"Throughput={self.road.cars_per_second():.2f}veh/s | "
              f"Fairness={self.road.fairness():.3f}", flush=True)
        # Keep long runs lean
        gc.collect()

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def run(self, t_max: Optional[float] = None):
        """
        Run the simulation until ``t_max`` simulated seconds or ``stop()``.

        Args:
            t_max: Maximum simulation time [s] (600 s, or debug_tmax in debug mode)
        """
        if t_max is None:
            t_max = self.params.debug_tmax if self.params.debug_mode else 600.0

        p = self.params
        print(f"\n{'='*80}")
        print(f"[Simulation Start - {SCRIPT_VERSION} - Load Level: {self.load_level.upper()}]")
        if p.debug_mode:
            print(f"  DEBUG MODE: t_max={t_max}s (normal: 600s)")
        print(f"  Road: {p.lanes} lanes ({p.blocked_lanes} blocked from cell {p.block_start}), "
              f"{p.road_length} cells x {p.cell_length:.1f}ft")
        print(f"  Spawn interval: {p.spawn_interval:.2f}s ({p.spawn_rate:.2f} veh/s)")
        print(f"  Tick interval: {p.tick_interval*1000:.0f}ms")
        print(f"  Traits (mean/sd): merge_tendency={p.merge_tendency}/{p.merge_tendency_variance}, "
              f"cooperation={p.cooperation}/{p.cooperation_variance}, "
              f"aggressiveness={p.aggressiveness}/{p.aggressiveness_variance}")
        print(f"  Merge quota enforced: {p.enforce_merge_quota}")
        print(f"{'='*80}\n")

        self.start()
        while self.running:
            next_time = min(self.next_spawn_time, self.next_tick_time)
            if next_time > t_max + _TIME_EPS:
                break
            self.step()
            self._heartbeat()
        self.stop()

        self._print_final_statistics()

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------
    def _print_final_statistics(self):
        """Print final statistics"""
        stats = self.get_statistics()
        print(f"\n{'='*80}")
        print(f"[Final Statistics - {SCRIPT_VERSION} - t={self.time:.1f}s]")
        print(f"{'='*80}\n")
        sys.stdout.flush()

        spawned = stats['spawned']
        exited = stats['exited']
        exit_pct = (exited / spawned * 100) if spawned > 0 else 0.0
        print(f"  Vehicles spawned:        {spawned}")
        print(f"  Spawns rejected:         {stats['rejected_spawns']}")
        print(f"  Vehicles exited:         {exited} ({exit_pct:.1f}% of spawned)")
        print(f"  Vehicles on road:        {stats['on_road']}")
        print(f"  Merges:                  {stats['merges']}")
        print("  ───────────────────────────────────────────────")
        print(f"  Throughput (last {self.params.retention_window:.0f}s): {stats['throughput']:.2f} veh/s")
        print(f"  Fairness (last {self.params.retention_window:.0f}s):   {stats['fairness']:.3f}")
        print(f"  Mean travel time:        {stats['mean_travel_time']:.2f}s")
        for lane, mean_time in stats['travel_time_by_lane'].items():
            print(f"    from lane {lane}:             {mean_time:.2f}s")
        print(f"  Travel time (last {self.params.retention_window:.0f}s): {stats['recent_mean_travel_time']:.2f}s")

        if self.merge_log:
            positions = [rec['position'] for rec in self.merge_log]
            print("\n[Merge Positions]")
            print(f"  Mean cell: {np.mean(positions):.1f} | "
                  f"Min: {min(positions)} | Max: {max(positions)} | "
                  f"Blockage starts at: {self.params.block_start}")
        else:
            print("\n  No merges recorded.")

        problems = self.road.check_invariants()
        if problems:
            print(f"\n[ERROR] Grid inconsistent: {len(problems)} problem(s)")
            for problem in problems[:5]:
                print(f"  - {problem}")

        print("\n" + "=" * 80)
        sys.stdout.flush()

    def get_statistics(self) -> dict:
        """Return a dictionary of key simulation statistics."""
        metrics = self.road.metrics
        return {
            'sim_time': self.time,
            'load_level': self.load_level,
            'spawned': self.road.spawned_count,
            'rejected_spawns': self.road.rejected_spawns,
            'exited': metrics.total_exits,
            'on_road': len(self.road.vehicles),
            'merges': len(self.road.merge_log),
            'throughput': self.road.cars_per_second(),
            'fairness': self.road.fairness(),
            'mean_travel_time': metrics.lifetime_mean_travel_time(),
            'travel_time_by_lane': {str(lane): t for lane, t
                                    in metrics.lifetime_travel_time_by_lane().items()},
            'recent_mean_travel_time': metrics.mean_travel_time(),
            'recent_travel_time_by_lane': {str(lane): t for lane, t
                                           in metrics.travel_time_by_lane().items()},
        }
