# -*- coding: utf-8 -*-
"""
zipper_merge/parameters.py

ZipperMergeParameters: configuration dataclass for the zipper merge simulation

Road layout:
- lanes: lane 0 is the open (leftmost) lane
- blocked_lanes: counted from the highest lane index
- road_length cells of cell_length feet each; blockage from block_start to the end

Parameter categories:
- Road layout: lane counts, cell size, blockage start
- Driver traits: mean / standard deviation of the three traits
- Timing: spawn and tick intervals (simulated seconds)
- Records: retention window for throughput / fairness
- Behaviour: speed limit, rubbernecking, merge quota policy
- Debug: log flags and shortened runs
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, List


# Spawn interval [s] per load level
LOAD_LEVELS: Dict[str, float] = {
    "low": 1.0,
    "medium": 0.5,
    "high": 0.3,
    "saturated": 0.1,
}


@dataclass
class ZipperMergeParameters:

    # --- Road layout ---
    lanes: int = 2
    blocked_lanes: int = 1
    cell_length: float = 15.0   # [ft] per cell
    road_length: int = 50       # cells per lane
    block_start: int = 40       # first blocked cell (cells 40-49 by default)

    # --- Driver traits (mean, standard deviation), bounded to [0, 1] ---
    merge_tendency: float = 0.9
    merge_tendency_variance: float = 0.1
    cooperation: float = 1.0
    cooperation_variance: float = 0.1
    aggressiveness: float = 0.5
    aggressiveness_variance: float = 0.1

    # --- Timing (simulated seconds) ---
    spawn_interval: float = 0.5
    tick_interval: float = 0.2

    # --- Records ---
    retention_window: float = 10.0  # [s] trail / completion lifespan

    # --- Behaviour ---
    max_speed: float = 66.0                 # [ft/s]
    rubberneck_speed_factor: float = 0.85   # 15% slower at the zone start
    rubberneck_zone_length: int = 8         # cells past block_start
    # Withhold a merge in front of a vehicle that already let in its quota.
    # Off by default: the check is computed and logged but does not gate.
    enforce_merge_quota: bool = False

    # --- Run control ---
    seed: Any = None
    history_interval: float = 1.0   # [s] metric sampling period
    heartbeat_interval: float = 10.0

    # --- Debug ---
    enable_merge_debug: bool = False
    enable_spawn_debug: bool = False
    enable_exit_debug: bool = False
    debug_mode: bool = False
    debug_tmax: float = 30.0

    # Computed in __post_init__
    spawn_rate: float = 0.0         # [veh/s]
    num_open_lanes: int = 0

    def __post_init__(self):
        self.update_derived()
        if self.debug_mode:
            print("DEBUG MODE ACTIVATED")
            print(f"  Simulation time: -> {self.debug_tmax}s")
            self.enable_merge_debug = True
            self.enable_exit_debug = True
            print("[DEBUG] Auto-enabled: enable_merge_debug=True, enable_exit_debug=True")

    def update_derived(self):
        self.spawn_rate = 1.0 / self.spawn_interval if self.spawn_interval > 0 else 0.0
        self.num_open_lanes = max(0, self.lanes - self.blocked_lanes)

    @property
    def road_length_feet(self) -> float:
        return float(self.road_length * self.cell_length)

    def set_load_level(self, level: str):
        level = level.lower()
        if level not in LOAD_LEVELS:
            raise ValueError(f"Unknown load level: {level}")
        self.spawn_interval = LOAD_LEVELS[level]
        self.update_derived()
        print(f"[ZipperMergeParameters] Load level set to: {level.upper()}")
        print(f"  Spawn interval: {self.spawn_interval:.2f}s ({self.spawn_rate:.2f} veh/s)\n")

    def apply_overrides(self, overrides: Dict[str, Any]) -> List[str]:
        """
        Apply ``{name: value}`` overrides in place.

        Returns:
            Names that were not recognised (left untouched)
        """
        known = {f.name for f in fields(self)}
        unknown = []
        for key, value in overrides.items():
            if key not in known or key in ("spawn_rate", "num_open_lanes"):
                print(f"  - [WARNING] Unknown parameter: {key}")
                unknown.append(key)
                continue
            old_val = getattr(self, key)
            setattr(self, key, value)
            print(f"  - {key}: {old_val} -> {value}")
        self.update_derived()
        return unknown

    def validate(self) -> List[str]:
        """Return a list of configuration problems (empty when usable)."""
        problems = []
        if self.lanes < 2:
            problems.append(f"lanes must be >= 2 (got {self.lanes})")
        if self.blocked_lanes < 0 or self.blocked_lanes >= self.lanes:
            problems.append(f"blocked_lanes must be in [0, lanes - 1] (got {self.blocked_lanes})")
        if self.cell_length <= 0:
            problems.append(f"cell_length must be positive (got {self.cell_length})")
        if self.road_length < 2:
            problems.append(f"road_length must be >= 2 (got {self.road_length})")
        if not 0 <= self.block_start <= self.road_length:
            problems.append(f"block_start must be within the road (got {self.block_start})")
        if self.spawn_interval <= 0:
            problems.append(f"spawn_interval must be positive (got {self.spawn_interval})")
        if self.tick_interval <= 0:
            problems.append(f"tick_interval must be positive (got {self.tick_interval})")
        if self.retention_window <= 0:
            problems.append(f"retention_window must be positive (got {self.retention_window})")
        for name in ("merge_tendency", "cooperation", "aggressiveness"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                problems.append(f"{name} mean must be in [0, 1] (got {value})")
        return problems
