# -*- coding: utf-8 -*-
"""
zipper_merge/road.py

Road and simulation stepper:
- Road: occupancy grid + vehicle table + exit records, owns one tick
- create_road / spawn_vehicle / advance_tick / throughput / fairness:
  the in-process API used by orchestration and rendering

One tick (drive_vehicles):
1. Snapshot vehicles sorted by (lane, position) ascending
2. Each vehicle drives (speed, merge state, immediate left merge)
3. Desired cell = floor(distance / cell_length) - 1, clamped to the open
   stretch ahead; a rejected grid commit means the vehicle left the road
4. Exited vehicles are retired from grid and table, records appended
"""

import math
from typing import Dict, List, Optional

import numpy as np

from .behavior import BEHAVIOR, CAR_COLORS
from .decision import alert_rear_driver
from .grid import InvalidRoadError, RoadGrid, SpaceType
from .metrics import MetricsTracker
from .parameters import ZipperMergeParameters
from .vehicle import Vehicle, VehicleSnapshot


class Road:
    """
    A multi-lane road with a partial closure.

    The grid stores vehicle ids; ``self.vehicles`` maps ids to Vehicle
    objects. A vehicle's (lane, position) always names the one cell
    holding its id.
    """

    def __init__(self,
                 lanes: int,
                 blocked_lanes: int,
                 cell_length: float = 15.0,
                 params: Optional[ZipperMergeParameters] = None):
        """
        Args:
            lanes: Number of lanes (>= 2)
            blocked_lanes: Lanes closed from the high-index side (< lanes)
            cell_length: Cell size [ft]
            params: Remaining settings (road length, blockage start,
                retention window, speed limit, rubbernecking, quota policy)

        Raises:
            InvalidRoadError: For an unusable layout
        """
        if cell_length <= 0:
            raise InvalidRoadError(f"cell_length must be positive (got {cell_length})")
        if params is None:
            params = ZipperMergeParameters(lanes=lanes, blocked_lanes=blocked_lanes,
                                           cell_length=cell_length)
        self.params = params
        self.cell_length = float(cell_length)
        self.grid = RoadGrid(lanes, blocked_lanes,
                             length=params.road_length,
                             block_start=params.block_start)

        self.vehicles: Dict[int, Vehicle] = {}
        self.metrics = MetricsTracker(params.retention_window)
        self.time = 0.0
        self._next_vehicle_id = 0

        # Merge history: {t, vid, lane_from, lane_to, position}
        self.merge_log: List[Dict] = []
        self.spawned_count = 0
        self.rejected_spawns = 0

    @classmethod
    def from_parameters(cls, params: ZipperMergeParameters) -> 'Road':
        return cls(params.lanes, params.blocked_lanes, params.cell_length, params=params)

    # ------------------------------------------------------------------
    # Layout accessors
    # ------------------------------------------------------------------
    @property
    def blocked_lanes(self) -> int:
        return self.grid.blocked_lanes

    @property
    def num_lanes(self) -> int:
        return self.grid.num_lanes

    def vehicle_at(self, lane: int, position: int) -> Optional[Vehicle]:
        vid = self.grid.occupant(lane, position)
        if vid is None:
            return None
        return self.vehicles.get(vid)

    # ------------------------------------------------------------------
    # Vehicle insertion
    # ------------------------------------------------------------------
    def _new_vehicle(self, merge_tendency: float, cooperation: float, aggressiveness: float,
                     lane: int, color: Optional[str]) -> Vehicle:
        vehicle = Vehicle(
            id=self._next_vehicle_id,
            merge_tendency=merge_tendency,
            cooperation=cooperation,
            aggressiveness=aggressiveness,
            lane=lane,
            max_speed=self.params.max_speed,
            spawn_time=self.time,
            start_lane=lane,
            color=color if color is not None else str(np.random.choice(CAR_COLORS)),
        )
        self._next_vehicle_id += 1
        return vehicle

    def spawn_vehicle(self,
                      merge_tendency: float,
                      cooperation: float,
                      aggressiveness: float,
                      color: Optional[str] = None) -> Optional[Vehicle]:
        """
        Insert a vehicle at cell 0 of a random lane whose entry is free.

        Returns:
            The inserted vehicle, or None if every entry cell is occupied
        """
        lane = self.grid.random_open_lane()
        if lane is None:
            self.rejected_spawns += 1
            if self.params.enable_spawn_debug:
                print(f"[SPAWN] t={self.time:.2f}s rejected: no open entry cell")
            return None

        vehicle = self._new_vehicle(merge_tendency, cooperation, aggressiveness, lane, color)
        self.grid.place(vehicle.id, lane, 0)
        vehicle.set_lane_pos(lane, 0)
        self.vehicles[vehicle.id] = vehicle
        self.spawned_count += 1

        if self.params.enable_spawn_debug:
            print(f"[SPAWN] t={self.time:.2f}s V{vehicle.id} lane={lane} "
                  f"traits=({merge_tendency:.2f}, {cooperation:.2f}, {aggressiveness:.2f})")
        return vehicle

    def insert_vehicle(self,
                       merge_tendency: float,
                       cooperation: float,
                       aggressiveness: float,
                       lane: int,
                       position: int,
                       speed: Optional[float] = None) -> Optional[Vehicle]:
        """
        Place a vehicle at an explicit cell (scenario set-up).

        The travelled distance is set so the stepper's desired cell matches
        ``position``. Returns None if the cell is not empty.
        """
        if not self.grid.is_empty(lane, position):
            return None
        vehicle = self._new_vehicle(merge_tendency, cooperation, aggressiveness, lane, None)
        if speed is not None:
            vehicle.speed = min(self.params.max_speed, max(0.0, speed))
        vehicle.distance = (position + 1) * self.cell_length
        self.grid.place(vehicle.id, lane, position)
        vehicle.set_lane_pos(lane, position)
        self.vehicles[vehicle.id] = vehicle
        self.spawned_count += 1
        return vehicle

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------
    def set_vehicle_position(self, vehicle: Vehicle, lane: int, position: int) -> bool:
        """
        Commit a move on the grid.

        Returns:
            False when the target cell is off the road or occupied; the
            vehicle keeps its cell in that case.
        """
        if not self.grid.in_bounds(lane, position):
            return False

        if lane != vehicle.lane:
            alert_rear_driver(vehicle, self, lane)

        if not self.grid.move(vehicle.id, (vehicle.lane, vehicle.position), (lane, position)):
            return False
        vehicle.set_lane_pos(lane, position)
        return True

    def merge(self, vehicle: Vehicle) -> bool:
        """Move a vehicle one lane to the left if the beside cell is free."""
        target_lane = vehicle.lane - 1
        if target_lane < 0:
            return False
        if not self.grid.is_empty(target_lane, vehicle.position):
            return False

        lane_from = vehicle.lane
        if not self.set_vehicle_position(vehicle, target_lane, vehicle.position):
            return False

        vehicle.merge_count += 1
        self.merge_log.append({
            't': self.time,
            'vid': vehicle.id,
            'lane_from': lane_from,
            'lane_to': target_lane,
            'position': vehicle.position,
        })
        if self.params.enable_merge_debug:
            print(f"[MERGE] t={self.time:.2f}s V{vehicle.id} lane {lane_from} -> {target_lane} "
                  f"at cell {vehicle.position} (v={vehicle.speed:.1f}ft/s)")
        return True

    # ------------------------------------------------------------------
    # Stepper
    # ------------------------------------------------------------------
    def drive_vehicles(self, now: Optional[float] = None) -> List[Vehicle]:
        """
        Run one tick at simulated time ``now`` (defaults to ``self.time``).

        Returns:
            Vehicles that left the road during this tick
        """
        if now is not None:
            self.time = now
        now = self.time

        ordered = sorted(self.vehicles.values(), key=lambda v: (v.lane, v.position))
        to_remove: List[Vehicle] = []
        for vehicle in ordered:
            if not self._drive_vehicle(vehicle, now):
                to_remove.append(vehicle)

        for vehicle in to_remove:
            self._retire(vehicle, now)

        self.metrics.purge(now)
        return to_remove

    def _drive_vehicle(self, vehicle: Vehicle, now: float) -> bool:
        """Drive one vehicle. Returns False when it has to leave the road."""
        vehicle.drive(self, now)

        desired = int(math.floor(vehicle.distance / self.cell_length)) - 1
        if desired <= vehicle.position:
            return True

        # Never move past the first obstacle ahead
        available = self.grid.scan(vehicle.lane, vehicle.position,
                                   SpaceType.ALL).distance_or(BEHAVIOR.FAR_DISTANCE)
        if available is None:
            available = self.grid.length
        safe = min(desired, vehicle.position + available)
        if safe == vehicle.position:
            return True

        return self.set_vehicle_position(vehicle, vehicle.lane, safe)

    def _retire(self, vehicle: Vehicle, now: float):
        self.grid.vacate(vehicle.lane, vehicle.position)
        self.vehicles.pop(vehicle.id, None)
        record = self.metrics.record_exit(vehicle.start_lane, vehicle.spawn_time, now)
        if self.params.enable_exit_debug:
            print(f"[EXIT] t={now:.2f}s V{vehicle.id} from lane {vehicle.start_lane}, "
                  f"travel={record.travel_time:.2f}s, merges={vehicle.merge_count}")

    # ------------------------------------------------------------------
    # Metrics and read accessors
    # ------------------------------------------------------------------
    def cars_per_second(self) -> float:
        return self.metrics.throughput(self.time)

    def fairness(self) -> float:
        return self.metrics.fairness(self.time)

    def snapshot(self) -> List[VehicleSnapshot]:
        return [v.snapshot() for v in self.vehicles.values()]

    def occupancy(self) -> np.ndarray:
        return self.grid.occupancy()

    def check_invariants(self) -> List[str]:
        """Grid / vehicle table consistency problems (empty when consistent)."""
        problems = []
        for vid, vehicle in self.vehicles.items():
            cells = self.grid.locate(vid)
            if cells != [(vehicle.lane, vehicle.position)]:
                problems.append(f"V{vid} at ({vehicle.lane}, {vehicle.position}) but grid has {cells}")
        for vid in self.grid.vehicle_ids():
            if vid not in self.vehicles:
                problems.append(f"grid holds unknown vehicle id {vid}")
        return problems

    def __repr__(self) -> str:
        return (f"Road(lanes={self.num_lanes}, blocked={self.blocked_lanes}, "
                f"vehicles={len(self.vehicles)}, t={self.time:.1f}s)")


# ============================================================================
# Module-level API
# ============================================================================

def create_road(lanes: int,
                blocked_lanes: int,
                cell_length: float = 15.0,
                params: Optional[ZipperMergeParameters] = None) -> Optional[Road]:
    """Build a road, or return None (with a warning) for an invalid layout."""
    try:
        return Road(lanes, blocked_lanes, cell_length, params=params)
    except InvalidRoadError as e:
        print(f"[WARNING] Invalid road layout: {e}")
        return None


def spawn_vehicle(road: Road,
                  merge_tendency: float,
                  cooperation: float,
                  aggressiveness: float) -> Optional[Vehicle]:
    return road.spawn_vehicle(merge_tendency, cooperation, aggressiveness)


def advance_tick(road: Road, dt: Optional[float] = None) -> List[Vehicle]:
    """Advance the road clock by ``dt`` (tick interval by default) and run one tick."""
    if dt is None:
        dt = road.params.tick_interval
    return road.drive_vehicles(road.time + dt)


def throughput(road: Road) -> float:
    return road.cars_per_second()


def fairness(road: Road) -> float:
    return road.fairness()
