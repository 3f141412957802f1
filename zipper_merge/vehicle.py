# -*- coding: utf-8 -*-
"""
zipper_merge/vehicle.py

Vehicle agent:
- Vehicle: fixed personality traits plus mutable lane / speed / merge state
- VehicleSnapshot: read-only view handed to renderers and metrics consumers

Traits (merge tendency, cooperation, aggressiveness) are normalized to
[0, 1] and mapped to behaviour through behavior.value_from_normalized.
"""

import math
from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from .behavior import (
    BEHAVIOR,
    CAR_COLORS,
    DrivingState,
    following_seconds,
    merge_distance_cells,
    merge_gap_seconds,
    min_merge_space_cells,
)
from .grid import ScanResult, SpaceType
from . import decision

if TYPE_CHECKING:
    from .road import Road


@dataclass(frozen=True)
class VehicleSnapshot:
    """Read-only vehicle state for rendering between ticks."""
    id: int
    lane: int
    position: int
    speed: float
    state: DrivingState
    indicator: bool
    color: str
    distance: float


@dataclass(eq=False)
class Vehicle:
    """
    A driver with a personality.

    Attributes:
        merge_tendency: How late the driver starts merging (0 early, 1 late)
        cooperation: Share of the perfect zipper quota the driver lets in
        aggressiveness: Drives following distance and accepted merge gap
        lane / position: Grid coordinates, kept in lockstep with the grid cell
        speed: [ft/s], bounded to [0, max_speed]
        distance: Cumulative distance travelled [ft]
        cars_let_in: Vehicles that merged directly in front of this one
    """

    # Required fields (no defaults)
    id: int
    merge_tendency: float
    cooperation: float
    aggressiveness: float

    # Grid coordinates
    lane: int = 0
    position: int = 0

    # Kinematics
    max_speed: float = BEHAVIOR.MAX_SPEED
    speed: float = -1.0     # -1 -> starts at max_speed
    distance: float = 0.0

    # Behaviour state
    state: DrivingState = DrivingState.DEFAULT
    indicator: bool = False
    cars_let_in: int = 0
    merge_count: int = 0

    # Timestamps (simulated seconds)
    last_update: Optional[float] = None
    spawn_time: float = 0.0
    start_lane: int = 0

    color: str = CAR_COLORS[0]

    # Cached at construction
    following_distance: float = field(default=0.0, init=False)

    def __post_init__(self):
        if self.speed < 0:
            self.speed = self.max_speed
        # seconds of headway
        self.following_distance = following_seconds(self.aggressiveness)

    # ------------------------------------------------------------------
    # Driving
    # ------------------------------------------------------------------
    def drive(self, road: 'Road', now: float):
        """
        Advance this vehicle to ``now``.

        The first call only stamps the update time. Later calls accumulate
        distance at the current speed, update speed and merge state, and
        merge left immediately when the gap is acceptable.
        """
        if self.last_update is None:
            self.last_update = now
            return

        elapsed = max(0.0, now - self.last_update)
        self.distance += self.speed * elapsed
        decision.effect_speed(self, road)
        decision.effect_merge_state(self, road)
        self.last_update = now

        self.indicator = self.state is DrivingState.MERGE

        if self.state is DrivingState.MERGE and decision.can_merge(self, road):
            road.merge(self)

    def adjust_speed_by(self, amount: float):
        """Apply a speed delta, clamped to [0, max_speed]."""
        self.speed = min(self.max_speed, max(0.0, self.speed + amount))

    def set_lane_pos(self, lane: int, position: int):
        self.lane = lane
        self.position = position

    def alert_merge(self):
        """A vehicle merged directly in front of this one."""
        self.cars_let_in += 1

    @property
    def is_indicating(self) -> bool:
        return self.indicator

    # ------------------------------------------------------------------
    # Derived quantities
    # ------------------------------------------------------------------
    def desired_merge_gap(self) -> float:
        """Accepted merge gap [s]."""
        return merge_gap_seconds(self.aggressiveness)

    def desired_merge_space(self, road: Optional['Road'] = None, urgency: float = 1.0) -> int:
        """
        Cells needed in the target lane to merge.

        Args:
            road: Supplies the cell length (15 ft when omitted)
            urgency: Multiplier on the gap (1.0 relaxed, 0.3 desperate)

        Returns:
            max(minimum space, ceil(speed * gap * urgency / cell_length))
        """
        gap_seconds = self.desired_merge_gap() * urgency
        cell_length = road.cell_length if road is not None else BEHAVIOR.DEFAULT_CELL_LENGTH
        spaces_needed = math.ceil((self.speed * gap_seconds) / cell_length)
        # At very low speeds, use minimum space requirement
        min_spaces = min_merge_space_cells(self.aggressiveness)
        return int(math.ceil(max(min_spaces, spaces_needed)))

    def desired_merging_distance(self) -> float:
        """Distance to the blockage [cells] at which this driver starts merging."""
        return merge_distance_cells(self.merge_tendency)

    def desired_distance(self, road: 'Road') -> float:
        """Following distance [ft] the driver wants to keep at the current speed."""
        if decision.should_let_car_in(self, road):
            return self.desired_merge_space(road) * road.cell_length
        return self.speed * self.following_distance

    def car_quota(self, road: 'Road') -> int:
        """Vehicles this driver lets in for a perfect zipper (half-up rounding)."""
        perfect_quota = road.blocked_lanes - self.lane
        return int(math.floor(self.cooperation * perfect_quota + 0.5))

    def actual_distance(self, road: 'Road') -> ScanResult:
        """Cells to the nearest vehicle or blockage ahead."""
        return road.grid.scan(self.lane, self.position, SpaceType.ALL)

    def snapshot(self) -> VehicleSnapshot:
        return VehicleSnapshot(
            id=self.id,
            lane=self.lane,
            position=self.position,
            speed=self.speed,
            state=self.state,
            indicator=self.indicator,
            color=self.color,
            distance=self.distance,
        )

    def __repr__(self) -> str:
        return (f"Vehicle(id={self.id}, lane={self.lane}, pos={self.position}, "
                f"v={self.speed:.1f}ft/s, state={self.state.value})")
