# -*- coding: utf-8 -*-
"""
zipper_merge/decision.py

Merge negotiation and speed control, evaluated once per vehicle per tick:
- merge_urgency: gap multiplier in [0.3, 1.0] from distance to the blockage
- left_open_spaces: ahead / beside / behind survey of the lane to the left
- check_under_left_quota: cooperative quota of the vehicle being cut in front of
- assess_merge / can_merge: gap acceptance
- should_let_car_in: cooperative invitation of an indicating neighbour
- effect_speed: following distance, speed matching and rubbernecking
- effect_merge_state: Default <-> Merge transition

Functions take a Vehicle and the Road it is on. Scans that fall off the
grid resolve to the permissive defaults (distance "far", urgency 1.0,
acceptance False, quota check "allow").
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from .behavior import BEHAVIOR, DrivingState
from .grid import ScanResult, SpaceType

if TYPE_CHECKING:
    from .road import Road
    from .vehicle import Vehicle

# Debug output flag
ENABLE_DEBUG_OUTPUT = False


@dataclass(frozen=True)
class LeftOpenSpaces:
    """Open cells in the lane to the left of a vehicle."""
    ahead: int = 0
    beside: int = 0
    behind: int = 0

    @property
    def total(self) -> int:
        return self.ahead + self.beside + self.behind


@dataclass(frozen=True)
class MergeAssessment:
    """Everything can_merge looked at for one vehicle, kept for logging and tests."""
    urgency: float
    desired_space: int
    spaces: LeftOpenSpaces
    left_speed: Optional[float]
    quota_ok: bool
    accepted: bool


# ============================================================================
# Distances
# ============================================================================

def distance_to_blockage(vehicle: 'Vehicle', road: 'Road') -> ScanResult:
    return road.grid.scan(vehicle.lane, vehicle.position, SpaceType.BLOCKAGE)


def urgency_from_distance(cells: int) -> float:
    """
    Gap multiplier for a given distance to the blockage.

    >= 20 cells: 1.0, 10-19: 0.7 -> 1.0, 5-9: 0.5 -> 0.7,
    below 5: falls towards the 0.3 floor.
    """
    if cells >= BEHAVIOR.URGENCY_RELAXED_DISTANCE:
        return BEHAVIOR.URGENCY_CEILING
    if cells >= 10:
        return 0.7 + (cells - 10) * 0.03
    if cells >= 5:
        return 0.5 + (cells - 5) * 0.04
    return max(BEHAVIOR.URGENCY_FLOOR, 0.3 + (cells - 2) * 0.067)


def merge_urgency(vehicle: 'Vehicle', road: 'Road') -> float:
    """Urgency factor (1.0 relaxed, 0.3 desperate) along the vehicle's own lane."""
    result = distance_to_blockage(vehicle, road)
    if not result.is_found or result.cells >= BEHAVIOR.FAR_DISTANCE:
        return BEHAVIOR.URGENCY_CEILING
    return urgency_from_distance(result.cells)


# ============================================================================
# Left lane survey
# ============================================================================

def left_average_speed(vehicle: 'Vehicle', road: 'Road') -> Optional[float]:
    """
    Mean speed of vehicles in the left lane within 5 cells of the vehicle.

    Returns:
        Average speed [ft/s], or None with no left lane / no vehicles there
    """
    if vehicle.lane <= 0:
        return None

    left_lane = vehicle.lane - 1
    window = BEHAVIOR.LEFT_SPEED_WINDOW
    check_start = max(0, vehicle.position - window)
    check_end = min(road.grid.length, vehicle.position + window)

    speeds = []
    for position in range(check_start, check_end):
        other = road.vehicle_at(left_lane, position)
        if other is not None:
            speeds.append(other.speed)

    if not speeds:
        return None
    return sum(speeds) / len(speeds)


def left_open_spaces(road: 'Road', lane: int, position: int) -> LeftOpenSpaces:
    """
    Survey the lane to the left of (lane, position).

    A non-empty beside cell blocks the merge outright and yields all zeros,
    as does having no lane to the left or sitting on the last cell.
    """
    grid = road.grid
    if lane <= 0 or lane >= grid.num_lanes:
        return LeftOpenSpaces()
    if position < 0 or position >= grid.length - 1:
        return LeftOpenSpaces()

    left_lane = lane - 1
    if not grid.is_empty(left_lane, position):
        return LeftOpenSpaces()

    ahead = grid.scan(left_lane, position, SpaceType.ALL).distance_or(BEHAVIOR.FAR_DISTANCE)

    behind = 0
    check = position - 1
    while check >= 0 and grid.is_empty(left_lane, check):
        behind += 1
        check -= 1

    return LeftOpenSpaces(ahead=ahead or 0, beside=1, behind=behind)


def check_under_left_quota(vehicle: 'Vehicle', road: 'Road', spaces: LeftOpenSpaces) -> bool:
    """
    Whether the vehicle just behind the open window in the left lane is
    still under its let-in quota.

    Returns:
        False only when such a vehicle exists and its quota is met
    """
    if spaces.beside <= 0 or vehicle.lane <= 0:
        return True

    check_position = vehicle.position - 1 - spaces.behind
    if check_position < 0:
        return True

    target = road.vehicle_at(vehicle.lane - 1, check_position)
    if target is None:
        return True
    return target.cars_let_in < target.car_quota(road)


# ============================================================================
# Gap acceptance
# ============================================================================

def assess_merge(vehicle: 'Vehicle', road: 'Road') -> MergeAssessment:
    """Evaluate the gap to the left against the vehicle's desired merge space."""
    urgency = merge_urgency(vehicle, road)
    desired_space = vehicle.desired_merge_space(road, urgency)

    # Stop-and-go traffic needs less buffer
    left_speed = left_average_speed(vehicle, road)
    if (left_speed is not None and left_speed <= BEHAVIOR.SLOW_TRAFFIC_SPEED
            and desired_space > BEHAVIOR.SLOW_TRAFFIC_MERGE_SPACE):
        desired_space = BEHAVIOR.SLOW_TRAFFIC_MERGE_SPACE

    spaces = left_open_spaces(road, vehicle.lane, vehicle.position)
    quota_ok = check_under_left_quota(vehicle, road, spaces)

    accepted = spaces.total >= desired_space
    if road.params.enforce_merge_quota and not quota_ok:
        left_is_slow = left_speed is None or left_speed <= vehicle.max_speed / 2
        if left_is_slow:
            accepted = False

    if ENABLE_DEBUG_OUTPUT and not quota_ok:
        print(f"[QUOTA] V{vehicle.id} would cut in front of a vehicle at quota "
              f"(enforced={road.params.enforce_merge_quota})")

    return MergeAssessment(
        urgency=urgency,
        desired_space=desired_space,
        spaces=spaces,
        left_speed=left_speed,
        quota_ok=quota_ok,
        accepted=accepted,
    )


def can_merge(vehicle: 'Vehicle', road: 'Road') -> bool:
    return assess_merge(vehicle, road).accepted


# ============================================================================
# Cooperation
# ============================================================================

def should_let_car_in(vehicle: 'Vehicle', road: 'Road') -> bool:
    """
    True when an indicating vehicle in the lane to the right sits in the
    diagonal cell just ahead and this vehicle's quota is not yet met.
    Vehicles further up the right lane are never invited.
    """
    if vehicle.cars_let_in >= vehicle.car_quota(road):
        return False

    grid = road.grid
    if vehicle.lane >= grid.num_lanes - 1:
        return False
    if vehicle.position + 1 >= grid.length - 1:
        return False

    # Diagonal cell plus the open run beyond it
    right_lane = vehicle.lane + 1
    start = vehicle.position + 1
    distance_ahead = grid.scan(right_lane, start, SpaceType.ALL).distance_or(grid.length)
    last = min(grid.length - 1, start + distance_ahead)

    for position in range(start, last + 1):
        other = road.vehicle_at(right_lane, position)
        if other is not None and other.is_indicating:
            return True
    return False


def alert_rear_driver(vehicle: 'Vehicle', road: 'Road', new_lane: int):
    """Credit the first vehicle behind the merge point in ``new_lane``."""
    if new_lane < 0 or new_lane >= road.grid.num_lanes:
        return
    for position in range(vehicle.position - 1, -1, -1):
        other = road.vehicle_at(new_lane, position)
        if other is not None:
            other.alert_merge()
            break


# ============================================================================
# Speed and state
# ============================================================================

def is_in_rubberneck_zone(vehicle: 'Vehicle', road: 'Road') -> bool:
    """Open-lane vehicles slow down just past where the blockage starts."""
    grid = road.grid
    if grid.blocked_lanes <= 0 or vehicle.lane >= grid.first_blocked_lane:
        return False
    zone_start = grid.block_start
    return zone_start <= vehicle.position < zone_start + road.params.rubberneck_zone_length


def effect_speed(vehicle: 'Vehicle', road: 'Road'):
    """
    Adjust speed from the gap ahead, blended with left-lane speed while
    merging and reduced inside the rubbernecking zone.
    """
    desired_distance = vehicle.desired_distance(road)
    actual_cells = vehicle.actual_distance(road).distance_or(BEHAVIOR.FAR_DISTANCE)
    if actual_cells is None:
        # Last cell, nothing to measure against
        return

    difference = actual_cells * road.cell_length - desired_distance

    if vehicle.state is DrivingState.MERGE:
        left_speed = left_average_speed(vehicle, road)
        if left_speed is not None:
            speed_match = (left_speed - vehicle.speed) * BEHAVIOR.SPEED_MATCH_BLEND
            # Higher urgency = more speed matching
            match_weight = 1.0 - merge_urgency(vehicle, road)
            difference = (difference * (1.0 - match_weight)
                          + speed_match * match_weight * BEHAVIOR.SPEED_MATCH_GAIN)

    if is_in_rubberneck_zone(vehicle, road):
        zone_length = road.params.rubberneck_zone_length
        factor = road.params.rubberneck_speed_factor
        depth = (vehicle.position - road.grid.block_start) / zone_length
        intensity = 1.0 - depth
        target_speed = vehicle.speed * (factor + (1.0 - factor) * depth)
        difference += (target_speed - vehicle.speed) * intensity

    vehicle.adjust_speed_by(difference)


def effect_merge_state(vehicle: 'Vehicle', road: 'Road'):
    """Enter Merge within the desired merging distance of a blockage, else Default."""
    result = distance_to_blockage(vehicle, road)
    if result.is_found and result.cells - vehicle.desired_merging_distance() <= 0:
        vehicle.state = DrivingState.MERGE
    else:
        vehicle.state = DrivingState.DEFAULT
