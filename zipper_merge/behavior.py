# -*- coding: utf-8 -*-
"""
zipper_merge/behavior.py

Driver behaviour constants and the trait transform
==================================================

Purpose:
    Every trait-to-behaviour mapping in the engine goes through one
    piecewise-linear transform with three anchors (low at 0.0, mid at 0.5,
    high at 1.0). The anchors for each derived quantity live here so the
    mappings can be audited and tested apart from their call sites.

Units:
    - speed: feet per second
    - following distance / merge gap: seconds
    - merge distance / merge space: grid cells
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


# ============================================================================
# Behaviour Constants (Centralized Definition)
# ============================================================================

@dataclass(frozen=True)
class BehaviorConstants:
    """
    Immutable behaviour anchors shared by every vehicle.

    Each (LOW, MID, HIGH) triple is the output of the trait transform at
    trait values 0.0, 0.5 and 1.0 respectively.
    """

    # === Kinematics ===
    MAX_SPEED: float = 66.0             # [ft/s] (45 mph)

    # === Following distance (from aggressiveness) ===
    FOLLOWING_DISTANCE_LOW: float = 0.2   # [s]
    FOLLOWING_DISTANCE_MID: float = 3.0   # [s]
    FOLLOWING_DISTANCE_HIGH: float = 5.0  # [s]

    # === Desired merge distance to blockage (from merge tendency) ===
    MERGE_DISTANCE_LOW: float = 50.0    # [cells] merges early
    MERGE_DISTANCE_MID: float = 25.0    # [cells]
    MERGE_DISTANCE_HIGH: float = 2.0    # [cells] merges at the last moment

    # === Merge gap acceptance (from aggressiveness) ===
    MERGE_GAP_LOW: float = 0.8          # [s] aggressive
    MERGE_GAP_MID: float = 1.5          # [s]
    MERGE_GAP_HIGH: float = 3.0         # [s] cautious

    # === Minimum merge space at low speed (from aggressiveness) ===
    MERGE_SPACE_LOW: float = 1.0        # [cells]
    MERGE_SPACE_MID: float = 3.0        # [cells]
    MERGE_SPACE_HIGH: float = 5.0       # [cells]

    # === Merge urgency ===
    URGENCY_RELAXED_DISTANCE: int = 20  # [cells] at or beyond: no urgency
    URGENCY_FLOOR: float = 0.3
    URGENCY_CEILING: float = 1.0

    # === Gap negotiation ===
    SLOW_TRAFFIC_SPEED: float = 1.0     # [ft/s] left lane considered stopped
    SLOW_TRAFFIC_MERGE_SPACE: int = 2   # [cells] clamp in stop-and-go traffic
    LEFT_SPEED_WINDOW: int = 5          # [cells] either side for lane speed average
    SPEED_MATCH_BLEND: float = 0.3      # share of speed difference per update
    SPEED_MATCH_GAIN: float = 10.0

    # === Scan sentinel ===
    FAR_DISTANCE: int = 100             # [cells] "nothing ahead"

    # === Fallback cell length when no road is supplied ===
    DEFAULT_CELL_LENGTH: float = 15.0   # [ft]


# Global instance for easy access
BEHAVIOR = BehaviorConstants()


# Saturated body colours handed to the renderer
CAR_COLORS: Tuple[str, ...] = (
    '#e74c3c',  # Red
    '#3498db',  # Blue
    '#2ecc71',  # Green
    '#f39c12',  # Orange
    '#9b59b6',  # Purple
    '#1abc9c',  # Teal
    '#e91e63',  # Pink
    '#00bcd4',  # Cyan
    '#ff5722',  # Deep Orange
    '#673ab7',  # Deep Purple
    '#4caf50',  # Light Green
    '#ffc107',  # Amber
)


# ============================================================================
# Enumerations
# ============================================================================

class DrivingState(Enum):
    """Behavioural state of a vehicle."""
    DEFAULT = 'DEFAULT'   # Cruise and follow
    MERGE = 'MERGE'       # Looking for a gap in the lane to the left
    YIELD = 'YIELD'       # Reserved, never assigned
    RIGHT = 'RIGHT'       # Reserved, never assigned


# ============================================================================
# Trait transform
# ============================================================================

def value_from_normalized(value: float, low: float, mid: float, high: float) -> float:
    """
    Map a normalized trait onto a behaviour quantity.

    Linear from ``low`` to ``mid`` over [0, 0.5] and from ``mid`` to
    ``high`` over [0.5, 1].

    Args:
        value: Trait value in [0, 1]
        low: Output at value = 0.0
        mid: Output at value = 0.5
        high: Output at value = 1.0

    Returns:
        Interpolated quantity

    Examples:
        >>> value_from_normalized(0.5, 0.2, 3.0, 5.0)
        3.0
    """
    if value == 0.5:
        return mid
    if value < 0.5:
        return low + (value / 0.5) * (mid - low)
    return mid + ((value - 0.5) / 0.5) * (high - mid)


def following_seconds(aggressiveness: float) -> float:
    return value_from_normalized(aggressiveness,
                                 BEHAVIOR.FOLLOWING_DISTANCE_LOW,
                                 BEHAVIOR.FOLLOWING_DISTANCE_MID,
                                 BEHAVIOR.FOLLOWING_DISTANCE_HIGH)


def merge_distance_cells(merge_tendency: float) -> float:
    return value_from_normalized(merge_tendency,
                                 BEHAVIOR.MERGE_DISTANCE_LOW,
                                 BEHAVIOR.MERGE_DISTANCE_MID,
                                 BEHAVIOR.MERGE_DISTANCE_HIGH)


def merge_gap_seconds(aggressiveness: float) -> float:
    return value_from_normalized(aggressiveness,
                                 BEHAVIOR.MERGE_GAP_LOW,
                                 BEHAVIOR.MERGE_GAP_MID,
                                 BEHAVIOR.MERGE_GAP_HIGH)


def min_merge_space_cells(aggressiveness: float) -> float:
    return value_from_normalized(aggressiveness,
                                 BEHAVIOR.MERGE_SPACE_LOW,
                                 BEHAVIOR.MERGE_SPACE_MID,
                                 BEHAVIOR.MERGE_SPACE_HIGH)
