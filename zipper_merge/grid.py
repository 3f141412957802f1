# -*- coding: utf-8 -*-
"""
zipper_merge/grid.py

Discrete road occupancy grid:
- RoadGrid: per-lane cell array holding empty / blockage / vehicle id
- CellType: occupancy classification exposed to renderers
- SpaceType: target class for forward scans
- ScanResult: tagged scan outcome (Distance / NotFound / OutOfBounds)

Lane 0 is the leftmost (open) lane; blocked lanes are counted from the
highest index. A cell stores a vehicle *identifier*, never the vehicle
object; the Road resolves identifiers through its own vehicle table.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

# Cell codes stored in the occupancy array (vehicle ids are >= 0)
EMPTY = -1
BLOCKAGE = -2


class InvalidRoadError(ValueError):
    """Raised when a road cannot be built from the requested lane layout."""


class CellType(Enum):
    """Occupancy classification of a single cell."""
    EMPTY = 0
    BLOCKAGE = 1
    VEHICLE = 2


class SpaceType(Enum):
    """What a forward scan is looking for."""
    CARS = 'CARS'           # vehicles only
    BLOCKAGE = 'BLOCKAGE'   # blockage only
    ALL = 'ALL'             # any occupant


class ScanStatus(Enum):
    FOUND = 'FOUND'
    NOT_FOUND = 'NOT_FOUND'
    OUT_OF_BOUNDS = 'OUT_OF_BOUNDS'


@dataclass(frozen=True)
class ScanResult:
    """
    Outcome of a forward scan.

    Attributes:
        status: FOUND, NOT_FOUND (nothing before lane end) or OUT_OF_BOUNDS
            (scan started at or past the last cell, or on a missing lane)
        cells: Number of empty cells between the start and the match
            (only meaningful when status is FOUND)
    """
    status: ScanStatus
    cells: int = 0

    @classmethod
    def found(cls, cells: int) -> 'ScanResult':
        return cls(ScanStatus.FOUND, cells)

    @classmethod
    def not_found(cls) -> 'ScanResult':
        return cls(ScanStatus.NOT_FOUND)

    @classmethod
    def out_of_bounds(cls) -> 'ScanResult':
        return cls(ScanStatus.OUT_OF_BOUNDS)

    @property
    def is_found(self) -> bool:
        return self.status is ScanStatus.FOUND

    @property
    def is_out_of_bounds(self) -> bool:
        return self.status is ScanStatus.OUT_OF_BOUNDS

    def distance_or(self, far: int) -> Optional[int]:
        """Cells to the match, ``far`` when nothing matched, None when out of bounds."""
        if self.status is ScanStatus.FOUND:
            return self.cells
        if self.status is ScanStatus.NOT_FOUND:
            return far
        return None

    def __repr__(self) -> str:
        if self.is_found:
            return f"ScanResult(Distance({self.cells}))"
        return f"ScanResult({self.status.value})"


class RoadGrid:
    """
    Fixed-size lane x cell occupancy array.

    Blockage cells occupy the ``blocked_lanes`` highest-index lanes from
    ``block_start`` to the lane end. Invariant: at most one vehicle id per
    cell.
    """

    def __init__(self,
                 lanes: int,
                 blocked_lanes: int,
                 length: int = 50,
                 block_start: int = 40):
        """
        Args:
            lanes: Number of lanes (>= 2)
            blocked_lanes: Number of blocked lanes (< lanes)
            length: Cells per lane
            block_start: First blocked cell index

        Raises:
            InvalidRoadError: If the layout is unusable
        """
        if lanes < 2:
            raise InvalidRoadError(f"lanes must be >= 2 (got {lanes})")
        if blocked_lanes < 0 or blocked_lanes >= lanes:
            raise InvalidRoadError(
                f"blocked_lanes must be in [0, {lanes - 1}] (got {blocked_lanes})")
        if length < 2:
            raise InvalidRoadError(f"length must be >= 2 (got {length})")
        if not 0 <= block_start <= length:
            raise InvalidRoadError(
                f"block_start must be in [0, {length}] (got {block_start})")

        self.blocked_lanes = blocked_lanes
        self.block_start = block_start
        self.cells = np.full((lanes, length), EMPTY, dtype=np.int64)
        self._place_blockage()

    def _place_blockage(self):
        if self.blocked_lanes > 0:
            self.cells[self.num_lanes - self.blocked_lanes:, self.block_start:] = BLOCKAGE

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------
    @property
    def num_lanes(self) -> int:
        return int(self.cells.shape[0])

    @property
    def length(self) -> int:
        return int(self.cells.shape[1])

    @property
    def first_blocked_lane(self) -> int:
        """Index of the leftmost blocked lane (== num_lanes when none is blocked)."""
        return self.num_lanes - self.blocked_lanes

    def in_bounds(self, lane: int, position: int) -> bool:
        return 0 <= lane < self.num_lanes and 0 <= position < self.length

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------
    def is_empty(self, lane: int, position: int) -> bool:
        return self.in_bounds(lane, position) and self.cells[lane, position] == EMPTY

    def occupant(self, lane: int, position: int) -> Optional[int]:
        """Vehicle id in the cell, or None for empty / blockage / out of bounds."""
        if not self.in_bounds(lane, position):
            return None
        code = int(self.cells[lane, position])
        return code if code >= 0 else None

    def cell_type(self, lane: int, position: int) -> CellType:
        code = self.cells[lane, position]
        if code == EMPTY:
            return CellType.EMPTY
        if code == BLOCKAGE:
            return CellType.BLOCKAGE
        return CellType.VEHICLE

    def place(self, vehicle_id: int, lane: int, position: int) -> bool:
        """Occupy an empty cell. Returns False (no-op) if occupied or out of bounds."""
        if not self.is_empty(lane, position):
            return False
        self.cells[lane, position] = vehicle_id
        return True

    def vacate(self, lane: int, position: int):
        """Clear a vehicle from a cell. Blockage cells are left untouched."""
        if self.in_bounds(lane, position) and self.cells[lane, position] >= 0:
            self.cells[lane, position] = EMPTY

    def move(self, vehicle_id: int, src: Tuple[int, int], dst: Tuple[int, int]) -> bool:
        """
        Move a vehicle id between cells in one commit.

        Returns:
            False if the destination is out of bounds or occupied; the
            source cell is left unchanged in that case.
        """
        if src == dst:
            return True
        if not self.is_empty(*dst):
            return False
        self.vacate(*src)
        self.cells[dst] = vehicle_id
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def scan(self, lane: int, from_position: int, target: SpaceType) -> ScanResult:
        """
        Walk forward from ``from_position + 1`` to the lane end.

        Returns:
            Distance (0-based offset of the first matching cell), NotFound
            when nothing matches, OutOfBounds when the lane does not exist or
            the scan would start past the last cell.
        """
        if not 0 <= lane < self.num_lanes:
            return ScanResult.out_of_bounds()
        start = from_position + 1
        if start < 0 or start >= self.length:
            return ScanResult.out_of_bounds()

        segment = self.cells[lane, start:]
        if target is SpaceType.ALL:
            mask = segment != EMPTY
        elif target is SpaceType.BLOCKAGE:
            mask = segment == BLOCKAGE
        else:
            mask = segment >= 0

        hits = np.flatnonzero(mask)
        if hits.size == 0:
            return ScanResult.not_found()
        return ScanResult.found(int(hits[0]))

    def open_entry_lanes(self) -> List[int]:
        return [int(lane) for lane in np.flatnonzero(self.cells[:, 0] == EMPTY)]

    def random_open_lane(self) -> Optional[int]:
        """Uniformly chosen lane whose entry cell is empty, or None."""
        open_lanes = self.open_entry_lanes()
        if not open_lanes:
            return None
        return int(np.random.choice(open_lanes))

    def locate(self, vehicle_id: int) -> List[Tuple[int, int]]:
        """All cells holding ``vehicle_id`` (exactly one while the grid is consistent)."""
        lanes, positions = np.nonzero(self.cells == vehicle_id)
        return [(int(ln), int(pos)) for ln, pos in zip(lanes, positions)]

    def vehicle_ids(self) -> List[int]:
        return [int(code) for code in self.cells[self.cells >= 0]]

    def occupancy(self) -> np.ndarray:
        """Read-only CellType codes (0 empty, 1 blockage, 2 vehicle) for renderers."""
        codes = np.zeros(self.cells.shape, dtype=np.int8)
        codes[self.cells == BLOCKAGE] = CellType.BLOCKAGE.value
        codes[self.cells >= 0] = CellType.VEHICLE.value
        codes.flags.writeable = False
        return codes

    def __repr__(self) -> str:
        return (f"RoadGrid(lanes={self.num_lanes}, length={self.length}, "
                f"blocked_lanes={self.blocked_lanes}, block_start={self.block_start})")
