"""
Zipper Merge Traffic Simulation
===============================

Cellular-grid simulation of lane-closure merging with personality-driven
drivers (merge tendency, cooperation, aggressiveness).

Modules:
    - behavior: behaviour constants, driving states, trait transform
    - grid: RoadGrid occupancy array and forward scans
    - vehicle: Vehicle agent
    - decision: merge negotiation and speed control
    - road: Road, simulation stepper and in-process API
    - metrics: throughput and fairness records
    - parameters: ZipperMergeParameters
    - simulator: ZipperMergeSimulator (simulated clock, statistics)
    - visualization: Plotting functions
    - utils: Logger and utilities
    - main: Command line entry point

Version: 1.0
"""

# Core simulation components
from .behavior import BEHAVIOR, BehaviorConstants, DrivingState, value_from_normalized
from .grid import CellType, InvalidRoadError, RoadGrid, ScanResult, SpaceType
from .vehicle import Vehicle, VehicleSnapshot
from .metrics import CompletionRecord, MetricsTracker
from .parameters import LOAD_LEVELS, ZipperMergeParameters
from .road import Road, advance_tick, create_road, fairness, spawn_vehicle, throughput
from .simulator import ZipperMergeSimulator
from .visualization import plot_metrics_history, plot_occupancy_snapshot
from .utils import Logger, SCRIPT_NAME, SCRIPT_VERSION, random_bounded_normal

__version__ = "1.0.0"
__all__ = [
    # Behaviour
    "BEHAVIOR",
    "BehaviorConstants",
    "DrivingState",
    "value_from_normalized",
    # Grid
    "CellType",
    "InvalidRoadError",
    "RoadGrid",
    "ScanResult",
    "SpaceType",
    # Vehicle
    "Vehicle",
    "VehicleSnapshot",
    # Metrics
    "CompletionRecord",
    "MetricsTracker",
    # Parameters
    "LOAD_LEVELS",
    "ZipperMergeParameters",
    # Road API
    "Road",
    "advance_tick",
    "create_road",
    "fairness",
    "spawn_vehicle",
    "throughput",
    # Simulator
    "ZipperMergeSimulator",
    # Visualization
    "plot_metrics_history",
    "plot_occupancy_snapshot",
    # Utils
    "Logger",
    "SCRIPT_NAME",
    "SCRIPT_VERSION",
    "random_bounded_normal",
]
