#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Zipper Merge Traffic Simulation - main entry point
==================================================

Usage:
    # Demo mode (scripted single-road checks, no log file)
    python -m zipper_merge.main --mode demo

    # Simulation mode (full run)
    python -m zipper_merge.main --mode sim --load medium --tmax 600
    python -m zipper_merge.main --mode sim --load high --lanes 3 --blocked 2

    # With parameter overrides (JSON)
    python -m zipper_merge.main --mode sim --config params.json

    # Silent (JSON_STATS line only)
    python -m zipper_merge.main --mode sim --silent
"""

import io
import json
import os
import sys
import argparse
from typing import Optional

from .grid import InvalidRoadError
from .parameters import LOAD_LEVELS, ZipperMergeParameters
from .road import advance_tick, create_road


def demo_free_driver() -> bool:
    """A single vehicle on an otherwise empty road leaves exactly once."""
    print("\n### Demo 1: Free Driver ###")
    road = create_road(2, 1, 15.0)
    road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=0)

    ticks = 0
    while road.vehicles and ticks < 500:
        advance_tick(road)
        ticks += 1

    exits = road.metrics.total_exits
    if road.vehicles or exits != 1:
        print(f"[FAIL] Vehicle did not exit cleanly (exits={exits}, left={len(road.vehicles)})")
        return False
    print(f"[PASS] Exited after {ticks} ticks ({road.time:.1f}s)")
    print(f"  Throughput: {road.cars_per_second():.2f} veh/s | Fairness: {road.fairness():.3f}")
    return True


def demo_blocked_merge() -> bool:
    """A vehicle with an occupied neighbour cell does not merge."""
    print("\n### Demo 2: Occupied Neighbour ###")
    road = create_road(2, 1, 15.0)
    merger = road.insert_vehicle(0.1, 0.5, 0.5, lane=1, position=30)
    road.insert_vehicle(0.5, 0.0, 0.5, lane=0, position=30, speed=0.0)

    advance_tick(road)
    advance_tick(road)

    if merger.lane != 1:
        print(f"[FAIL] Vehicle merged into an occupied cell (lane={merger.lane})")
        return False
    problems = road.check_invariants()
    if problems:
        print(f"[FAIL] Grid inconsistent: {problems}")
        return False
    print(f"[PASS] Vehicle stayed in lane 1 (state={merger.state.value})")
    return True


def demo_invalid_layout() -> bool:
    """An invalid lane layout yields no road."""
    print("\n### Demo 3: Invalid Layout ###")
    road = create_road(2, 2, 15.0)
    if road is not None:
        print("[FAIL] Road created with every lane blocked")
        return False
    print("[PASS] Invalid layout rejected")
    return True


def demo_mode() -> bool:
    """Scripted checks of the engine on small roads."""
    print("\n" + "=" * 80)
    print("Demo Mode: scripted road checks")
    print("=" * 80)

    results = [demo_free_driver(), demo_blocked_merge(), demo_invalid_layout()]
    return all(results)


def simulation_mode(load: str = 'medium',
                    tmax: float = 600.0,
                    debug: bool = False,
                    lanes: Optional[int] = None,
                    blocked: Optional[int] = None,
                    cell_length: Optional[float] = None,
                    seed: Optional[int] = None,
                    config_path: Optional[str] = None,
                    plot: bool = True,
                    silent: bool = False) -> bool:
    """
    Full simulation mode.

    Args:
        load: Load level ('low', 'medium', 'high', 'saturated')
        tmax: Maximum simulation time [s]
        debug: Debug mode (shortened run, merge / exit logs)
        lanes / blocked / cell_length: Road layout overrides
        seed: Random seed for reproducible runs
        config_path: JSON file with parameter overrides
        plot: Save metric plots after the run
        silent: No log file, only the JSON_STATS line on stdout
    """
    from .simulator import ZipperMergeSimulator
    from .utils import Logger, output_path

    # Save original stdout for silent mode
    original_stdout = sys.stdout
    if silent:
        sys.stdout = io.StringIO()

    print("\n" + "=" * 80)
    print("Zipper Merge Traffic Simulation")
    print("=" * 80)

    logger = None
    log_file = None
    if not silent:
        log_file = output_path("simulation_log", "txt", tag=load)
        logger = Logger(log_file, run_settings={
            'load': load, 'tmax': tmax, 'lanes': lanes, 'blocked': blocked,
            'cell_length': cell_length, 'seed': seed, 'config': config_path,
        })
        sys.stdout = logger

    params = ZipperMergeParameters(debug_mode=debug)
    params.set_load_level(load)
    if lanes is not None:
        params.lanes = lanes
    if blocked is not None:
        params.blocked_lanes = blocked
    if cell_length is not None:
        params.cell_length = cell_length
    if seed is not None:
        params.seed = seed

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                overrides = json.load(f)
            print(f"\n[CONFIG] Applying overrides from {config_path}:")
            params.apply_overrides(overrides)
        except (OSError, ValueError) as e:
            print(f"[ERROR] Failed to load config: {e}")
    elif config_path:
        print(f"[WARNING] Config file not found: {config_path}")

    params.update_derived()
    problems = params.validate()
    if problems:
        for problem in problems:
            print(f"[ERROR] Invalid configuration: {problem}")
        _restore_stdout(logger, original_stdout)
        return False

    if debug and tmax == 600.0:
        tmax = params.debug_tmax

    print(f"\nLoad Level: {load.upper()}")
    print(f"Simulation Time: {tmax}s")
    if debug:
        print("DEBUG MODE ENABLED")
    print("=" * 80 + "\n")
    sys.stdout.flush()

    try:
        simulator = ZipperMergeSimulator(params, load)
        simulator.run(t_max=tmax)

        stats = simulator.get_statistics()
        if silent:
            sys.stdout = original_stdout
        print("\n[JSON_STATS] " + json.dumps(stats))
        sys.stdout.flush()
    except InvalidRoadError as e:
        print(f"[ERROR] Invalid road layout: {e}")
        _restore_stdout(logger, original_stdout)
        return False
    except Exception as e:
        import traceback
        print(f"[ERROR] Simulation failed: {e}")
        print("[TRACEBACK]")
        traceback.print_exc()
        _restore_stdout(logger, original_stdout)
        return False

    if not silent and plot:
        try:
            from .visualization import plot_metrics_history, plot_occupancy_snapshot
            plot_metrics_history(simulator, output_path("plots", "png", tag=load))
            plot_occupancy_snapshot(simulator.road, output_path("occupancy", "png", tag=load))
        except Exception as e:
            print(f"[WARNING] Plot generation failed: {e}")
    elif not silent:
        print("[INFO] Skipping plot generation (--no-plot)")

    if not silent and log_file:
        print(f"\nSimulation completed. Log saved to: {log_file}")

    _restore_stdout(logger, original_stdout)
    return True


def _restore_stdout(logger, original_stdout):
    sys.stdout.flush()
    if logger is not None:
        logger.close()
    sys.stdout = original_stdout


def main(argv: Optional[list] = None):
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="Zipper merge traffic simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scripted checks
  python -m zipper_merge.main --mode demo

  # Full simulation
  python -m zipper_merge.main --mode sim --load medium --tmax 600
  python -m zipper_merge.main --mode sim --load saturated --lanes 3 --blocked 1 --seed 42

  # Quick debug run (30s, merge / exit logs)
  python -m zipper_merge.main --mode sim --debug
        """
    )

    parser.add_argument(
        '--mode',
        type=str,
        choices=['demo', 'sim'],
        default='demo',
        help='Run mode: demo (scripted checks), sim (full simulation)'
    )

    parser.add_argument(
        '--load',
        type=str,
        choices=list(LOAD_LEVELS.keys()),
        default='medium',
        help='Traffic load level (default: medium)'
    )

    parser.add_argument(
        '--tmax',
        type=float,
        default=600.0,
        help='Maximum simulation time [s] (default: 600)'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Debug mode (30s run, merge / exit logs)'
    )

    parser.add_argument('--lanes', type=int, default=None, help='Number of lanes (default: 2)')
    parser.add_argument('--blocked', type=int, default=None, help='Number of blocked lanes (default: 1)')
    parser.add_argument('--cell-length', type=float, default=None, help='Cell length [ft] (default: 15)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to a JSON file with parameter overrides'
    )

    parser.add_argument(
        '--silent',
        action='store_true',
        help='Silent mode: no log file, only JSON_STATS on stdout'
    )

    parser.add_argument(
        '--no-plot',
        action='store_true',
        help='Skip plot generation after the run'
    )

    args = parser.parse_args(argv)

    if not args.silent:
        print("=" * 80)
        print("Zipper Merge Traffic Simulation")
        print("=" * 80)

    if args.mode == 'demo':
        success = demo_mode()
        print("\n" + "=" * 80)
        print("[SUCCESS] All demo checks passed!" if success else "[FAILED] Some demo checks failed")
        print("=" * 80)
        return 0 if success else 1

    success = simulation_mode(args.load, args.tmax, args.debug,
                              lanes=args.lanes,
                              blocked=args.blocked,
                              cell_length=args.cell_length,
                              seed=args.seed,
                              config_path=args.config,
                              plot=not args.no_plot,
                              silent=args.silent)
    if not success:
        print("\n" + "=" * 80)
        print("[FAILED] Simulation failed to run")
        print("=" * 80)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
