# -*- coding: utf-8 -*-
"""
zipper_merge/visualization.py

Post-run plots of simulation results:
- plot_metrics_history: throughput / fairness / load over time and merge positions
- plot_occupancy_snapshot: current cell classification of a road
"""

from typing import TYPE_CHECKING

import pandas as pd
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap

if TYPE_CHECKING:
    from .road import Road
    from .simulator import ZipperMergeSimulator


def plot_metrics_history(simulator: 'ZipperMergeSimulator', output_filename: str):
    """
    Plot sampled metrics of a finished run.

    Args:
        simulator: Simulator after ``run``
        output_filename: Output plot file path

    Note:
        This function creates a 2x2 subplot with:
        - (a) Throughput over time
        - (b) Fairness over time
        - (c) Vehicles on road over time
        - (d) Merge position histogram with the blockage start marked
    """
    if not simulator.history['t']:
        print("[WARNING] No metric history to plot")
        return

    hist_df = pd.DataFrame(simulator.history)
    merge_df = pd.DataFrame(simulator.merge_log)
    block_start = simulator.params.block_start

    fig, axes = plt.subplots(2, 2, figsize=(14, 10))

    # Plot 1: Throughput
    ax1 = axes[0, 0]
    ax1.plot(hist_df['t'], hist_df['throughput'], linewidth=1.5)
    ax1.set_xlabel('Time (s)', fontsize=12)
    ax1.set_ylabel('Throughput (veh/s)', fontsize=12)
    ax1.set_title(f'(a) Throughput - {simulator.load_level.upper()}',
                  fontsize=14, fontweight='bold')
    ax1.grid(True, alpha=0.3)

    # Plot 2: Fairness
    ax2 = axes[0, 1]
    ax2.plot(hist_df['t'], hist_df['fairness'], color='purple', linewidth=1.5)
    ax2.set_xlabel('Time (s)', fontsize=12)
    ax2.set_ylabel('Fairness (1 / (1 + CV))', fontsize=12)
    ax2.set_title('(b) Travel-Time Fairness', fontsize=14, fontweight='bold')
    ax2.set_ylim([0, 1.05])
    ax2.grid(True, alpha=0.3)

    # Plot 3: Vehicles on road
    ax3 = axes[1, 0]
    ax3.plot(hist_df['t'], hist_df['vehicles'], color='green', linewidth=1.5)
    ax3.set_xlabel('Time (s)', fontsize=12)
    ax3.set_ylabel('Vehicles on road', fontsize=12)
    ax3.set_title('(c) Road Load', fontsize=14, fontweight='bold')
    ax3.grid(True, alpha=0.3)

    # Plot 4: Merge positions
    ax4 = axes[1, 1]
    if len(merge_df) > 0:
        ax4.hist(merge_df['position'], bins=range(0, simulator.params.road_length + 1),
                 alpha=0.7, color='orange', edgecolor='black')
        ax4.set_xlabel('Cell Index')
        ax4.set_ylabel('Merge Count')
        ax4.axvline(x=block_start, color='r', linestyle='--', linewidth=2,
                    label='Blockage Start')
        ax4.legend()
    else:
        ax4.text(0.5, 0.5, 'No merge recorded', va='center', ha='center', transform=ax4.transAxes)
    ax4.set_title('(d) Merge Positions', fontsize=14, fontweight='bold')
    ax4.grid(axis='y', alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_filename, dpi=300, bbox_inches='tight')
    print(f"[PASS] Metrics plot saved to {output_filename}")
    plt.close(fig)


def plot_occupancy_snapshot(road: 'Road', output_filename: str):
    """
    Save the current occupancy grid (lanes x cells) as an image.

    Empty cells are light grey, blockage cells red and vehicles blue.
    """
    codes = road.occupancy()
    if codes.size == 0:
        print("[WARNING] Empty road, nothing to plot")
        return

    cmap = ListedColormap(['#eeeeee', '#d62728', '#1f77b4'])
    fig, ax = plt.subplots(figsize=(14, 1.0 + 0.6 * road.num_lanes))
    ax.imshow(codes, cmap=cmap, vmin=0, vmax=2, aspect='auto', interpolation='nearest')
    ax.set_xlabel('Cell Index')
    ax.set_ylabel('Lane')
    ax.set_yticks(range(road.num_lanes))
    ax.set_title(f'Occupancy at t={road.time:.1f}s ({len(road.vehicles)} vehicles)',
                 fontsize=12, fontweight='bold')

    plt.tight_layout()
    plt.savefig(output_filename, dpi=300, bbox_inches='tight')
    print(f"[PASS] Occupancy snapshot saved to {output_filename}")
    plt.close(fig)
