# -*- coding: utf-8 -*-
import json

import pytest

from zipper_merge.parameters import ZipperMergeParameters
from zipper_merge.simulator import ZipperMergeSimulator
from zipper_merge.visualization import plot_metrics_history, plot_occupancy_snapshot


@pytest.fixture
def simulator():
    return ZipperMergeSimulator(ZipperMergeParameters(seed=7, heartbeat_interval=0.0))


def test_lifecycle(simulator):
    assert not simulator.is_running
    simulator.start()
    simulator.start()
    assert simulator.is_running
    simulator.stop()
    assert not simulator.is_running


def test_reset_builds_fresh_road(simulator):
    simulator.start()
    for _ in range(50):
        simulator.step()
    old_road = simulator.road
    assert old_road.spawned_count > 0

    simulator.reset()
    assert simulator.road is not old_road
    assert simulator.road.vehicles == {}
    assert simulator.time == 0.0
    assert simulator.history['t'] == []
    assert simulator.is_running
    assert simulator.road.num_lanes == old_road.num_lanes


def test_spawn_runs_before_tick_at_shared_time(simulator):
    times = [simulator.step() for _ in range(6)]
    assert times == pytest.approx([0.2, 0.4, 0.5, 0.6, 0.8, 1.0])
    # the step at t=1.0 was the spawn; the tick at 1.0 is still pending
    assert simulator.road.spawned_count == 2
    assert simulator.next_tick_time == pytest.approx(1.0)
    assert simulator.step() == pytest.approx(1.0)
    assert simulator.next_tick_time == pytest.approx(1.2)


def test_progress_is_monotonic_and_grid_consistent(simulator):
    seen = {}
    for _ in range(600):
        simulator.step()
        for vehicle in simulator.road.vehicles.values():
            if vehicle.id in seen:
                position, distance = seen[vehicle.id]
                assert vehicle.position >= position
                assert vehicle.distance >= distance
            seen[vehicle.id] = (vehicle.position, vehicle.distance)
        occupied = [(v.lane, v.position) for v in simulator.road.vehicles.values()]
        assert len(occupied) == len(set(occupied))
    assert simulator.road.check_invariants() == []


def test_long_run_metrics():
    """100+ default-trait vehicles give a fair-but-imperfect score and bounded throughput."""
    params = ZipperMergeParameters(seed=2024, heartbeat_interval=0.0)
    sim = ZipperMergeSimulator(params)
    sim.start()
    while sim.road.spawned_count < 100 and sim.time < 400.0:
        sim.step()
    assert sim.road.spawned_count >= 100

    fairness = sim.road.fairness()
    throughput = sim.road.cars_per_second()
    assert 0.0 < fairness < 1.0
    assert 0.0 < throughput <= params.num_open_lanes / params.tick_interval
    assert sim.road.metrics.total_exits <= sim.road.spawned_count
    assert sim.road.check_invariants() == []


def test_run_and_statistics(capsys):
    sim = ZipperMergeSimulator(ZipperMergeParameters(seed=3, heartbeat_interval=10.0), 'medium')
    sim.run(t_max=30.0)
    assert not sim.is_running
    assert sim.time <= 30.0

    stats = sim.get_statistics()
    assert stats['spawned'] + stats['rejected_spawns'] == 60
    assert stats['exited'] + stats['on_road'] == stats['spawned']
    assert stats['merges'] == len(sim.merge_log)
    assert 0.0 < stats['fairness'] <= 1.0
    # the 10 s window only holds recent exits, all of which have a lifetime record
    assert stats['recent_mean_travel_time'] > 0.0
    assert set(stats['recent_travel_time_by_lane']) <= set(stats['travel_time_by_lane'])
    json.dumps(stats)

    # one sample per 1 s boundary from 0 s to 30 s
    assert len(sim.history['t']) == 31
    out = capsys.readouterr().out
    assert "[HEARTBEAT]" in out
    assert "[Final Statistics" in out


def test_plots_are_written(tmp_path):
    sim = ZipperMergeSimulator(ZipperMergeParameters(seed=5, heartbeat_interval=0.0))
    sim.run(t_max=20.0)

    metrics_file = tmp_path / "metrics.png"
    occupancy_file = tmp_path / "occupancy.png"
    plot_metrics_history(sim, str(metrics_file))
    plot_occupancy_snapshot(sim.road, str(occupancy_file))
    assert metrics_file.exists()
    assert occupancy_file.exists()


def test_plot_without_history_is_skipped(simulator, tmp_path, capsys):
    target = tmp_path / "empty.png"
    plot_metrics_history(simulator, str(target))
    assert not target.exists()
    assert "[WARNING]" in capsys.readouterr().out
