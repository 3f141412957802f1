# -*- coding: utf-8 -*-
import pytest

from zipper_merge import decision
from zipper_merge.behavior import CAR_COLORS
from zipper_merge.grid import CellType, InvalidRoadError
from zipper_merge.road import (
    Road,
    advance_tick,
    create_road,
    fairness,
    spawn_vehicle,
    throughput,
)


def test_create_road_rejects_invalid_layout(capsys):
    assert create_road(2, 2, 15.0) is None
    assert create_road(1, 0, 15.0) is None
    assert "[WARNING]" in capsys.readouterr().out
    assert isinstance(create_road(3, 1, 10.0), Road)


def test_road_requires_positive_cell_length():
    with pytest.raises(InvalidRoadError):
        Road(2, 1, 0.0)


def test_spawn_fills_entries_then_rejects(road):
    first = spawn_vehicle(road, 0.5, 0.5, 0.5)
    second = spawn_vehicle(road, 0.5, 0.5, 0.5)
    assert {first.lane, second.lane} == {0, 1}
    assert first.position == second.position == 0
    assert spawn_vehicle(road, 0.5, 0.5, 0.5) is None
    assert road.spawned_count == 2
    assert road.rejected_spawns == 1


def test_spawned_vehicle_records_origin(road):
    road.time = 3.5
    vehicle = road.spawn_vehicle(0.2, 0.4, 0.6)
    assert vehicle.spawn_time == 3.5
    assert vehicle.start_lane == vehicle.lane
    assert vehicle.color in CAR_COLORS
    assert road.vehicle_at(vehicle.lane, 0) is vehicle


def test_insert_vehicle_into_occupied_cell(road):
    assert road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=10) is not None
    assert road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=10) is None
    assert road.insert_vehicle(0.5, 0.5, 0.5, lane=1, position=45) is None


def test_free_driver_exits_once(road):
    """Lone vehicle on an empty road reaches the end and leaves one record."""
    vehicle = road.insert_vehicle(0.9, 1.0, 0.5, lane=0, position=0)
    last_position = vehicle.position
    last_distance = vehicle.distance

    ticks = 0
    while road.vehicles and ticks < 200:
        advance_tick(road)
        ticks += 1
        if vehicle.id in road.vehicles:
            assert vehicle.position >= last_position
            assert vehicle.distance >= last_distance
            last_position, last_distance = vehicle.position, vehicle.distance
            assert road.check_invariants() == []

    assert not road.vehicles
    assert road.metrics.total_exits == 1
    assert len(road.metrics.trails) == 1
    assert len(road.metrics.completed) == 1
    assert road.metrics.completed[0].travel_time == pytest.approx(road.time)
    assert road.occupancy()[road.occupancy() == CellType.VEHICLE.value].size == 0


def test_open_gap_merges_same_tick(road):
    """A merger with the left lane open moves over by exactly one lane in one tick."""
    merger = road.insert_vehicle(0.1, 0.5, 0.5, lane=1, position=30)
    rear = road.insert_vehicle(0.5, 1.0, 0.5, lane=0, position=10)
    merger.last_update = rear.last_update = 0.0
    assert decision.can_merge(merger, road)

    advance_tick(road)

    assert merger.lane == 0
    assert merger.position == 30
    assert merger.merge_count == 1
    assert road.merge_log == [{
        't': pytest.approx(0.2),
        'vid': merger.id,
        'lane_from': 1,
        'lane_to': 0,
        'position': 30,
    }]
    # only the driver now directly behind is credited
    assert rear.cars_let_in == 1
    assert merger.cars_let_in == 0
    assert road.check_invariants() == []


@pytest.mark.parametrize("merge_tendency,aggressiveness", [(0.9, 0.5), (1.0, 0.0), (0.0, 1.0)])
def test_no_space_never_merges(road, merge_tendency, aggressiveness):
    """Blocked-lane vehicle at the blockage with an occupied neighbour stays put."""
    merger = road.insert_vehicle(merge_tendency, 0.5, aggressiveness, lane=1, position=39)
    road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=39)

    assessment = decision.assess_merge(merger, road)
    assert assessment.urgency == pytest.approx(0.3)
    assert assessment.spaces.total == 0
    assert not assessment.accepted

    for vehicle in road.vehicles.values():
        vehicle.last_update = 0.0
    advance_tick(road)
    assert (merger.lane, merger.position) == (1, 39)
    assert merger.speed == 0.0


def test_forward_move_is_clamped_to_open_space(road):
    leader = road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=8, speed=0.0)
    follower = road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=5)
    follower.distance = 20 * road.cell_length
    leader.last_update = follower.last_update = 0.0

    advance_tick(road)

    assert follower.position == 7
    assert follower.id in road.vehicles
    assert road.check_invariants() == []


def test_vehicle_on_last_cell_leaves(road):
    vehicle = road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=49)
    vehicle.last_update = 0.0
    removed = advance_tick(road, 0.5)
    assert removed == [vehicle]
    assert road.time == pytest.approx(0.5)
    assert throughput(road) == pytest.approx(0.1)
    assert fairness(road) == 1.0


def test_snapshot_exposes_render_state(road):
    road.insert_vehicle(0.5, 0.5, 0.5, lane=1, position=3)
    snaps = road.snapshot()
    assert len(snaps) == 1
    assert (snaps[0].lane, snaps[0].position) == (1, 3)
    occupancy = road.occupancy()
    assert occupancy[1, 3] == CellType.VEHICLE.value
    assert occupancy[1, 40] == CellType.BLOCKAGE.value
