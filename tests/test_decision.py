# -*- coding: utf-8 -*-
import pytest

from zipper_merge import decision
from zipper_merge.behavior import DrivingState
from zipper_merge.parameters import ZipperMergeParameters
from zipper_merge.road import Road


@pytest.mark.parametrize("cells,expected", [
    (40, 1.0),
    (20, 1.0),
    (15, 0.85),
    (10, 0.7),
    (7, 0.58),
    (5, 0.5),
    (4, 0.434),
    (0, 0.3),
])
def test_urgency_from_distance(cells, expected):
    assert decision.urgency_from_distance(cells) == pytest.approx(expected)


def test_urgency_is_bounded_and_monotonic():
    values = [decision.urgency_from_distance(d) for d in range(0, 60)]
    assert all(0.3 <= u <= 1.0 for u in values)
    # closer to the blockage never means more selective
    assert all(a <= b + 1e-12 for a, b in zip(values, values[1:]))


def test_merge_urgency_without_blockage_is_relaxed(road):
    vehicle = road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=30)
    assert decision.merge_urgency(vehicle, road) == 1.0


def test_left_open_spaces_survey(road):
    road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=20)
    road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=36)
    spaces = decision.left_open_spaces(road, 1, 30)
    assert spaces.beside == 1
    assert spaces.ahead == 5     # cells 31-35
    assert spaces.behind == 9    # cells 29-21
    assert spaces.total == 15


def test_left_open_spaces_unavailable(road):
    assert decision.left_open_spaces(road, 0, 10).total == 0
    road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=10)
    assert decision.left_open_spaces(road, 1, 10).total == 0


def test_left_average_speed_window(road):
    road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=25, speed=10.0)
    road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=34, speed=30.0)
    road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=35, speed=60.0)  # outside
    merger = road.insert_vehicle(0.5, 0.5, 0.5, lane=1, position=30)
    assert decision.left_average_speed(merger, road) == pytest.approx(20.0)


def test_quota_check_flags_vehicle_at_quota(road):
    merger = road.insert_vehicle(0.1, 0.5, 0.5, lane=1, position=30)
    rear = road.insert_vehicle(0.5, 1.0, 0.5, lane=0, position=25, speed=0.0)
    spaces = decision.left_open_spaces(road, 1, 30)
    assert spaces.behind == 4
    assert decision.check_under_left_quota(merger, road, spaces)

    rear.cars_let_in = 1
    assert not decision.check_under_left_quota(merger, road, spaces)


def test_quota_is_advisory_by_default(road):
    merger = road.insert_vehicle(0.1, 0.5, 0.5, lane=1, position=30)
    rear = road.insert_vehicle(0.5, 1.0, 0.5, lane=0, position=25, speed=0.0)
    rear.cars_let_in = 1

    assessment = decision.assess_merge(merger, road)
    assert not assessment.quota_ok
    assert assessment.accepted


def test_quota_gates_merge_when_enforced():
    params = ZipperMergeParameters(enforce_merge_quota=True)
    road = Road.from_parameters(params)
    merger = road.insert_vehicle(0.1, 0.5, 0.5, lane=1, position=30)
    rear = road.insert_vehicle(0.5, 1.0, 0.5, lane=0, position=25, speed=0.0)
    rear.cars_let_in = 1
    assert not decision.can_merge(merger, road)

    rear.cars_let_in = 0
    assert decision.can_merge(merger, road)


def test_slow_left_lane_clamps_desired_space(road):
    merger = road.insert_vehicle(0.1, 0.5, 1.0, lane=1, position=30)
    road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=28, speed=0.0)
    assessment = decision.assess_merge(merger, road)
    assert assessment.left_speed == 0.0
    assert assessment.desired_space == 2
    # ahead=100 (open lane), beside=1, behind=1
    assert assessment.accepted


def test_should_let_car_in(road):
    inviter = road.insert_vehicle(0.5, 1.0, 0.5, lane=0, position=20)
    merger = road.insert_vehicle(0.1, 0.5, 0.5, lane=1, position=21)
    assert not decision.should_let_car_in(inviter, road)

    merger.indicator = True
    assert decision.should_let_car_in(inviter, road)
    # the invitation switches the following distance to merge space
    assert inviter.desired_distance(road) == pytest.approx(7 * 15.0)

    inviter.cars_let_in = 1
    assert not decision.should_let_car_in(inviter, road)


def test_distant_indicating_car_is_not_invited(road):
    inviter = road.insert_vehicle(0.5, 1.0, 0.5, lane=0, position=0)
    merger = road.insert_vehicle(0.1, 0.5, 0.5, lane=1, position=35)
    merger.indicator = True

    assert not decision.should_let_car_in(inviter, road)
    assert inviter.desired_distance(road) == pytest.approx(66.0 * 3.0)

    # two cells ahead is already out of reach
    near = road.insert_vehicle(0.1, 0.5, 0.5, lane=1, position=2)
    near.indicator = True
    assert not decision.should_let_car_in(inviter, road)


def test_alert_rear_driver_credits_first_vehicle_behind(road):
    near = road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=25)
    far = road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=10)
    merger = road.insert_vehicle(0.1, 0.5, 0.5, lane=1, position=30)
    decision.alert_rear_driver(merger, road, 0)
    assert near.cars_let_in == 1
    assert far.cars_let_in == 0


def test_rubberneck_zone(road):
    inside = road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=40)
    before = road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=39)
    past = road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=48)
    blocked_lane = road.insert_vehicle(0.5, 0.5, 0.5, lane=1, position=30)
    assert decision.is_in_rubberneck_zone(inside, road)
    assert not decision.is_in_rubberneck_zone(before, road)
    assert not decision.is_in_rubberneck_zone(past, road)
    assert not decision.is_in_rubberneck_zone(blocked_lane, road)

    open_road = Road(2, 0, 15.0)
    vehicle = open_road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=42)
    assert not decision.is_in_rubberneck_zone(vehicle, open_road)


def test_effect_speed_brakes_for_short_gap(road):
    follower = road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=10)
    road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=12)
    decision.effect_speed(follower, road)
    # 15 ft available vs 198 ft wanted
    assert follower.speed == 0.0


def test_effect_speed_blends_toward_left_lane_while_merging(road):
    merger = road.insert_vehicle(0.1, 0.5, 0.5, lane=1, position=30, speed=20.0)
    road.insert_vehicle(0.5, 0.5, 0.5, lane=1, position=37)
    road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=28, speed=5.0)
    # 9 cells to the blockage
    urgency = decision.merge_urgency(merger, road)
    assert urgency == pytest.approx(0.66)

    # gap 90 ft vs 60 ft wanted
    decision.effect_speed(merger, road)
    assert merger.speed == pytest.approx(50.0)

    merger.speed = 20.0
    merger.state = DrivingState.MERGE
    decision.effect_speed(merger, road)
    # 30 * 0.66 + (5 - 20) * 0.3 * 0.34 * 10
    assert merger.speed == pytest.approx(20.0 + 19.8 - 15.3)


def test_rubberneck_slowdown_fades_through_zone(road):
    at_start = road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=40, speed=10.0)
    halfway = road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=44, speed=10.0)
    road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=48, speed=10.0)

    # both have a 45 ft gap vs 30 ft wanted
    decision.effect_speed(at_start, road)
    decision.effect_speed(halfway, road)
    # full 15% slowdown at block_start, half depth at half intensity
    assert at_start.speed == pytest.approx(10.0 + 15.0 - 1.5)
    assert halfway.speed == pytest.approx(10.0 + 15.0 - 0.375)


def test_effect_speed_ignores_last_cell(road):
    vehicle = road.insert_vehicle(0.5, 0.5, 0.5, lane=0, position=49, speed=20.0)
    decision.effect_speed(vehicle, road)
    assert vehicle.speed == 20.0


def test_effect_merge_state_follows_merge_distance(road):
    late = road.insert_vehicle(0.9, 0.5, 0.5, lane=1, position=30)
    decision.effect_merge_state(late, road)
    assert late.state is DrivingState.DEFAULT  # 9 cells > 6.6

    early = road.insert_vehicle(0.1, 0.5, 0.5, lane=1, position=20)
    decision.effect_merge_state(early, road)
    assert early.state is DrivingState.MERGE

    open_lane = road.insert_vehicle(0.1, 0.5, 0.5, lane=0, position=30)
    open_lane.state = DrivingState.MERGE
    decision.effect_merge_state(open_lane, road)
    assert open_lane.state is DrivingState.DEFAULT
