from datetime import datetime, timedelta, timezone

import pytest

from skytrack.services.trajectory import LOW_CONFIDENCE, Trajectory

T0 = datetime(2024, 5, 3, 19, 40, tzinfo=timezone.utc)


def _at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        Trajectory("t1", max_points=0)


def test_history_keeps_most_recent_points():
    trajectory = Trajectory("t1", max_points=10)
    for i in range(15):
        trajectory.add_point((49.0 + i * 0.01, 31.5), timestamp=_at(i))

    assert len(trajectory) == 10
    lats = [sample.position[0] for sample in trajectory]
    assert lats == pytest.approx([49.0 + i * 0.01 for i in range(5, 15)])


def test_single_sample_has_no_derived_values():
    trajectory = Trajectory("t1")
    trajectory.add_point((49.0, 31.5), timestamp=T0)

    assert trajectory.heading is None
    assert trajectory.speed is None
    assert trajectory.predict(60) is None
    assert trajectory.detect_maneuvers() == []
    assert trajectory.confidence() == LOW_CONFIDENCE


def test_prediction_unavailable_when_timestamps_match():
    trajectory = Trajectory("t1")
    trajectory.add_point((49.0, 31.5), timestamp=T0)
    trajectory.add_point((49.1, 31.5), timestamp=T0)

    assert trajectory.predict(60) is None
    assert trajectory.speed is None


def test_northbound_track_heading_speed_and_prediction():
    trajectory = Trajectory("t1")
    trajectory.add_point((49.0, 31.5), timestamp=T0)
    trajectory.add_point((49.1, 31.5), timestamp=_at(1))

    assert trajectory.heading == pytest.approx(0.0, abs=1e-6)
    assert trajectory.speed > 0

    prediction = trajectory.predict(60)
    assert prediction is not None
    assert prediction.position[0] == pytest.approx(55.1)
    assert prediction.position[1] == pytest.approx(31.5)
    assert prediction.timestamp == _at(61)
    assert prediction.confidence == LOW_CONFIDENCE


def test_stationary_sample_keeps_previous_heading():
    trajectory = Trajectory("t1")
    trajectory.add_point((0.0, 0.0), timestamp=T0)
    trajectory.add_point((0.0, 1.0), timestamp=_at(10))
    trajectory.add_point((0.0, 1.0), timestamp=_at(20))

    assert trajectory.heading == pytest.approx(90.0)
    assert trajectory.speed == 0.0


def test_steady_track_has_high_confidence():
    trajectory = Trajectory("t1")
    for i in range(6):
        trajectory.add_point((49.0 + i * 0.01, 31.5), timestamp=_at(i * 10))

    assert trajectory.confidence() == pytest.approx(1.0, abs=1e-6)


def test_confidence_ignores_north_seam():
    trajectory = Trajectory("t1")
    for i in range(8):
        lon = 0.0001 if i % 2 else 0.0
        trajectory.add_point((i * 0.01, lon), timestamp=_at(i * 10))

    assert trajectory.confidence() > 0.9


def test_erratic_track_lowers_confidence():
    trajectory = Trajectory("t1")
    path = [(0.0, 0.0), (0.0, 0.05), (0.05, 0.05), (0.05, 0.0), (0.1, 0.05)]
    for i, position in enumerate(path):
        trajectory.add_point(position, timestamp=_at(i * 10))

    confidence = trajectory.confidence()
    assert 0.1 <= confidence < 0.5


def test_maneuver_at_exact_threshold_is_flagged():
    trajectory = Trajectory("t1")
    trajectory.add_point((0.0, 0.0), timestamp=T0)
    trajectory.add_point((0.0, 1.0), timestamp=_at(10))
    trajectory.add_point((1.0, 1.0), timestamp=_at(20))

    maneuvers = trajectory.detect_maneuvers(90.0)
    assert len(maneuvers) == 1
    assert maneuvers[0].sample_index == 2
    assert maneuvers[0].heading_delta == pytest.approx(90.0)
    assert maneuvers[0].intensity == pytest.approx(1.0)

    assert trajectory.detect_maneuvers(90.001) == []


def test_maneuvers_skip_zero_length_segments():
    trajectory = Trajectory("t1")
    trajectory.add_point((0.0, 0.0), timestamp=T0)
    trajectory.add_point((0.0, 1.0), timestamp=_at(10))
    trajectory.add_point((0.0, 1.0), timestamp=_at(20))
    trajectory.add_point((0.0, 2.0), timestamp=_at(30))

    assert trajectory.detect_maneuvers(30.0) == []


def test_length_covers_retained_window_only():
    trajectory = Trajectory("t1", max_points=2)
    trajectory.add_point((0.0, 0.0), timestamp=T0)
    trajectory.add_point((0.0, 1.0), timestamp=_at(10))
    assert trajectory.length() == pytest.approx(111.195, rel=1e-4)

    trajectory.add_point((0.0, 3.0), timestamp=_at(20))
    assert trajectory.length() == pytest.approx(2 * 111.195, rel=1e-4)


def test_export_uses_lon_lat_order():
    trajectory = Trajectory("t1")
    trajectory.add_point((49.0, 31.5), timestamp=T0, altitude=500, speed=180)
    trajectory.add_point((49.1, 31.6), timestamp=_at(1), altitude=520, speed=190)

    feature = trajectory.export()

    assert feature["type"] == "Feature"
    assert feature["geometry"]["type"] == "LineString"
    assert feature["geometry"]["coordinates"] == [[31.5, 49.0], [31.6, 49.1]]
    properties = feature["properties"]
    assert properties["entity_id"] == "t1"
    assert properties["point_count"] == 2
    assert properties["timestamps"][0] == T0.isoformat()
    assert properties["altitudes"] == [500, 520]
    assert properties["speeds"] == [180, 190]


def test_statistics_and_average_speed():
    trajectory = Trajectory("t1")
    assert trajectory.statistics() is None
    assert trajectory.average_speed() is None

    trajectory.add_point((0.0, 0.0), timestamp=T0, altitude=100, speed=400)
    trajectory.add_point((0.0, 1.0), timestamp=_at(3600), altitude=300, speed=0)

    stats = trajectory.statistics()
    assert stats["point_count"] == 2
    assert stats["duration_s"] == 3600
    assert stats["avg_speed"] == 400
    assert stats["max_altitude"] == 300
    assert stats["avg_altitude"] == 200
    assert trajectory.average_speed() == pytest.approx(111.195, rel=1e-4)


def test_smoothed_positions_pull_interior_points():
    trajectory = Trajectory("t1")
    trajectory.add_point((0.0, 0.0), timestamp=T0)
    trajectory.add_point((1.0, 1.0), timestamp=_at(1))
    trajectory.add_point((0.0, 2.0), timestamp=_at(2))

    smoothed = trajectory.smoothed_positions(0.5)

    assert smoothed[0] == (0.0, 0.0)
    assert smoothed[1] == pytest.approx((0.5, 1.0))
    assert smoothed[2] == (0.0, 2.0)


def test_samples_carry_derived_speed_and_heading():
    trajectory = Trajectory("t1")
    trajectory.add_point((0.0, 0.0), timestamp=T0)
    trajectory.add_point((0.0, 1.0), timestamp=_at(3600))
    trajectory.add_point((0.0, 1.0), timestamp=_at(7200), speed=5, heading=10)

    first, second, third = trajectory.samples
    assert first.speed is None
    assert first.heading is None
    assert second.speed == pytest.approx(111.195, rel=1e-4)
    assert second.heading == pytest.approx(90.0)
    assert (third.speed, third.heading) == (5, 10)
    assert trajectory.export()["properties"]["speeds"][0] is None


def test_out_of_order_sample_keeps_previous_heading():
    trajectory = Trajectory("t1")
    trajectory.add_point((0.0, 0.0), timestamp=T0)
    trajectory.add_point((0.0, 1.0), timestamp=_at(10))
    trajectory.add_point((1.0, 1.0), timestamp=_at(5))

    assert trajectory.heading == pytest.approx(90.0)
    assert trajectory.speed is None
    assert trajectory.newest.heading == pytest.approx(90.0)
    assert trajectory.newest.speed is None
