import logging
import math

import pytest

from tube_curves import HelixPath, LinePath, v_dot, v_unit
from tube_frames import (
    FORWARD,
    IDENTITY,
    build_frames,
    build_tangents,
    frame_from_tangent,
    mat_column,
    mat_vec,
    reference_axis,
)


def assert_orthonormal(m):
    for a in range(3):
        for b in range(3):
            expected = 1.0 if a == b else 0.0
            assert v_dot(m[a], m[b]) == pytest.approx(expected, abs=1e-12)


def test_forward_tangent_gives_identity():
    assert frame_from_tangent((0.0, 0.0, 1.0)) == IDENTITY


@pytest.mark.parametrize(
    "tangent",
    [
        (1.0, 0.0, 0.0),
        (0.0, -1.0, 0.0),
        (1.0, 2.0, 3.0),
        (0.05, 0.0, 1.0),
        (0.0, 0.3, -1.0),
        (0.0, 0.0, -1.0),
        (1e-7, 0.0, -1.0),
    ],
)
def test_frame_maps_forward_onto_tangent(tangent):
    t = v_unit(tangent)
    m = frame_from_tangent(t)
    assert_orthonormal(m)
    mapped = mat_vec(m, FORWARD)
    assert mapped == pytest.approx(t, abs=1e-6)
    assert mat_column(m, 2) == pytest.approx(t, abs=1e-6)


def test_reference_axis_switches_near_forward():
    assert reference_axis((0.0, 0.0, 1.0)) == (0.0, 1.0, 0.0)
    assert reference_axis(v_unit((0.1, 0.0, -1.0))) == (0.0, 1.0, 0.0)
    assert reference_axis((1.0, 0.0, 0.0)) == FORWARD


def test_straight_line_frames_are_identical():
    line = LinePath(start=(1.0, -2.0, 0.5), end=(11.0, 8.0, 4.0))
    positions = [line(t) for t in (0.0, 45.0, 90.0, 135.0, 180.0, 225.0, 270.0, 315.0, 360.0)]
    frames, degenerate = build_frames(positions, closed=False)
    assert degenerate == 0
    for m in frames[1:]:
        for row, first_row in zip(m, frames[0]):
            assert row == pytest.approx(first_row, abs=1e-12)


def test_closed_path_wraps_last_tangent():
    square = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]
    tangents, degenerate = build_tangents(square, closed=True)
    assert degenerate == 0
    assert tangents[-1] == pytest.approx((0.0, -1.0, 0.0))


def test_open_path_extrapolates_last_tangent():
    bent = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 2.0, 0.0)]
    tangents, _ = build_tangents(bent, closed=False)
    assert tangents[-1] == pytest.approx((0.0, 1.0, 0.0))
    assert tangents[-2] == pytest.approx((0.0, 1.0, 0.0))


def test_degenerate_tangent_reuses_previous(caplog):
    positions = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0)]
    with caplog.at_level(logging.DEBUG, logger="tube_frames"):
        tangents, degenerate = build_tangents(positions, closed=False)
    assert degenerate == 1
    assert tangents[1] == pytest.approx((1.0, 0.0, 0.0))
    debug = [r.getMessage() for r in caplog.records if r.levelno == logging.DEBUG]
    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert debug == ["Degenerate tangent at sample 1; reusing previous direction."]
    assert len(warnings) == 1
    assert "1 of 4 path samples had a zero-length tangent" in warnings[0]


def test_degenerate_first_tangent_falls_back_to_forward():
    positions = [(0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (1.0, 0.0, 0.0)]
    tangents, degenerate = build_tangents(positions, closed=False)
    assert degenerate == 1
    assert tangents[0] == FORWARD
    frames, _ = build_frames(positions, closed=False)
    assert frames[0] == IDENTITY


def test_tangents_need_two_samples():
    with pytest.raises(ValueError):
        build_tangents([(0.0, 0.0, 0.0)], closed=False)


def test_frame_rotation_angle_matches_tangent_tilt():
    t = (math.sin(math.radians(30.0)), 0.0, math.cos(math.radians(30.0)))
    m = frame_from_tangent(t)
    # Rotation about +Y by 30 degrees.
    assert m[0] == pytest.approx((math.cos(math.radians(30.0)), 0.0, math.sin(math.radians(30.0))))
    assert m[1] == pytest.approx((0.0, 1.0, 0.0))


def test_backward_tangent_is_half_turn_about_reference():
    m = frame_from_tangent((0.0, 0.0, -1.0))
    assert m == ((-1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, -1.0))


def max_ring_axis_step(frames):
    worst = 0.0
    for a, b in zip(frames, frames[1:]):
        c = max(-1.0, min(1.0, v_dot(mat_column(a, 0), mat_column(b, 0))))
        worst = max(worst, math.degrees(math.acos(c)))
    return worst


@pytest.mark.parametrize("pitch", [200.0, -200.0])
def test_steep_helix_frames_do_not_spin(pitch):
    helix = HelixPath(radius=1.0, pitch=pitch, turns=1.0)
    positions = [helix(i * 10.0) for i in range(37)]
    frames, _ = build_frames(positions, closed=False)
    for m in frames:
        assert_orthonormal(m)
    assert max_ring_axis_step(frames) < 1.0


def test_helix_roll_matches_going_up_and_down():
    up = [HelixPath(radius=1.0, pitch=200.0)(i * 10.0) for i in range(37)]
    down = [HelixPath(radius=1.0, pitch=-200.0)(i * 10.0) for i in range(37)]
    up_step = max_ring_axis_step(build_frames(up, closed=False)[0])
    down_step = max_ring_axis_step(build_frames(down, closed=False)[0])
    assert down_step == pytest.approx(up_step, abs=0.05)
