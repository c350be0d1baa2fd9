#!/usr/bin/env python3
"""
Orientation frames along a sampled path.

Each frame is a 3x3 rotation (row-major tuple of rows) that carries the
canonical forward axis +Z onto the local path tangent. Cross-section rings are
laid out in the local XY plane and rotated by the frame, so the ring plane is
always normal to the path.

Tangents come from the look-ahead difference p[i+1] - p[i]. Closed paths wrap
the last sample onto the first; open paths extrapolate the last step. A
zero-length step reuses the most recent valid tangent (or +Z at the very
start) and is counted so callers can report pathological curve/resolution
combinations.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

from tube_curves import Point3, v_cross, v_dot, v_norm, v_sub

logger = logging.getLogger(__name__)

Mat3 = Tuple[Point3, Point3, Point3]

FORWARD: Point3 = (0.0, 0.0, 1.0)
ALT_REFERENCE: Point3 = (0.0, 1.0, 0.0)
IDENTITY: Mat3 = ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))

PARALLEL_DOT = 0.9
AXIS_EPS = 1e-5
DEGENERATE_EPS = 1e-12


def mat_vec(m: Mat3, v: Point3) -> Point3:
    return (v_dot(m[0], v), v_dot(m[1], v), v_dot(m[2], v))


def mat_column(m: Mat3, col: int) -> Point3:
    return (m[0][col], m[1][col], m[2][col])


def rodrigues(axis: Point3, cos_a: float, sin_a: float) -> Mat3:
    """Rotation about a unit axis, R = I cos + sin [k]x + (1 - cos) k k^T."""
    kx, ky, kz = axis
    c = cos_a
    s = sin_a
    t = 1.0 - c
    return (
        (c + t * kx * kx, t * kx * ky - s * kz, t * kx * kz + s * ky),
        (t * ky * kx + s * kz, c + t * ky * ky, t * ky * kz - s * kx),
        (t * kz * kx - s * ky, t * kz * ky + s * kx, c + t * kz * kz),
    )


def reference_axis(tangent: Point3) -> Point3:
    if abs(v_dot(FORWARD, tangent)) > PARALLEL_DOT:
        return ALT_REFERENCE
    return FORWARD


def frame_from_tangent(tangent: Point3) -> Mat3:
    """Rotation taking +Z onto `tangent` (expected to be unit length).

    Away from the forward axis this is the minimal rotation about
    cross(+Z, tangent). Within `PARALLEL_DOT` of +/-Z that axis swings
    around with small changes of the tangent, so the frame is built from
    the +Y reference instead: x = cross(ref, tangent), y = cross(tangent, x).
    Both give the identity for a tangent of +Z.
    """
    cos_a = v_dot(FORWARD, tangent)
    if abs(cos_a) > PARALLEL_DOT:
        x = v_cross(reference_axis(tangent), tangent)
        x_len = v_norm(x)
        x = (x[0] / x_len, x[1] / x_len, x[2] / x_len)
        y = v_cross(tangent, x)
        return (
            (x[0], y[0], tangent[0]),
            (x[1], y[1], tangent[1]),
            (x[2], y[2], tangent[2]),
        )
    axis = v_cross(FORWARD, tangent)
    sin_a = v_norm(axis)
    if sin_a < AXIS_EPS:
        return IDENTITY
    k = (axis[0] / sin_a, axis[1] / sin_a, axis[2] / sin_a)
    return rodrigues(k, cos_a, sin_a)


def build_tangents(positions: Sequence[Point3], closed: bool) -> Tuple[List[Point3], int]:
    n = len(positions)
    if n < 2:
        raise ValueError("Tangents require at least two path samples.")

    tangents: List[Point3] = []
    last_valid: Optional[Point3] = None
    degenerate = 0
    for i in range(n):
        if i < n - 1:
            d = v_sub(positions[i + 1], positions[i])
        elif closed:
            d = v_sub(positions[0], positions[i])
        else:
            d = v_sub(positions[i], positions[i - 1])

        length = v_norm(d)
        if length <= DEGENERATE_EPS or not math.isfinite(length):
            degenerate += 1
            logger.debug("Degenerate tangent at sample %d; reusing previous direction.", i)
            tangents.append(last_valid if last_valid is not None else FORWARD)
            continue

        last_valid = (d[0] / length, d[1] / length, d[2] / length)
        tangents.append(last_valid)

    if degenerate:
        logger.warning(
            "%d of %d path samples had a zero-length tangent; increase resolution or check the curve.",
            degenerate,
            n,
        )
    return tangents, degenerate


def build_frames(positions: Sequence[Point3], closed: bool) -> Tuple[List[Mat3], int]:
    tangents, degenerate = build_tangents(positions, closed)
    return [frame_from_tangent(t) for t in tangents], degenerate
