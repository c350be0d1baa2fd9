#!/usr/bin/env python3
"""
Parametric curves and radius fields for tube sweeps.

All evaluators are pure functions of the curve parameter t, given in degrees
(one full revolution = 360). Paths return a 3D point, radius fields return a
scalar. NaN/Inf in the coefficients propagate untouched.

Also holds the shared vector helpers, the tube configuration dataclass and
the configuration error raised before any generation starts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List, Tuple

Point3 = Tuple[float, float, float]

PathFn = Callable[[float], Point3]
RadiusFn = Callable[[float], float]

SEAMLESS = "seamless"
CAPPED = "capped"
CLOSURE_MODES = (SEAMLESS, CAPPED)


class TubeConfigError(ValueError):
    """Raised when a tube configuration is rejected before generation."""


def v_add(a: Point3, b: Point3) -> Point3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def v_sub(a: Point3, b: Point3) -> Point3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def v_mul(a: Point3, k: float) -> Point3:
    return (a[0] * k, a[1] * k, a[2] * k)


def v_dot(a: Point3, b: Point3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def v_cross(a: Point3, b: Point3) -> Point3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def v_norm(a: Point3) -> float:
    return math.sqrt(a[0] * a[0] + a[1] * a[1] + a[2] * a[2])


def v_unit(a: Point3, fallback: Point3 = (0.0, 0.0, 1.0)) -> Point3:
    n = v_norm(a)
    if n <= 1e-12:
        return fallback
    return (a[0] / n, a[1] / n, a[2] / n)


def sin_deg(angle: float) -> float:
    return math.sin(math.radians(angle))


def cos_deg(angle: float) -> float:
    return math.cos(math.radians(angle))


@dataclass(frozen=True)
class TubeParams:
    resolution: int = 120
    sides: int = 12
    t_start: float = 0.0
    t_end: float = 360.0
    twist_turns: float = 0.0
    closure: str = SEAMLESS


def validate_params(params: TubeParams) -> None:
    if params.closure not in CLOSURE_MODES:
        raise TubeConfigError(f"Unknown closure mode: {params.closure!r} (expected one of {CLOSURE_MODES}).")
    if params.resolution < 2:
        raise TubeConfigError("resolution must be >= 2.")
    if params.closure == SEAMLESS and params.resolution < 3:
        raise TubeConfigError("Seamless tubes need resolution >= 3.")
    if params.sides < 3:
        raise TubeConfigError("sides must be >= 3.")
    if not (math.isfinite(params.t_start) and math.isfinite(params.t_end)):
        raise TubeConfigError("Parameter range must be finite.")
    if params.t_end == params.t_start:
        raise TubeConfigError("Parameter range is empty: t_end must differ from t_start.")
    if not math.isfinite(params.twist_turns):
        raise TubeConfigError("twist_turns must be finite.")


def parameter_step(params: TubeParams) -> float:
    # Seamless runs stop one step short of t_end; the seam wraps back to t_start.
    span = params.t_end - params.t_start
    if params.closure == SEAMLESS:
        return span / float(params.resolution)
    return span / float(params.resolution - 1)


def parameter_values(params: TubeParams) -> List[float]:
    step = parameter_step(params)
    return [params.t_start + i * step for i in range(params.resolution)]


@dataclass(frozen=True)
class CirclePath:
    radius: float = 10.0
    height: float = 0.0

    def __call__(self, t: float) -> Point3:
        return (self.radius * cos_deg(t), self.radius * sin_deg(t), self.height)


@dataclass(frozen=True)
class LinePath:
    start: Point3 = (0.0, 0.0, 0.0)
    end: Point3 = (0.0, 0.0, 10.0)
    t_start: float = 0.0
    t_end: float = 360.0

    def __call__(self, t: float) -> Point3:
        u = (t - self.t_start) / (self.t_end - self.t_start)
        return v_add(self.start, v_mul(v_sub(self.end, self.start), u))


@dataclass(frozen=True)
class ToroidalPath:
    """Torus-knot style loop.

    The path winds `turns` times around the Z axis while its distance from
    the axis and its height oscillate `wraps` times per revolution. Integer
    turns and wraps give a closed loop over t in [0, 360).
    """

    major_radius: float = 40.0
    minor_radius: float = 12.0
    turns: float = 2.0
    wraps: float = 3.0
    height: float = 10.0

    def __call__(self, t: float) -> Point3:
        r = self.major_radius + self.minor_radius * cos_deg(self.wraps * t)
        return (
            r * cos_deg(self.turns * t),
            r * sin_deg(self.turns * t),
            self.height * sin_deg(self.wraps * t),
        )


@dataclass(frozen=True)
class HelixPath:
    radius: float = 10.0
    pitch: float = 5.0
    turns: float = 1.0

    def __call__(self, t: float) -> Point3:
        a = self.turns * t
        return (self.radius * cos_deg(a), self.radius * sin_deg(a), self.pitch * a / 360.0)


@dataclass(frozen=True)
class FlameStrandPath:
    """One rising strand of a flame, spiralling inward toward the tip.

    t runs over [0, 360]; at t=0 the strand sits on a circle of
    `base_radius` at z=0 and at t=360 it reaches `height`, having shrunk to
    `base_radius * (1 - taper)`. `sway` adds a lateral flicker.
    """

    base_radius: float = 8.0
    height: float = 60.0
    turns: float = 1.0
    phase: float = 0.0
    taper: float = 0.9
    sway: float = 2.0
    sway_frequency: float = 3.0

    def __call__(self, t: float) -> Point3:
        u = t / 360.0
        r = self.base_radius * (1.0 - self.taper * u) + self.sway * sin_deg(self.sway_frequency * t + self.phase)
        a = self.turns * t + self.phase
        return (r * cos_deg(a), r * sin_deg(a), self.height * u)


@dataclass(frozen=True)
class ConstantRadius:
    value: float = 1.0

    def __call__(self, t: float) -> float:
        return self.value


@dataclass(frozen=True)
class PulsatingRadius:
    base: float = 3.0
    amplitude: float = 1.0
    frequency: float = 6.0
    phase: float = 0.0

    def __call__(self, t: float) -> float:
        return self.base + self.amplitude * sin_deg(t * self.frequency + self.phase)


@dataclass(frozen=True)
class TaperedRadius:
    start: float = 3.0
    end: float = 0.5
    t_start: float = 0.0
    t_end: float = 360.0

    def __call__(self, t: float) -> float:
        u = (t - self.t_start) / (self.t_end - self.t_start)
        return self.start + (self.end - self.start) * u


@dataclass(frozen=True)
class RibOffset:
    """Rotating local offset for curves derived from a spine frame."""

    radius: float = 5.0
    frequency: float = 2.0
    phase: float = 0.0

    def __call__(self, t: float) -> Point3:
        a = self.frequency * t + self.phase
        return (self.radius * cos_deg(a), self.radius * sin_deg(a), 0.0)


def validate_pulsating_radius(field: PulsatingRadius, name: str = "radius") -> None:
    if not field.base > 0.0:
        raise TubeConfigError(f"{name} base must be > 0.")
    if abs(field.amplitude) >= field.base:
        raise TubeConfigError(f"{name} amplitude must be smaller than its base so the tube never collapses.")


def validate_tapered_radius(field: TaperedRadius, name: str = "radius") -> None:
    if field.start < 0.0 or field.end < 0.0:
        raise TubeConfigError(f"{name} taper radii must be >= 0.")
    if max(field.start, field.end) <= 0.0:
        raise TubeConfigError(f"{name} taper must have a positive radius somewhere.")
    if field.t_end == field.t_start:
        raise TubeConfigError(f"{name} taper range is empty.")
