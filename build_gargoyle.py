#!/usr/bin/env python3
"""
Build a gargoyle: a pulsating spine loop with ribs coiling around it.

The spine is swept like any other tube. Each rib is a dependent curve: at
every spine sample the rib sits at the spine position plus a rotating offset
expressed in the spine's local frame, so the ribs follow the spine's bends.
Ribs get their own radius pulsation and their own frames, recomputed from
the rib's consecutive positions rather than borrowed from the spine.

Meshes are placed side by side in one scene; no boolean union is made.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple

from build_tube import (
    Sample,
    add_output_arguments,
    add_sampling_arguments,
    build_samples,
    configure_logging,
    mesh_from_samples,
    print_output_summary,
    sample_path,
    write_outputs,
)
from tube_curves import (
    CLOSURE_MODES,
    SEAMLESS,
    PathFn,
    Point3,
    PulsatingRadius,
    RibOffset,
    ToroidalPath,
    TubeConfigError,
    TubeParams,
    parameter_step,
    v_add,
    v_norm,
    v_sub,
    v_unit,
    validate_params,
    validate_pulsating_radius,
)
from tube_frames import Mat3, frame_from_tangent, mat_vec
from tube_mesh import NamedMesh

logger = logging.getLogger(__name__)

OffsetFn = Callable[[float], Point3]


@dataclass(frozen=True)
class GargoyleParams:
    resolution: int = 180
    sides: int = 12
    rib_sides: int = 8
    twist_turns: float = 0.0
    closure: str = SEAMLESS

    spine_major_radius: float = 30.0
    spine_minor_radius: float = 8.0
    spine_turns: float = 1.0
    spine_wraps: float = 2.0
    spine_height: float = 6.0
    spine_radius: float = 4.0
    spine_pulse_amplitude: float = 1.0
    spine_pulse_frequency: float = 4.0

    rib_count: int = 2
    rib_offset_radius: float = 5.0
    rib_wrap_frequency: float = 2.0
    rib_phase: float = 0.0
    rib_radius: float = 1.2
    rib_pulse_amplitude: float = 0.3
    rib_pulse_frequency: float = 8.0
    rib_pulse_phase: float = 90.0


def spine_path(params: GargoyleParams) -> ToroidalPath:
    return ToroidalPath(
        major_radius=params.spine_major_radius,
        minor_radius=params.spine_minor_radius,
        turns=params.spine_turns,
        wraps=params.spine_wraps,
        height=params.spine_height,
    )


def spine_radius(params: GargoyleParams) -> PulsatingRadius:
    return PulsatingRadius(
        base=params.spine_radius,
        amplitude=params.spine_pulse_amplitude,
        frequency=params.spine_pulse_frequency,
    )


def rib_radius(params: GargoyleParams) -> PulsatingRadius:
    return PulsatingRadius(
        base=params.rib_radius,
        amplitude=params.rib_pulse_amplitude,
        frequency=params.rib_pulse_frequency,
        phase=params.rib_pulse_phase,
    )


def rib_offsets(params: GargoyleParams) -> List[RibOffset]:
    # Ribs are spread evenly around the spine; two ribs sit 180 apart.
    return [
        RibOffset(
            radius=params.rib_offset_radius,
            frequency=params.rib_wrap_frequency,
            phase=params.rib_phase + 360.0 * k / params.rib_count,
        )
        for k in range(params.rib_count)
    ]


def tube_params(params: GargoyleParams) -> TubeParams:
    return TubeParams(
        resolution=params.resolution,
        sides=params.sides,
        t_start=0.0,
        t_end=360.0,
        twist_turns=params.twist_turns,
        closure=params.closure,
    )


def validate_gargoyle_params(params: GargoyleParams) -> None:
    validate_params(tube_params(params))
    validate_params(replace(tube_params(params), sides=params.rib_sides))
    if params.rib_count < 0:
        raise TubeConfigError("rib_count must be >= 0.")
    if params.rib_offset_radius < 0.0:
        raise TubeConfigError("rib_offset_radius must be >= 0.")
    validate_pulsating_radius(spine_radius(params), "spine radius")
    if params.rib_count > 0:
        validate_pulsating_radius(rib_radius(params), "rib radius")


def rib_point(center: Point3, frame: Mat3, offset: OffsetFn, t: float) -> Point3:
    return v_add(center, mat_vec(frame, offset(t)))


def derive_rib_positions(spine: Sequence[Sample], offset: OffsetFn) -> List[Point3]:
    return [rib_point(s.position, s.frame, offset, s.t) for s in spine]


def look_ahead_frame(path: PathFn, t: float, step: float) -> Mat3:
    return frame_from_tangent(v_unit(v_sub(path(t + step), path(t))))


def rib_seam_gap(path: PathFn, offset: OffsetFn, t_start: float, t_end: float, step: float) -> float:
    p0 = rib_point(path(t_start), look_ahead_frame(path, t_start, step), offset, t_start)
    p1 = rib_point(path(t_end), look_ahead_frame(path, t_end, step), offset, t_end)
    return v_norm(v_sub(p1, p0))


def build_gargoyle_meshes(params: GargoyleParams) -> Tuple[List[NamedMesh], dict]:
    validate_gargoyle_params(params)

    path = spine_path(params)
    spine_tube = tube_params(params)
    spine, spine_degenerate = sample_path(path, spine_radius(params), spine_tube)
    meshes: List[NamedMesh] = [("spine", mesh_from_samples(spine, spine_tube))]

    # Ribs carry no twist of their own; their offsets already rotate around the spine.
    rib_tube = replace(spine_tube, sides=params.rib_sides, twist_turns=0.0)
    ts = [s.t for s in spine]
    step = parameter_step(spine_tube)
    rib_field = rib_radius(params)

    rib_degenerate: List[int] = []
    rib_gaps: List[float] = []
    for k, offset in enumerate(rib_offsets(params)):
        positions = derive_rib_positions(spine, offset)
        rib, degenerate = build_samples(positions, ts, rib_field, rib_tube)
        meshes.append((f"rib_{k}", mesh_from_samples(rib, rib_tube)))
        rib_degenerate.append(degenerate)
        if params.closure == SEAMLESS:
            gap = rib_seam_gap(path, offset, spine_tube.t_start, spine_tube.t_end, step)
            scale = max(1.0, max(abs(c) for p in positions for c in p))
            if gap > 1e-6 * scale:
                logger.warning("Seamless rib_%d does not close on itself: rib ends are %.6f apart.", k, gap)
            rib_gaps.append(gap)

    stats = {
        "samples": len(spine),
        "spine_degenerate_tangents": spine_degenerate,
        "rib_degenerate_tangents": rib_degenerate,
        "rib_seam_gaps": rib_gaps,
        "meshes": len(meshes),
        "vertices": sum(len(m.vertices) for _, m in meshes),
        "faces": sum(len(m.faces) for _, m in meshes),
    }
    return meshes, stats


def main(argv: Optional[Sequence[str]] = None) -> int:
    defaults = GargoyleParams()
    parser = argparse.ArgumentParser(description="Generate a gargoyle: a pulsating spine loop with coiling ribs.")
    add_output_arguments(parser, "gargoyle")
    add_sampling_arguments(parser, resolution=defaults.resolution, sides=defaults.sides)
    parser.add_argument("--rib-sides", type=int, default=defaults.rib_sides, help="Rib cross-section side count.")
    parser.add_argument("--closure", choices=CLOSURE_MODES, default=defaults.closure, help="Tube closure mode.")

    parser.add_argument("--spine-major-radius", type=float, default=defaults.spine_major_radius, help="Spine loop radius.")
    parser.add_argument("--spine-minor-radius", type=float, default=defaults.spine_minor_radius, help="Spine radial wobble.")
    parser.add_argument("--spine-turns", type=float, default=defaults.spine_turns, help="Spine revolutions around Z.")
    parser.add_argument("--spine-wraps", type=float, default=defaults.spine_wraps, help="Spine wobbles per revolution.")
    parser.add_argument("--spine-height", type=float, default=defaults.spine_height, help="Spine height amplitude.")
    parser.add_argument("--spine-radius", type=float, default=defaults.spine_radius, help="Spine tube base radius.")
    parser.add_argument(
        "--spine-pulse-amplitude", type=float, default=defaults.spine_pulse_amplitude, help="Spine radius pulsation."
    )
    parser.add_argument(
        "--spine-pulse-frequency", type=float, default=defaults.spine_pulse_frequency, help="Spine pulses per loop."
    )

    parser.add_argument("--rib-count", type=int, default=defaults.rib_count, help="Number of ribs around the spine.")
    parser.add_argument("--rib-offset-radius", type=float, default=defaults.rib_offset_radius, help="Rib distance from spine.")
    parser.add_argument(
        "--rib-wrap-frequency", type=float, default=defaults.rib_wrap_frequency, help="Rib coils around the spine per loop."
    )
    parser.add_argument("--rib-phase", type=float, default=defaults.rib_phase, help="First rib phase in degrees.")
    parser.add_argument("--rib-radius", type=float, default=defaults.rib_radius, help="Rib tube base radius.")
    parser.add_argument(
        "--rib-pulse-amplitude", type=float, default=defaults.rib_pulse_amplitude, help="Rib radius pulsation."
    )
    parser.add_argument(
        "--rib-pulse-frequency", type=float, default=defaults.rib_pulse_frequency, help="Rib pulses per loop."
    )
    parser.add_argument("--rib-pulse-phase", type=float, default=defaults.rib_pulse_phase, help="Rib pulse phase.")

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    params = GargoyleParams(
        resolution=args.resolution,
        sides=args.sides,
        rib_sides=args.rib_sides,
        twist_turns=args.twist_turns,
        closure=args.closure,
        spine_major_radius=args.spine_major_radius,
        spine_minor_radius=args.spine_minor_radius,
        spine_turns=args.spine_turns,
        spine_wraps=args.spine_wraps,
        spine_height=args.spine_height,
        spine_radius=args.spine_radius,
        spine_pulse_amplitude=args.spine_pulse_amplitude,
        spine_pulse_frequency=args.spine_pulse_frequency,
        rib_count=args.rib_count,
        rib_offset_radius=args.rib_offset_radius,
        rib_wrap_frequency=args.rib_wrap_frequency,
        rib_phase=args.rib_phase,
        rib_radius=args.rib_radius,
        rib_pulse_amplitude=args.rib_pulse_amplitude,
        rib_pulse_frequency=args.rib_pulse_frequency,
        rib_pulse_phase=args.rib_pulse_phase,
    )

    meshes, stats = build_gargoyle_meshes(params)
    cadquery_exported = write_outputs(args, meshes, title="Gargoyle tube mesh")

    print(f"Meshes: {stats['meshes']} (spine + {stats['meshes'] - 1} ribs)")
    print(f"Samples per curve: {stats['samples']}")
    print(f"Degenerate tangents: spine={stats['spine_degenerate_tangents']}, ribs={stats['rib_degenerate_tangents']}")
    if stats["rib_seam_gaps"]:
        print(f"Largest rib seam gap: {max(stats['rib_seam_gaps']):.6f}")
    print(f"Mesh vertices: {stats['vertices']}")
    print(f"Mesh faces: {stats['faces']}")
    print_output_summary(args, cadquery_exported)
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception as exc:  # noqa: BLE001
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1)
