#!/usr/bin/env python3
"""
Sweep a polygonal cross-section along a parametric curve into a tube mesh.

Pipeline:
- Sample the path and radius at uniform parameter steps.
- Build one orientation frame per sample from the look-ahead tangent.
- Place a ring of cross-section vertices per sample, twisted proportionally
  to the sample index.
- Bridge consecutive rings with quads and either wrap the last ring onto the
  first (seamless) or cap both ends with triangle fans (capped).

Output:
- OBJ mesh (quads kept)
- STL triangle mesh (optional)
- Optional CadQuery solid export if CadQuery is installed.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from tube_curves import (
    CAPPED,
    CLOSURE_MODES,
    SEAMLESS,
    CirclePath,
    ConstantRadius,
    HelixPath,
    LinePath,
    PathFn,
    Point3,
    PulsatingRadius,
    RadiusFn,
    ToroidalPath,
    TubeConfigError,
    TubeParams,
    parameter_values,
    v_norm,
    v_sub,
    validate_params,
    validate_pulsating_radius,
)
from tube_frames import Mat3, build_frames
from tube_mesh import Mesh, assemble_tube, export_cadquery_solid, make_ring, mesh_stats, write_obj, write_stl_ascii

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sample:
    t: float
    position: Point3
    radius: float
    frame: Mat3
    twist: float


def twist_for_index(params: TubeParams, i: int) -> float:
    if params.twist_turns == 0.0:
        return 0.0
    denom = params.resolution if params.closure == SEAMLESS else params.resolution - 1
    return params.twist_turns * 360.0 * i / float(denom)


def seam_shift_for(params: TubeParams) -> int:
    steps = params.twist_turns * params.sides
    shift = int(round(steps))
    if abs(steps - shift) > 1e-9:
        logger.debug(
            "Twist of %.4f turns is not a whole number of side steps; the seam keeps a %.4f-step rotation.",
            params.twist_turns,
            steps - shift,
        )
    return shift % params.sides


def seam_gap(path: PathFn, params: TubeParams) -> float:
    return v_norm(v_sub(path(params.t_end), path(params.t_start)))


def build_samples(
    positions: Sequence[Point3],
    ts: Sequence[float],
    radius: RadiusFn,
    params: TubeParams,
) -> Tuple[List[Sample], int]:
    frames, degenerate = build_frames(positions, closed=params.closure == SEAMLESS)
    samples = [
        Sample(t=t, position=p, radius=radius(t), frame=m, twist=twist_for_index(params, i))
        for i, (t, p, m) in enumerate(zip(ts, positions, frames))
    ]
    return samples, degenerate


def sample_path(path: PathFn, radius: RadiusFn, params: TubeParams) -> Tuple[List[Sample], int]:
    validate_params(params)
    ts = parameter_values(params)
    positions = [path(t) for t in ts]
    return build_samples(positions, ts, radius, params)


def mesh_from_samples(samples: Sequence[Sample], params: TubeParams) -> Mesh:
    rings = [make_ring(s.frame, s.position, s.radius, params.sides, s.twist) for s in samples]
    if params.closure == SEAMLESS:
        return assemble_tube(rings, SEAMLESS, seam_shift=seam_shift_for(params))
    return assemble_tube(rings, CAPPED, centers=(samples[0].position, samples[-1].position))


def build_tube_mesh(path: PathFn, radius: RadiusFn, params: TubeParams) -> Tuple[Mesh, dict]:
    samples, degenerate = sample_path(path, radius, params)
    mesh = mesh_from_samples(samples, params)

    stats = {
        "samples": len(samples),
        "sides": params.sides,
        "closure": params.closure,
        "degenerate_tangents": degenerate,
    }
    if params.closure == SEAMLESS:
        gap = seam_gap(path, params)
        scale = max(1.0, max(abs(c) for s in samples for c in s.position))
        if gap > 1e-6 * scale:
            logger.warning("Seamless tube on an open curve: path ends are %.6f apart.", gap)
        stats["seam_gap"] = gap
        stats["seam_shift"] = seam_shift_for(params)
    stats.update(mesh_stats(mesh))
    return mesh, stats


def make_path(args: argparse.Namespace) -> PathFn:
    if args.path == "torus":
        return ToroidalPath(
            major_radius=args.major_radius,
            minor_radius=args.minor_radius,
            turns=args.turns,
            wraps=args.wraps,
            height=args.height,
        )
    if args.path == "circle":
        return CirclePath(radius=args.major_radius, height=args.height)
    if args.path == "helix":
        return HelixPath(radius=args.major_radius, pitch=args.pitch, turns=args.turns)
    if args.path == "line":
        return LinePath(start=(0.0, 0.0, 0.0), end=(0.0, 0.0, args.height), t_start=args.t_start, t_end=args.t_end)
    raise TubeConfigError(f"Unsupported path: {args.path}")


def make_radius(args: argparse.Namespace) -> RadiusFn:
    if args.pulse_amplitude == 0.0:
        if args.radius <= 0.0:
            raise TubeConfigError("--radius must be > 0.")
        return ConstantRadius(args.radius)
    field = PulsatingRadius(
        base=args.radius,
        amplitude=args.pulse_amplitude,
        frequency=args.pulse_frequency,
        phase=args.pulse_phase,
    )
    validate_pulsating_radius(field, "--radius")
    return field


def add_output_arguments(parser: argparse.ArgumentParser, stem: str) -> None:
    parser.add_argument("--output-obj", type=Path, default=Path(f"{stem}.obj"), help="Output OBJ path.")
    parser.add_argument("--output-stl", type=Path, default=Path(f"{stem}.stl"), help="Output STL path.")
    parser.add_argument("--no-stl", action="store_true", help="Disable STL export and only write OBJ.")
    parser.add_argument(
        "--output-cadquery",
        type=Path,
        default=None,
        help="Optional: export the tube as a CadQuery solid (STEP/STL supported by extension).",
    )
    parser.add_argument("--verbose", action="store_true", help="Log per-sample diagnostics.")


def add_sampling_arguments(
    parser: argparse.ArgumentParser, resolution: int, sides: int, twist_turns: float = 0.0
) -> None:
    parser.add_argument("--resolution", type=int, default=resolution, help="Number of path samples (rings).")
    parser.add_argument("--sides", type=int, default=sides, help="Cross-section side count.")
    parser.add_argument("--twist-turns", type=float, default=twist_turns, help="Cross-section turns accumulated along the path.")


def configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")


def write_outputs(args: argparse.Namespace, meshes: Sequence[Tuple[str, Mesh]], title: str) -> bool:
    write_obj(args.output_obj, meshes, title=title)
    if not args.no_stl:
        write_stl_ascii(args.output_stl, meshes, solid_name=title.replace(" ", "_"))
    if args.output_cadquery is not None:
        return export_cadquery_solid(args.output_cadquery, meshes)
    return False


def print_output_summary(args: argparse.Namespace, cadquery_exported: bool) -> None:
    print(f"Wrote OBJ: {args.output_obj}")
    if not args.no_stl:
        print(f"Wrote STL: {args.output_stl}")
    if args.output_cadquery is not None:
        if cadquery_exported:
            print(f"Wrote CadQuery solid: {args.output_cadquery}")
        else:
            print("CadQuery not available; skipped --output-cadquery export.")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Sweep a polygonal tube along a parametric curve.")
    add_output_arguments(parser, "tube")
    parser.add_argument("--path", choices=("torus", "circle", "helix", "line"), default="torus", help="Path family.")
    parser.add_argument(
        "--closure",
        choices=CLOSURE_MODES,
        default=None,
        help="seamless wraps the last ring onto the first; capped closes both ends (default depends on --path).",
    )
    parser.add_argument("--major-radius", type=float, default=40.0, help="Path radius (torus/circle/helix).")
    parser.add_argument("--minor-radius", type=float, default=12.0, help="Torus radial oscillation amplitude.")
    parser.add_argument("--turns", type=float, default=2.0, help="Revolutions around the Z axis.")
    parser.add_argument("--wraps", type=float, default=3.0, help="Torus oscillations per revolution.")
    parser.add_argument("--height", type=float, default=10.0, help="Torus height amplitude or line length.")
    parser.add_argument("--pitch", type=float, default=8.0, help="Helix rise per revolution.")
    parser.add_argument("--t-start", type=float, default=0.0, help="Parameter start in degrees.")
    parser.add_argument("--t-end", type=float, default=360.0, help="Parameter end in degrees.")

    parser.add_argument("--radius", type=float, default=3.0, help="Tube base radius.")
    parser.add_argument("--pulse-amplitude", type=float, default=0.0, help="Radius pulsation amplitude.")
    parser.add_argument("--pulse-frequency", type=float, default=6.0, help="Radius pulsations per 360 of t.")
    parser.add_argument("--pulse-phase", type=float, default=0.0, help="Radius pulsation phase in degrees.")
    add_sampling_arguments(parser, resolution=240, sides=12)

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    closure = args.closure
    if closure is None:
        closure = SEAMLESS if args.path in ("torus", "circle") else CAPPED

    params = TubeParams(
        resolution=args.resolution,
        sides=args.sides,
        t_start=args.t_start,
        t_end=args.t_end,
        twist_turns=args.twist_turns,
        closure=closure,
    )
    validate_params(params)

    mesh, stats = build_tube_mesh(make_path(args), make_radius(args), params)
    cadquery_exported = write_outputs(args, [("tube", mesh)], title="Parametric tube mesh")

    print(f"Path: {args.path} ({stats['closure']})")
    print(f"Samples: {stats['samples']} x {stats['sides']} sides")
    print(f"Degenerate tangents: {stats['degenerate_tangents']}")
    if closure == SEAMLESS:
        print(f"Seam gap: {stats['seam_gap']:.6f} (shift {stats['seam_shift']})")
    print(f"Mesh vertices: {stats['vertices']}")
    print(f"Mesh faces: {stats['faces']} ({stats['quads']} quads, {stats['triangles']} triangles)")
    print_output_summary(args, cadquery_exported)
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception as exc:  # noqa: BLE001
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1)
