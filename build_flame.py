#!/usr/bin/env python3
"""
Build a flame from several tapering strands twisting around a common axis.

Each strand is an open curve rising from a base circle and spiralling in
toward the tip; its radius tapers linearly from root to tip. Every strand is
swept into a capped tube with explicit vertex/face buffers, so neighbouring
strands can interpenetrate freely without any hull or boolean step. An
optional central core tube fills the middle of the flame.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from build_tube import (
    add_output_arguments,
    add_sampling_arguments,
    build_tube_mesh,
    configure_logging,
    print_output_summary,
    write_outputs,
)
from tube_curves import (
    CAPPED,
    FlameStrandPath,
    LinePath,
    TaperedRadius,
    TubeConfigError,
    TubeParams,
    validate_params,
    validate_tapered_radius,
)
from tube_mesh import NamedMesh


@dataclass(frozen=True)
class FlameParams:
    strands: int = 5
    height: float = 60.0
    base_radius: float = 8.0
    turns: float = 0.75
    taper: float = 0.85
    sway: float = 1.5
    sway_frequency: float = 3.0
    strand_radius: float = 3.0
    tip_radius: float = 0.3
    resolution: int = 80
    sides: int = 10
    twist_turns: float = 0.5
    core: bool = True
    core_radius: float = 5.0
    core_height_fraction: float = 0.7


def strand_paths(params: FlameParams) -> List[FlameStrandPath]:
    return [
        FlameStrandPath(
            base_radius=params.base_radius,
            height=params.height,
            turns=params.turns,
            phase=360.0 * k / params.strands,
            taper=params.taper,
            sway=params.sway,
            sway_frequency=params.sway_frequency,
        )
        for k in range(params.strands)
    ]


def strand_tube_params(params: FlameParams) -> TubeParams:
    return TubeParams(
        resolution=params.resolution,
        sides=params.sides,
        t_start=0.0,
        t_end=360.0,
        twist_turns=params.twist_turns,
        closure=CAPPED,
    )


def validate_flame_params(params: FlameParams) -> None:
    validate_params(strand_tube_params(params))
    if params.strands < 1:
        raise TubeConfigError("strands must be >= 1.")
    if params.height <= 0.0:
        raise TubeConfigError("height must be > 0.")
    if params.base_radius < 0.0:
        raise TubeConfigError("base_radius must be >= 0.")
    if not (0.0 <= params.taper <= 1.0):
        raise TubeConfigError("taper must be within [0, 1].")
    validate_tapered_radius(TaperedRadius(params.strand_radius, params.tip_radius), "strand radius")
    if params.core:
        if not (0.0 < params.core_height_fraction <= 1.0):
            raise TubeConfigError("core_height_fraction must be within (0, 1].")
        validate_tapered_radius(TaperedRadius(params.core_radius, params.tip_radius), "core radius")


def build_flame_meshes(params: FlameParams) -> Tuple[List[NamedMesh], dict]:
    validate_flame_params(params)

    tube = strand_tube_params(params)
    radius = TaperedRadius(start=params.strand_radius, end=params.tip_radius)
    meshes: List[NamedMesh] = []
    degenerate = 0
    for k, path in enumerate(strand_paths(params)):
        mesh, stats = build_tube_mesh(path, radius, tube)
        meshes.append((f"strand_{k}", mesh))
        degenerate += stats["degenerate_tangents"]

    if params.core:
        core_path = LinePath(start=(0.0, 0.0, 0.0), end=(0.0, 0.0, params.height * params.core_height_fraction))
        core_radius = TaperedRadius(start=params.core_radius, end=params.tip_radius)
        mesh, stats = build_tube_mesh(core_path, core_radius, tube)
        meshes.append(("core", mesh))
        degenerate += stats["degenerate_tangents"]

    stats = {
        "strands": params.strands,
        "meshes": len(meshes),
        "samples": params.resolution,
        "degenerate_tangents": degenerate,
        "vertices": sum(len(m.vertices) for _, m in meshes),
        "faces": sum(len(m.faces) for _, m in meshes),
    }
    return meshes, stats


def main(argv: Optional[Sequence[str]] = None) -> int:
    defaults = FlameParams()
    parser = argparse.ArgumentParser(description="Generate a multi-strand flame from tapering twisted tubes.")
    add_output_arguments(parser, "flame")
    add_sampling_arguments(
        parser, resolution=defaults.resolution, sides=defaults.sides, twist_turns=defaults.twist_turns
    )
    parser.add_argument("--strands", type=int, default=defaults.strands, help="Number of flame strands.")
    parser.add_argument("--height", type=float, default=defaults.height, help="Flame height.")
    parser.add_argument("--base-radius", type=float, default=defaults.base_radius, help="Strand root circle radius.")
    parser.add_argument("--turns", type=float, default=defaults.turns, help="Strand revolutions from root to tip.")
    parser.add_argument("--taper", type=float, default=defaults.taper, help="Inward pull toward the tip (0..1).")
    parser.add_argument("--sway", type=float, default=defaults.sway, help="Lateral flicker amplitude.")
    parser.add_argument("--sway-frequency", type=float, default=defaults.sway_frequency, help="Flickers per strand.")
    parser.add_argument("--strand-radius", type=float, default=defaults.strand_radius, help="Strand tube root radius.")
    parser.add_argument("--tip-radius", type=float, default=defaults.tip_radius, help="Tube radius at the tip.")
    parser.add_argument("--no-core", action="store_true", help="Do not add the central core tube.")
    parser.add_argument("--core-radius", type=float, default=defaults.core_radius, help="Core tube root radius.")
    parser.add_argument(
        "--core-height-fraction",
        type=float,
        default=defaults.core_height_fraction,
        help="Core height as a fraction of the flame height.",
    )
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    params = FlameParams(
        strands=args.strands,
        height=args.height,
        base_radius=args.base_radius,
        turns=args.turns,
        taper=args.taper,
        sway=args.sway,
        sway_frequency=args.sway_frequency,
        strand_radius=args.strand_radius,
        tip_radius=args.tip_radius,
        resolution=args.resolution,
        sides=args.sides,
        twist_turns=args.twist_turns,
        core=not args.no_core,
        core_radius=args.core_radius,
        core_height_fraction=args.core_height_fraction,
    )

    meshes, stats = build_flame_meshes(params)
    cadquery_exported = write_outputs(args, meshes, title="Flame tube mesh")

    print(f"Strands: {stats['strands']} ({'with' if params.core else 'no'} core)")
    print(f"Samples per strand: {stats['samples']} x {params.sides} sides")
    print(f"Degenerate tangents: {stats['degenerate_tangents']}")
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
