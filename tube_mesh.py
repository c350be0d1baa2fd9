#!/usr/bin/env python3
"""
Cross-section rings and tube mesh assembly.

A ring is N vertices placed on a circle in the local XY plane of a frame and
moved to the sample center. Rings are bridged with quads in a fixed winding
order so normals point away from the path. Seamless tubes wrap the last ring
onto the first; capped tubes append one center vertex per end and fan them
into the end rings.

Writers:
- OBJ (quads kept, one group per named mesh)
- ASCII STL (quads split into triangles)
- Optional CadQuery solid export (STEP/STL by extension) if CadQuery is installed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from tube_curves import CLOSURE_MODES, SEAMLESS, Point3, TubeConfigError, v_add, v_cross, v_norm, v_sub
from tube_frames import Mat3, mat_vec

try:
    import cadquery as cq  # type: ignore
except Exception:
    cq = None

logger = logging.getLogger(__name__)

Face = Tuple[int, ...]
NamedMesh = Tuple[str, "Mesh"]


@dataclass
class Mesh:
    vertices: List[Point3]
    faces: List[Face]


def make_ring(frame: Mat3, center: Point3, radius: float, sides: int, twist_deg: float = 0.0) -> List[Point3]:
    if sides < 3:
        raise TubeConfigError("A ring needs at least 3 sides.")
    step = 360.0 / float(sides)
    ring: List[Point3] = []
    for j in range(sides):
        a = math.radians(j * step + twist_deg)
        local = (radius * math.cos(a), radius * math.sin(a), 0.0)
        ring.append(v_add(center, mat_vec(frame, local)))
    return ring


def add_vertices(mesh: Mesh, pts: Sequence[Point3]) -> List[int]:
    start = len(mesh.vertices)
    mesh.vertices.extend(pts)
    return list(range(start, start + len(pts)))


def add_face(mesh: Mesh, *idx: int) -> None:
    if len(set(idx)) != len(idx):
        return
    mesh.faces.append(tuple(idx))


def bridge_rings(mesh: Mesh, ring_a: Sequence[int], ring_b: Sequence[int], shift: int = 0) -> None:
    """Quad strip from ring_a to ring_b; vertex j of ring_a meets vertex j + shift of ring_b."""
    if len(ring_a) != len(ring_b):
        raise ValueError("Cannot bridge rings with different vertex counts.")
    n = len(ring_a)
    for j in range(n):
        k = (j + 1) % n
        add_face(mesh, ring_a[j], ring_a[k], ring_b[(k + shift) % n], ring_b[(j + shift) % n])


def fan_from_center(mesh: Mesh, center_idx: int, ring: Sequence[int], flip: bool) -> None:
    n = len(ring)
    for i in range(n):
        j = (i + 1) % n
        if not flip:
            add_face(mesh, center_idx, ring[i], ring[j])
        else:
            add_face(mesh, center_idx, ring[j], ring[i])


def assemble_tube(
    rings: Sequence[Sequence[Point3]],
    closure: str,
    centers: Optional[Tuple[Point3, Point3]] = None,
    seam_shift: int = 0,
) -> Mesh:
    """Flatten rings into one vertex buffer and connect them.

    `centers` are the source path positions of the first and last ring and
    are required for capped tubes. `seam_shift` only applies to seamless
    tubes and offsets the vertex pairing where the last ring meets the first.
    """
    if closure not in CLOSURE_MODES:
        raise TubeConfigError(f"Unknown closure mode: {closure!r}")
    r_count = len(rings)
    if r_count < 2:
        raise TubeConfigError("A tube needs at least 2 rings.")
    if closure == SEAMLESS and r_count < 3:
        raise TubeConfigError("A seamless tube needs at least 3 rings.")
    sides = len(rings[0])
    if sides < 3:
        raise TubeConfigError("Rings need at least 3 vertices.")
    if any(len(r) != sides for r in rings):
        raise ValueError("All rings must have the same vertex count.")

    mesh = Mesh(vertices=[], faces=[])
    ring_idx = [add_vertices(mesh, ring) for ring in rings]

    for i in range(r_count - 1):
        bridge_rings(mesh, ring_idx[i], ring_idx[i + 1])

    if closure == SEAMLESS:
        bridge_rings(mesh, ring_idx[-1], ring_idx[0], shift=seam_shift)
        return mesh

    if centers is None:
        raise ValueError("Capped tubes need the first and last ring centers.")
    start_idx, end_idx = add_vertices(mesh, [centers[0], centers[1]])
    # The path leaves the start ring, so its cap faces backwards.
    fan_from_center(mesh, start_idx, ring_idx[0], flip=True)
    fan_from_center(mesh, end_idx, ring_idx[-1], flip=False)
    return mesh


def check_mesh(mesh: Mesh) -> None:
    n = len(mesh.vertices)
    for f in mesh.faces:
        if len(f) not in (3, 4):
            raise ValueError(f"Unsupported face arity {len(f)}; expected 3 or 4.")
        for idx in f:
            if idx < 0 or idx >= n:
                raise ValueError(f"Face index {idx} out of range for {n} vertices.")


def triangulate_faces(faces: Sequence[Face]) -> List[Tuple[int, int, int]]:
    tris: List[Tuple[int, int, int]] = []
    for f in faces:
        if len(f) == 3:
            tris.append((f[0], f[1], f[2]))
        else:
            tris.append((f[0], f[1], f[2]))
            tris.append((f[0], f[2], f[3]))
    return tris


def face_normal(p0: Point3, p1: Point3, p2: Point3) -> Point3:
    n = v_cross(v_sub(p1, p0), v_sub(p2, p0))
    length = v_norm(n)
    if length <= 1e-12:
        return (0.0, 0.0, 0.0)
    return (n[0] / length, n[1] / length, n[2] / length)


def write_obj(path: Path, meshes: Sequence[NamedMesh], title: str = "Parametric tube mesh") -> None:
    for _, mesh in meshes:
        check_mesh(mesh)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(f"# {title}\n")
        v_offset = 1
        for name, mesh in meshes:
            f.write(f"g {name}\n")
            for x, y, z in mesh.vertices:
                f.write(f"v {x:.6f} {y:.6f} {z:.6f}\n")
            for face in mesh.faces:
                f.write("f " + " ".join(str(v_offset + i) for i in face) + "\n")
            v_offset += len(mesh.vertices)


def write_stl_ascii(path: Path, meshes: Sequence[NamedMesh], solid_name: str = "tube") -> None:
    for _, mesh in meshes:
        check_mesh(mesh)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(f"solid {solid_name}\n")
        for _, mesh in meshes:
            for a, b, c in triangulate_faces(mesh.faces):
                p0 = mesh.vertices[a]
                p1 = mesh.vertices[b]
                p2 = mesh.vertices[c]
                n = face_normal(p0, p1, p2)
                f.write(f"  facet normal {n[0]:.6e} {n[1]:.6e} {n[2]:.6e}\n")
                f.write("    outer loop\n")
                f.write(f"      vertex {p0[0]:.6e} {p0[1]:.6e} {p0[2]:.6e}\n")
                f.write(f"      vertex {p1[0]:.6e} {p1[1]:.6e} {p1[2]:.6e}\n")
                f.write(f"      vertex {p2[0]:.6e} {p2[1]:.6e} {p2[2]:.6e}\n")
                f.write("    endloop\n")
                f.write("  endfacet\n")
        f.write(f"endsolid {solid_name}\n")


def export_cadquery_solid(path: Path, meshes: Sequence[NamedMesh]) -> bool:
    if cq is None:
        return False

    solids = []
    for name, mesh in meshes:
        check_mesh(mesh)
        faces = []
        for a, b, c in triangulate_faces(mesh.faces):
            p0, p1, p2 = mesh.vertices[a], mesh.vertices[b], mesh.vertices[c]
            # Collapsed rings produce zero-area triangles that OCC cannot turn into faces.
            if v_norm(v_cross(v_sub(p1, p0), v_sub(p2, p0))) <= 1e-12:
                continue
            wire = cq.Wire.makePolygon([cq.Vector(*p) for p in (p0, p1, p2, p0)])
            faces.append(cq.Face.makeFromWires(wire))
        if not faces:
            logger.warning("Mesh %r has no usable faces; skipped in CadQuery export.", name)
            continue
        shell = cq.Shell.makeShell(faces)
        solids.append(cq.Solid.makeSolid(shell))

    if not solids:
        return False
    compound = cq.Compound.makeCompound(solids)
    path.parent.mkdir(parents=True, exist_ok=True)
    cq.exporters.export(compound, str(path))
    return True


def mesh_stats(mesh: Mesh) -> dict:
    quads = sum(1 for f in mesh.faces if len(f) == 4)
    return {
        "vertices": len(mesh.vertices),
        "faces": len(mesh.faces),
        "quads": quads,
        "triangles": len(mesh.faces) - quads,
    }

