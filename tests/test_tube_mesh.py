import math

import pytest

import tube_mesh
from tube_curves import CAPPED, SEAMLESS, TubeConfigError
from tube_frames import IDENTITY
from tube_mesh import (
    Mesh,
    assemble_tube,
    check_mesh,
    export_cadquery_solid,
    make_ring,
    triangulate_faces,
    write_obj,
    write_stl_ascii,
)


def circle_rings(count, sides, radius=1.0, spacing=1.0):
    return [make_ring(IDENTITY, (0.0, 0.0, spacing * i), radius, sides) for i in range(count)]


def test_ring_reproduces_canonical_circle():
    r = 2.5
    ring = make_ring(IDENTITY, (0.0, 0.0, 0.0), r, 6)
    assert len(ring) == 6
    for j, p in enumerate(ring):
        a = math.radians(j * 60.0)
        assert p == pytest.approx((r * math.cos(a), r * math.sin(a), 0.0))


def test_ring_twist_by_one_side_shifts_indices():
    plain = make_ring(IDENTITY, (1.0, 2.0, 3.0), 1.0, 5)
    twisted = make_ring(IDENTITY, (1.0, 2.0, 3.0), 1.0, 5, twist_deg=72.0)
    for j in range(5):
        assert twisted[j] == pytest.approx(plain[(j + 1) % 5], abs=1e-12)


def test_ring_rejects_too_few_sides():
    with pytest.raises(TubeConfigError):
        make_ring(IDENTITY, (0.0, 0.0, 0.0), 1.0, 2)


def test_seamless_wraps_each_ring_pair_once():
    r_count, sides = 5, 4
    mesh = assemble_tube(circle_rings(r_count, sides), SEAMLESS)
    assert len(mesh.vertices) == r_count * sides
    assert len(mesh.faces) == r_count * sides
    assert all(len(f) == 4 for f in mesh.faces)
    check_mesh(mesh)

    for i in range(r_count):
        a = set(range(i * sides, (i + 1) * sides))
        nxt = (i + 1) % r_count
        b = set(range(nxt * sides, (nxt + 1) * sides))
        bridging = [f for f in mesh.faces if set(f[:2]) <= a and set(f[2:]) <= b]
        assert len(bridging) == sides

    seam = mesh.faces[-sides:]
    last_ring = (r_count - 1) * sides
    assert seam[0] == (last_ring, last_ring + 1, 1, 0)
    assert len(set(mesh.faces)) == len(mesh.faces)


def test_seam_shift_rotates_wrap_pairing():
    mesh = assemble_tube(circle_rings(3, 4), SEAMLESS, seam_shift=1)
    seam = mesh.faces[-4:]
    assert seam[0] == (8, 9, 2, 1)
    assert seam[3] == (11, 8, 1, 0)


def test_capped_counts_and_centers():
    r_count, sides = 4, 5
    rings = circle_rings(r_count, sides)
    mesh = assemble_tube(rings, CAPPED, centers=((0.0, 0.0, 0.0), (0.0, 0.0, 3.0)))
    assert len(mesh.vertices) == r_count * sides + 2
    assert mesh.vertices[-2] == (0.0, 0.0, 0.0)
    assert mesh.vertices[-1] == (0.0, 0.0, 3.0)
    quads = [f for f in mesh.faces if len(f) == 4]
    tris = [f for f in mesh.faces if len(f) == 3]
    assert len(quads) == (r_count - 1) * sides
    assert len(tris) == 2 * sides
    check_mesh(mesh)


def test_capped_normals_point_outward():
    rings = circle_rings(3, 6, radius=2.0, spacing=2.0)
    mesh = assemble_tube(rings, CAPPED, centers=((0.0, 0.0, 0.0), (0.0, 0.0, 4.0)))
    start_center = len(mesh.vertices) - 2
    end_center = len(mesh.vertices) - 1
    for f in mesh.faces:
        p0, p1, p2 = (mesh.vertices[i] for i in f[:3])
        n = tube_mesh.face_normal(p0, p1, p2)
        if f[0] == start_center:
            assert n[2] < -0.99
        elif f[0] == end_center:
            assert n[2] > 0.99
        else:
            cx = sum(mesh.vertices[i][0] for i in f) / len(f)
            cy = sum(mesh.vertices[i][1] for i in f) / len(f)
            assert n[0] * cx + n[1] * cy > 0.0


def test_assemble_rejects_bad_configurations():
    with pytest.raises(TubeConfigError):
        assemble_tube(circle_rings(1, 4), CAPPED, centers=((0.0, 0.0, 0.0), (0.0, 0.0, 0.0)))
    with pytest.raises(TubeConfigError):
        assemble_tube(circle_rings(2, 4), SEAMLESS)
    with pytest.raises(TubeConfigError):
        assemble_tube(circle_rings(3, 4), "open")
    with pytest.raises(ValueError):
        assemble_tube(circle_rings(3, 4), CAPPED)


def test_triangulate_splits_quads():
    assert triangulate_faces([(0, 1, 2, 3), (4, 5, 6)]) == [(0, 1, 2), (0, 2, 3), (4, 5, 6)]


def test_check_mesh_rejects_out_of_range_index():
    mesh = Mesh(vertices=[(0.0, 0.0, 0.0)] * 3, faces=[(0, 1, 3)])
    with pytest.raises(ValueError):
        check_mesh(mesh)
    with pytest.raises(ValueError):
        check_mesh(Mesh(vertices=[(0.0, 0.0, 0.0)] * 5, faces=[(0, 1, 2, 3, 4)]))


def test_write_obj_groups_and_offsets(tmp_path):
    a = assemble_tube(circle_rings(3, 3), SEAMLESS)
    b = assemble_tube(circle_rings(3, 3), SEAMLESS)
    out = tmp_path / "nested" / "scene.obj"
    write_obj(out, [("spine", a), ("rib_0", b)])
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("#")
    assert "g spine" in lines
    assert "g rib_0" in lines
    assert sum(1 for line in lines if line.startswith("v ")) == 18
    faces = [line for line in lines if line.startswith("f ")]
    assert len(faces) == 18
    assert max(int(tok) for line in faces for tok in line.split()[1:]) == 18


def test_write_stl_triangulates(tmp_path):
    mesh = assemble_tube(circle_rings(3, 4), CAPPED, centers=((0.0, 0.0, 0.0), (0.0, 0.0, 2.0)))
    out = tmp_path / "tube.stl"
    write_stl_ascii(out, [("tube", mesh)], solid_name="tube")
    text = out.read_text(encoding="utf-8")
    assert text.startswith("solid tube")
    assert text.rstrip().endswith("endsolid tube")
    # 8 side quads -> 16 triangles, plus 8 cap triangles.
    assert text.count("facet normal") == 24


def test_cadquery_export_skipped_without_cadquery(tmp_path, monkeypatch):
    monkeypatch.setattr(tube_mesh, "cq", None)
    mesh = assemble_tube(circle_rings(3, 4), CAPPED, centers=((0.0, 0.0, 0.0), (0.0, 0.0, 2.0)))
    assert export_cadquery_solid(tmp_path / "tube.step", [("tube", mesh)]) is False
    assert not (tmp_path / "tube.step").exists()


def test_cadquery_export_writes_step(tmp_path):
    pytest.importorskip("cadquery")
    mesh = assemble_tube(circle_rings(3, 6, radius=2.0), CAPPED, centers=((0.0, 0.0, 0.0), (0.0, 0.0, 2.0)))
    out = tmp_path / "tube.step"
    assert export_cadquery_solid(out, [("tube", mesh)]) is True
    assert out.exists() and out.stat().st_size > 0
