"""Tests for the Blender mesh adapter using stand-in mesh objects."""

import logging
from types import SimpleNamespace

import pytest

from mesh_indexer.convert import build_indexed_mesh
from mesh_indexer.errors import SourceMeshError
from mesh_indexer.profiles import ExportProfile
from mesh_indexer.source.blender import source_from_mesh_data
from mesh_indexer.source.layers import BY_CONTROL_POINT, INDEX_TO_DIRECT

NO_FLIP = ExportProfile(profile_id="test", name="Test", flip_z=False)


class FakeMesh:
    """Just enough of bpy.types.Mesh for the reader."""

    def __init__(self, coords, tri_loops, loop_verts, materials=None,
                 corner_normals=None, uv_layers=(), color=None, groups=None):
        groups = groups or [[] for _ in coords]
        self.vertices = [
            SimpleNamespace(co=c, normal=(0.0, 0.0, 1.0),
                            groups=[SimpleNamespace(group=g, weight=w) for g, w in grp])
            for c, grp in zip(coords, groups)
        ]
        self.loops = [SimpleNamespace(vertex_index=v) for v in loop_verts]
        materials = materials or [0] * len(tri_loops)
        self.loop_triangles = [
            SimpleNamespace(loops=loops, material_index=m)
            for loops, m in zip(tri_loops, materials)
        ]
        if corner_normals is not None:
            self.corner_normals = [SimpleNamespace(vector=n) for n in corner_normals]
        else:
            self.corner_normals = []
        self.uv_layers = [
            SimpleNamespace(data=[SimpleNamespace(uv=uv) for uv in layer])
            for layer in uv_layers
        ]
        self.color_attributes = SimpleNamespace(active=color)
        self.calc_calls = 0

    def calc_loop_triangles(self):
        self.calc_calls += 1


# Quad as two faces: loops 0..5, one per triangle corner
COORDS = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]
TRI_LOOPS = [(0, 1, 2), (3, 4, 5)]
LOOP_VERTS = [0, 1, 2, 0, 2, 3]


def _quad(**kw):
    return FakeMesh(COORDS, TRI_LOOPS, LOOP_VERTS, **kw)


def test_reads_topology_and_rotates_to_y_up():
    source = source_from_mesh_data(_quad(), name="Quad")
    assert source.polygons == [(0, 1, 2), (0, 2, 3)]
    assert source.control_points[2] == (1.0, 0.0, -1.0)
    # no corner normals: per-vertex normals, rotated
    assert source.normals.mapping == BY_CONTROL_POINT
    assert source.normals.values[0] == (0.0, 1.0, -0.0)


def test_keeps_blender_axes_without_y_up():
    source = source_from_mesh_data(_quad(), y_up=False)
    assert source.control_points[2] == (1.0, 1.0, 0.0)


def test_corner_normals_and_uvs_by_loop():
    uv = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
    mesh = _quad(corner_normals=[(0.0, 0.0, 1.0)] * 6, uv_layers=[uv, uv])
    source = source_from_mesh_data(mesh, y_up=False)
    assert source.uvs.reference == INDEX_TO_DIRECT
    assert source.channels().names() == ["normals", "uvs", "uvs2"]

    result = build_indexed_mesh(source, NO_FLIP)
    assert result.vertex_count == 4
    assert result.indices == [0, 1, 2, 0, 2, 3]
    assert result.uvs == [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
    assert result.uvs2 == result.uvs


def test_corner_colors_split_shared_vertex():
    red, blue = (1.0, 0.0, 0.0, 1.0), (0.0, 0.0, 1.0, 1.0)
    color = SimpleNamespace(
        name="Col", domain='CORNER',
        data=[SimpleNamespace(color=c) for c in (red, red, red, blue, blue, blue)],
    )
    result = build_indexed_mesh(source_from_mesh_data(_quad(color=color)), NO_FLIP)
    assert result.vertex_count == 6


def test_unsupported_color_domain_is_skipped():
    color = SimpleNamespace(name="Col", domain='FACE', data=[])
    source = source_from_mesh_data(_quad(color=color))
    assert source.colors is None


def test_material_slots():
    source = source_from_mesh_data(_quad(materials=[1, 0]), material_count=2)
    result = build_indexed_mesh(source, NO_FLIP)
    assert [s.index_count for s in result.submeshes] == [3, 3]


def test_vertex_groups_become_skin_binding():
    groups = [[(0, 1.0)], [(0, 0.5), (1, 0.5)], [(1, 1.0), (7, 0.3)], []]
    source = source_from_mesh_data(
        _quad(groups=groups),
        vertex_group_names={0: "Root", 1: "Arm"},
        bone_names=["Root", "Arm", "Hand"],
    )
    assert source.skin.bone_count == 3
    assert source.skin.influences[1] == [(0, 0.5), (1, 0.5)]
    assert source.skin.influences[2] == [(1, 1.0)]

    result = build_indexed_mesh(source, NO_FLIP)
    assert result.bone_index_words[0] == 0x03030300


def test_mesh_without_triangles_rejected():
    empty = FakeMesh([], [], [])
    with pytest.raises(SourceMeshError):
        source_from_mesh_data(empty)
    assert empty.calc_calls == 1


def test_stale_material_index_uses_last_slot(caplog):
    with caplog.at_level(logging.INFO, logger="mesh_indexer.blender"):
        source = source_from_mesh_data(_quad(materials=[0, 3]), material_count=2)
    assert source.materials.values == [0, 1]
    assert "1 triangle(s)" in caplog.text

    result = build_indexed_mesh(source, NO_FLIP)
    assert [s.index_count for s in result.submeshes] == [3, 3]


def test_single_slot_absorbs_stale_indices():
    source = source_from_mesh_data(_quad(materials=[0, 1]), material_count=1)
    result = build_indexed_mesh(source, NO_FLIP)
    assert len(result.submeshes) == 1
    assert result.submeshes[0].index_count == 6
