"""End-to-end tests: SourceMesh -> FlattenedMesh."""

import pytest

from mesh_indexer.convert import build_indexed_mesh
from mesh_indexer.errors import BoneIndexOverflowError, MaterialIndexError, SourceMeshError
from mesh_indexer.profiles import ExportProfile
from mesh_indexer.skin.binding import SkinBinding
from mesh_indexer.source.layers import (
    ALL_SAME, BY_CONTROL_POINT, BY_POLYGON, BY_POLYGON_VERTEX, INDEX_TO_DIRECT,
    LayerElement, SourceMesh, iter_corners,
)

NO_FLIP = ExportProfile(profile_id="test", name="Test", flip_z=False)

QUAD_POINTS = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]
QUAD_TRIS = [(0, 1, 2), (0, 2, 3)]


def _quad(**kw):
    return SourceMesh(control_points=list(QUAD_POINTS), polygons=list(QUAD_TRIS), **kw)


def test_quad_shares_diagonal_vertices():
    mesh = build_indexed_mesh(_quad(), NO_FLIP)
    assert mesh.vertex_count == 4
    assert mesh.indices == [0, 1, 2, 0, 2, 3]
    assert mesh.normals == []
    assert len(mesh.submeshes) == 1


def test_per_corner_normals_split_vertices():
    normals = LayerElement(
        values=[(0.0, 0.0, 1.0)] * 3 + [(0.0, 0.0, -1.0)] * 3,
        mapping=BY_POLYGON_VERTEX,
    )
    mesh = build_indexed_mesh(_quad(normals=normals), NO_FLIP)
    assert mesh.vertex_count == 6
    assert mesh.indices == [0, 1, 2, 3, 4, 5]
    assert len(mesh.normals) == 6


def test_control_point_normals_keep_sharing():
    normals = LayerElement(values=[(0.0, 0.0, 1.0)] * 4, mapping=BY_CONTROL_POINT)
    mesh = build_indexed_mesh(_quad(normals=normals), NO_FLIP)
    assert mesh.vertex_count == 4


def test_index_to_direct_uvs():
    uvs = LayerElement(
        values=[(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)],
        mapping=BY_POLYGON_VERTEX,
        reference=INDEX_TO_DIRECT,
        indices=[0, 1, 2, 0, 2, 3],
    )
    mesh = build_indexed_mesh(_quad(uvs=uvs), NO_FLIP)
    assert mesh.uvs == [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]


def test_uv2_ignored_without_first_uv_set():
    uvs2 = LayerElement(values=[(0.0, 0.0)] * 4, mapping=BY_CONTROL_POINT)
    mesh = build_indexed_mesh(_quad(uvs2=uvs2), NO_FLIP)
    assert mesh.uvs2 == []


def test_z_flip_applies_to_positions_and_normals():
    source = SourceMesh(
        control_points=[(0.0, 0.0, 1.0), (1.0, 0.0, 2.0), (0.0, 1.0, 3.0)],
        polygons=[(0, 1, 2)],
        normals=LayerElement(values=[(0.0, 0.0, 1.0)], mapping=ALL_SAME),
    )
    mesh = build_indexed_mesh(source, "babylon")
    assert [p[2] for p in mesh.positions] == [-1.0, -2.0, -3.0]
    assert mesh.normals[0] == (0.0, 0.0, -1.0)


def test_materials_by_polygon():
    materials = LayerElement(values=[1, 0], mapping=BY_POLYGON)
    mesh = build_indexed_mesh(_quad(materials=materials, material_count=2), NO_FLIP)
    sub0, sub1 = mesh.submeshes
    assert (sub0.material_index, sub0.vertex_count, sub0.index_count) == (0, 3, 3)
    assert (sub1.material_index, sub1.vertex_start, sub1.vertex_count) == (1, 3, 3)
    # second polygon went to material 0 and comes first in the buffers
    assert mesh.positions[:3] == [(0.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]
    assert mesh.indices == [0, 1, 2, 3, 4, 5]


def test_materials_all_same():
    materials = LayerElement(values=[2], mapping=ALL_SAME)
    mesh = build_indexed_mesh(_quad(materials=materials, material_count=3), NO_FLIP)
    counts = [s.index_count for s in mesh.submeshes]
    assert counts == [0, 0, 6]
    assert mesh.submesh_indices(mesh.submeshes[2]) == [0, 1, 2, 0, 2, 3]


def test_material_layer_ignored_when_no_materials_declared():
    materials = LayerElement(values=[3, 4], mapping=BY_POLYGON)
    mesh = build_indexed_mesh(_quad(materials=materials, material_count=0), NO_FLIP)
    assert len(mesh.submeshes) == 1
    assert mesh.submeshes[0].index_count == 6


def test_material_out_of_range_raises():
    materials = LayerElement(values=[0, 5], mapping=BY_POLYGON)
    with pytest.raises(MaterialIndexError):
        build_indexed_mesh(_quad(materials=materials, material_count=2), NO_FLIP)


def test_duplicate_polygon_dropped():
    source = _quad()
    source.polygons.append((0, 1, 2))
    mesh = build_indexed_mesh(source, NO_FLIP)
    assert mesh.indices == [0, 1, 2, 0, 2, 3]


def test_skinned_mesh_packs_influences():
    skin = SkinBinding(bone_count=3, influences=[
        [(0, 1.0)],
        [(0, 0.5), (1, 0.5)],
        [(1, 0.7), (2, 0.2), (0, 0.1)],
        [],
    ])
    mesh = build_indexed_mesh(_quad(skin=skin), NO_FLIP)
    assert mesh.bone_index_words[0] == (3 << 24) | (3 << 16) | (3 << 8) | 0
    assert mesh.bone_index_words[2] == (3 << 24) | (0 << 16) | (2 << 8) | 1
    assert mesh.bone_index_words[3] == 0x03030303
    for w in mesh.bone_weight_vecs:
        assert sum(w) == pytest.approx(1.0)
    assert mesh.bone_weight_vecs[3] == (0.0, 0.0, 0.0, 1.0)


def test_skin_sentinel_overflow_is_reported():
    skin = SkinBinding(bone_count=256, influences=[[(0, 1.0)]] * 4)
    with pytest.raises(BoneIndexOverflowError):
        build_indexed_mesh(_quad(skin=skin), NO_FLIP)


def test_same_input_gives_identical_output():
    normals = LayerElement(values=[(0.0, 0.0, 1.0)] * 6, mapping=BY_POLYGON_VERTEX)
    first = build_indexed_mesh(_quad(normals=normals), "babylon")
    second = build_indexed_mesh(_quad(normals=normals), "babylon")
    assert first == second


def test_non_triangle_polygon_rejected():
    source = SourceMesh(control_points=list(QUAD_POINTS), polygons=[(0, 1, 2, 3)])
    with pytest.raises(SourceMeshError, match="triangulate"):
        build_indexed_mesh(source, NO_FLIP)


def test_bad_control_point_rejected():
    source = SourceMesh(control_points=list(QUAD_POINTS), polygons=[(0, 1, 9)])
    with pytest.raises(SourceMeshError):
        list(iter_corners(source))


def test_missing_layer_entry_rejected():
    uvs = LayerElement(values=[(0.0, 0.0)], mapping=BY_POLYGON_VERTEX)
    with pytest.raises(SourceMeshError):
        build_indexed_mesh(_quad(uvs=uvs), NO_FLIP)


def test_layer_mode_validation():
    with pytest.raises(SourceMeshError):
        LayerElement(values=[], mapping="BY_EDGE")
    with pytest.raises(SourceMeshError):
        LayerElement(values=[], reference=INDEX_TO_DIRECT)
    with pytest.raises(SourceMeshError):
        _quad(materials=LayerElement(values=[0], mapping=BY_CONTROL_POINT))


def test_unknown_profile_id():
    with pytest.raises(KeyError):
        build_indexed_mesh(_quad(), "no-such-profile")


def test_negative_layer_index_rejected():
    uvs = LayerElement(
        values=[(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)],
        mapping=BY_POLYGON_VERTEX,
        reference=INDEX_TO_DIRECT,
        indices=[0, 1, -1, 0, 1, 0],
    )
    with pytest.raises(SourceMeshError):
        build_indexed_mesh(_quad(uvs=uvs), NO_FLIP)
