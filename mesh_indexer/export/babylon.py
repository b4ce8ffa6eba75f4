"""Babylon mesh geometry fields for a FlattenedMesh.

Produces the geometry part of a Babylon ``.babylon`` mesh object as
plain Python data (lists and dicts). Turning it into text is left to the
caller (``json.dumps`` or similar).

Field layout:
    positions        3 floats per vertex
    normals          3 floats per vertex
    uvs, uvs2        2 floats per vertex
    colors           4 floats per vertex (r, g, b, a)
    matricesIndices  1 packed uint32 per vertex
    matricesWeights  4 floats per vertex
    indices          3 per triangle, optionally re-wound (i0, i2, i1)
    subMeshes        one dict per material slot

Empty channels are omitted entirely.
"""


def flatten_components(values):
    """[(a, b), (c, d)] -> [a, b, c, d]"""
    return [c for v in values for c in v]


def triangle_indices(indices, flip_winding=False):
    """Copy the index list, swapping corners 1 and 2 of every triangle if asked."""
    if not flip_winding:
        return list(indices)
    out = []
    for t in range(len(indices) // 3):
        i0, i1, i2 = indices[t * 3:t * 3 + 3]
        out.extend((i0, i2, i1))
    return out


def submesh_to_dict(submesh):
    return {
        "materialIndex": submesh.material_index,
        "verticesStart": submesh.vertex_start,
        "verticesCount": submesh.vertex_count,
        "indexStart": submesh.index_start,
        "indexCount": submesh.index_count,
    }


def mesh_to_dict(mesh, flip_winding=None, mesh_id=None, name=None, profile=None):
    """Build the Babylon geometry dict for ``mesh``.

    Args:
        mesh: FlattenedMesh
        flip_winding: emit every triangle as (i0, i2, i1); when None, taken
                      from ``profile`` (False without one)
        mesh_id: optional "id" field
        name: optional "name" field (defaults to mesh_id)
        profile: optional ExportProfile supplying flip_winding

    Returns:
        dict ready for JSON encoding
    """
    if flip_winding is None:
        flip_winding = profile.flip_winding if profile is not None else False

    out = {}
    if mesh_id is not None:
        out["id"] = mesh_id
        out["name"] = name if name is not None else mesh_id
    elif name is not None:
        out["name"] = name

    out["subMeshes"] = [submesh_to_dict(s) for s in mesh.submeshes]

    if mesh.positions:
        out["positions"] = flatten_components(mesh.positions)
    if mesh.normals:
        out["normals"] = flatten_components(mesh.normals)
    if mesh.uvs:
        out["uvs"] = flatten_components(mesh.uvs)
    if mesh.uvs2:
        out["uvs2"] = flatten_components(mesh.uvs2)
    if mesh.colors:
        out["colors"] = flatten_components(mesh.colors)
    if mesh.indices:
        out["indices"] = triangle_indices(mesh.indices, flip_winding)
    if mesh.bone_index_words:
        out["matricesIndices"] = list(mesh.bone_index_words)
    if mesh.bone_weight_vecs:
        out["matricesWeights"] = flatten_components(mesh.bone_weight_vecs)

    return out
