"""Turn a SourceMesh into a FlattenedMesh.

Strategy:
1. One SubmeshBuilder per declared material slot (at least one)
2. For every polygon, in source order: resolve its three corners, fold
   in skin influences of the corner's control point, weld each corner
   into the polygon's material submesh
3. Submit the triangle of local indices; exact repeats are dropped
4. Flatten the builders in slot order, emitting only the channels the
   source declares

Index values depend only on traversal order, so two runs over the same
source give identical output.
"""

import logging

from .geometry.flatten import FlattenedMesh, MeshFlattener
from .geometry.submesh import MaterialRouter
from .geometry.vertex_key import NO_BONES, ZERO4
from .profiles import get_profile
from .skin.packer import SkinPacker
from .source.layers import SourceMesh, iter_corners

_log = logging.getLogger("mesh_indexer.convert")


def build_indexed_mesh(source: SourceMesh, profile=None) -> FlattenedMesh:
    """Weld, deduplicate and flatten ``source``.

    Args:
        source: SourceMesh from a scene reader
        profile: ExportProfile or profile id (default profile if None)

    Returns:
        FlattenedMesh

    Raises:
        SourceMeshError: for malformed source data
        MaterialIndexError: if a polygon names an undeclared material slot
        BoneIndexOverflowError: if a bone index cannot be packed in a byte
    """
    if profile is None or isinstance(profile, str):
        profile = get_profile(profile)

    skin = source.skin

    router = MaterialRouter(source.material_count)
    tri = [0, 0, 0]

    for _poly, corner, attrs in iter_corners(source, flip_z=profile.flip_z):
        if skin is not None:
            bones, weights = skin.influences_for(attrs.control_point, profile.max_influences)
        else:
            bones, weights = NO_BONES, ZERO4

        tri[corner] = router.add_corner(attrs.material_index, attrs, bones, weights)
        if corner == 2:
            router.add_triangle(attrs.material_index, tri)

    channels = source.channels()
    flattener = MeshFlattener(channels, SkinPacker())
    mesh = flattener.flatten(router.take_builders())

    _log.info("Mesh '%s': %d polygons -> %d vertices, %d triangles, %d submesh(es)",
              source.name, len(source.polygons), mesh.vertex_count,
              mesh.triangle_count, len(mesh.submeshes))
    return mesh
