"""Per-material submesh accumulation.

Each material slot owns one SubmeshBuilder: a VertexWelder plus a
TriangleDeduplicator and the local index list of accepted triangles.
Builders only grow during the pass over source polygons. Once the pass
is done they are handed to the MeshFlattener and not touched again.

MaterialRouter is the push API used by readers: it creates one builder
per declared slot (at least one), routes corners and triangles by
material index and counts rejected duplicates for the build summary.
"""

import logging
from typing import List

from ..errors import MaterialIndexError
from .triangles import TriangleDeduplicator
from .vertex_key import NO_BONES, ZERO4, VertexKey, make_key
from .welder import VertexWelder

_log = logging.getLogger("mesh_indexer.submesh")


class SubmeshBuilder:
    """Welded vertices and deduplicated triangles for one material slot."""

    def __init__(self, material_index=0):
        self.material_index = material_index
        self.welder = VertexWelder()
        self.deduplicator = TriangleDeduplicator()
        self.indices: List[int] = []

    @property
    def vertices(self) -> List[VertexKey]:
        return self.welder.vertices

    @property
    def vertex_count(self) -> int:
        return len(self.welder)

    @property
    def index_count(self) -> int:
        return len(self.indices)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    @property
    def rejected_triangles(self) -> int:
        return self.deduplicator.rejected

    def add_vertex(self, key: VertexKey) -> int:
        """Weld ``key`` and return its local index."""
        return self.welder.weld(key)

    def add_triangle(self, i0, i1, i2) -> bool:
        """Append the triangle unless this exact triple was already added.

        A rejected triangle contributes no indices. Its vertices stay in
        the vertex list even if nothing references them any more.

        Returns:
            True if the triangle was appended, False if it was a duplicate.
        """
        if not self.deduplicator.accept((i0, i1, i2)):
            return False
        self.indices.extend((i0, i1, i2))
        return True


class MaterialRouter:
    """Routes corners and triangles to the builder of their material slot."""

    def __init__(self, material_count=1):
        # A mesh without materials still gets one submesh
        count = max(1, int(material_count))
        self.builders = [SubmeshBuilder(i) for i in range(count)]
        self._consumed = False

    @property
    def material_count(self) -> int:
        return len(self.builders)

    def builder(self, material_index) -> SubmeshBuilder:
        if self._consumed:
            raise RuntimeError("Submesh builders were already handed to the flattener")
        if not 0 <= material_index < len(self.builders):
            raise MaterialIndexError(material_index, len(self.builders))
        return self.builders[material_index]

    def add_corner(self, material_index, attrs,
                   bone_indices=NO_BONES, bone_weights=ZERO4) -> int:
        """Weld one corner into its material's submesh.

        Args:
            material_index: material slot of the enclosing polygon
            attrs: CornerAttributes (or a prebuilt VertexKey)
            bone_indices: packed-order bone indices for the corner
            bone_weights: matching weights

        Returns:
            local vertex index within that submesh
        """
        if isinstance(attrs, VertexKey):
            key = attrs
        else:
            key = make_key(attrs, bone_indices, bone_weights)
        return self.builder(material_index).add_vertex(key)

    def add_triangle(self, material_index, indices) -> bool:
        """Submit a triangle of local indices; False if it was dropped."""
        i0, i1, i2 = indices
        accepted = self.builder(material_index).add_triangle(i0, i1, i2)
        if not accepted:
            _log.debug("Duplicate triangle (%d, %d, %d) in material %d dropped",
                       i0, i1, i2, material_index)
        return accepted

    def take_builders(self) -> List[SubmeshBuilder]:
        """Hand the builders over, in material-slot order.

        The router cannot be used afterwards.
        """
        builders = self.builders
        self.builders = []
        self._consumed = True

        for b in builders:
            if b.rejected_triangles:
                _log.warning("Material %d: %d duplicate triangle(s) dropped",
                             b.material_index, b.rejected_triangles)
        return builders
