"""Concatenate per-material submeshes into global vertex/index arrays.

The flattener walks the builders in material-slot order. For each one it
records where its vertices and indices start in the global arrays,
appends its vertices (only the channels the source mesh declared), and
appends its triangle indices shifted by the vertex offset that existed
before this submesh's vertices went in.

Result layout for builders A (2 verts, 3 idx) and B (3 verts, 3 idx):

    positions: A0 A1 B0 B1 B2
    indices:   a a a  b+2 b+2 b+2
    submeshes: (0, vstart=0, vcount=2, istart=0, icount=3)
               (1, vstart=2, vcount=3, istart=3, icount=3)
"""

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from ..profiles import AttributeChannels
from ..skin.packer import SkinPacker

_log = logging.getLogger("mesh_indexer.flatten")


@dataclass
class Submesh:
    """Range of the flattened buffers that shares one material."""
    material_index: int
    vertex_start: int
    vertex_count: int
    index_start: int
    index_count: int


@dataclass
class FlattenedMesh:
    """Deduplicated, submesh-ordered vertex and index data.

    Optional channels are either one entry per vertex or empty.
    """
    positions: List[Tuple[float, float, float]] = field(default_factory=list)
    normals: List[Tuple[float, float, float]] = field(default_factory=list)
    uvs: List[Tuple[float, float]] = field(default_factory=list)
    uvs2: List[Tuple[float, float]] = field(default_factory=list)
    colors: List[Tuple[float, float, float, float]] = field(default_factory=list)
    bone_index_words: List[int] = field(default_factory=list)
    bone_weight_vecs: List[Tuple[float, float, float, float]] = field(default_factory=list)
    indices: List[int] = field(default_factory=list)
    submeshes: List[Submesh] = field(default_factory=list)

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    def submesh_indices(self, submesh: Submesh) -> List[int]:
        """Slice of ``indices`` belonging to ``submesh``."""
        return self.indices[submesh.index_start:submesh.index_start + submesh.index_count]

    def validate(self):
        """Check the buffer invariants; raises ValueError on the first violation."""
        n = len(self.positions)
        for name in ("normals", "uvs", "uvs2", "colors",
                     "bone_index_words", "bone_weight_vecs"):
            count = len(getattr(self, name))
            if count not in (0, n):
                raise ValueError(f"{name} has {count} entries for {n} vertices")
        if len(self.indices) % 3 != 0:
            raise ValueError(f"Index count {len(self.indices)} is not a multiple of 3")
        if sum(s.vertex_count for s in self.submeshes) != n:
            raise ValueError("Submesh vertex counts do not cover the vertex buffer")
        if sum(s.index_count for s in self.submeshes) != len(self.indices):
            raise ValueError("Submesh index counts do not cover the index buffer")
        for s in self.submeshes:
            end = s.vertex_start + s.vertex_count
            for idx in self.submesh_indices(s):
                if not s.vertex_start <= idx < end:
                    raise ValueError(
                        f"Index {idx} of material {s.material_index} outside "
                        f"[{s.vertex_start}, {end})"
                    )


class MeshFlattener:
    """Merges submesh builders into one FlattenedMesh."""

    def __init__(self, channels=None, packer=None):
        self.channels = channels if channels is not None else AttributeChannels()
        self.packer = packer if packer is not None else SkinPacker()

    def flatten(self, builders) -> FlattenedMesh:
        """Merge ``builders`` (in material-slot order) into global arrays.

        Args:
            builders: sequence of SubmeshBuilder, already complete

        Returns:
            FlattenedMesh
        """
        ch = self.channels
        mesh = FlattenedMesh()
        vertex_offset = 0

        for builder in builders:
            sub = Submesh(
                material_index=builder.material_index,
                vertex_start=vertex_offset,
                vertex_count=builder.vertex_count,
                index_start=len(mesh.indices),
                index_count=builder.index_count,
            )

            for v in builder.vertices:
                mesh.positions.append(v.position)
                if ch.normals:
                    mesh.normals.append(v.normal)
                if ch.uvs:
                    mesh.uvs.append(v.uv)
                if ch.uvs2:
                    mesh.uvs2.append(v.uv2)
                if ch.colors:
                    mesh.colors.append(v.color)
                if ch.skin:
                    weights, word = self.packer.pack(v.bone_indices, v.bone_weights)
                    mesh.bone_weight_vecs.append(weights)
                    mesh.bone_index_words.append(word)

            mesh.indices.extend(i + vertex_offset for i in builder.indices)

            vertex_offset = sub.vertex_start + sub.vertex_count
            mesh.submeshes.append(sub)
            _log.debug("Submesh %d: %d vertices, %d triangles",
                       sub.material_index, sub.vertex_count, sub.index_count // 3)

        return mesh
