"""Mesh indexing: polygon soup to welded, deduplicated submesh buffers.

Typical use:
    source = SourceMesh(control_points, polygons, normals=..., uvs=...)
    mesh = build_indexed_mesh(source, "babylon")
    data = mesh_to_dict(mesh)
"""

from .convert import build_indexed_mesh
from .errors import (
    BoneIndexOverflowError, MaterialIndexError, MeshIndexError, SourceMeshError,
)
from .export.babylon import mesh_to_dict
from .export.buffers import MeshBuffers, pack_mesh_buffers
from .geometry.flatten import FlattenedMesh, MeshFlattener, Submesh
from .geometry.submesh import MaterialRouter, SubmeshBuilder
from .geometry.triangles import TriangleDeduplicator
from .geometry.vertex_key import CornerAttributes, VertexKey
from .geometry.welder import VertexWelder
from .profiles import AttributeChannels, ExportProfile, get_profile, register_profile
from .skin.binding import SkinBinding
from .skin.packer import SkinPacker
from .source.layers import LayerElement, SourceMesh, iter_corners

__version__ = "0.1.0"
