"""Pack a FlattenedMesh into little-endian binary vertex/index buffers.

One blob per channel, tightly packed:
    positions, normals   Vec3f  (12 bytes per vertex)
    uvs, uvs2            Vec2f  (8 bytes per vertex)
    colors               Vec4f  (16 bytes per vertex)
    bone_indices         uint32 (4 bytes per vertex, packed bytes b0..b3)
    bone_weights         Vec4f  (16 bytes per vertex)
    indices              uint16 or uint32

Channels that are empty on the mesh are absent from the result.
"""

import logging
import struct
from dataclasses import dataclass, field
from typing import Dict

from ..errors import SourceMeshError

_log = logging.getLogger("mesh_indexer.buffers")

UINT16_LIMIT = 0xFFFF

_CHANNEL_FORMATS = (
    # (channel, FlattenedMesh attribute, struct format)
    ("positions", "positions", "<fff"),
    ("normals", "normals", "<fff"),
    ("uvs", "uvs", "<ff"),
    ("uvs2", "uvs2", "<ff"),
    ("colors", "colors", "<ffff"),
    ("bone_weights", "bone_weight_vecs", "<ffff"),
)


@dataclass
class MeshBuffers:
    """Packed buffers plus the layout needed to bind them."""
    channels: Dict[str, bytes] = field(default_factory=dict)
    strides: Dict[str, int] = field(default_factory=dict)
    indices: bytes = b""
    index_format: str = "uint16"
    vertex_count: int = 0
    index_count: int = 0

    @property
    def index_stride(self) -> int:
        return 2 if self.index_format == "uint16" else 4


def _pack_vectors(values, fmt):
    size = struct.calcsize(fmt)
    data = bytearray(len(values) * size)
    for i, v in enumerate(values):
        struct.pack_into(fmt, data, i * size, *v)
    return bytes(data)


def _pack_scalars(values, fmt):
    return struct.pack("<" + fmt * len(values), *values)


def choose_index_format(indices, index_format="auto"):
    """Resolve "auto" and validate an explicit uint16 request.

    Raises:
        SourceMeshError: uint16 requested but an index does not fit
    """
    largest = max(indices) if indices else 0
    if index_format == "auto":
        return "uint16" if largest <= UINT16_LIMIT else "uint32"
    if index_format == "uint16" and largest > UINT16_LIMIT:
        raise SourceMeshError(
            f"Index {largest} exceeds the uint16 index limit ({UINT16_LIMIT}); "
            f"use uint32 indices or split the mesh"
        )
    if index_format not in ("uint16", "uint32"):
        raise ValueError(f"Unknown index format {index_format!r}")
    return index_format


def pack_mesh_buffers(mesh, index_format=None, profile=None) -> MeshBuffers:
    """Pack every non-empty channel of ``mesh``.

    Args:
        mesh: FlattenedMesh
        index_format: "auto", "uint16" or "uint32"; when None, taken from
                      ``profile`` ("auto" without one)
        profile: optional ExportProfile supplying index_format

    Returns:
        MeshBuffers
    """
    if index_format is None:
        index_format = profile.index_format if profile is not None else "auto"

    result = MeshBuffers(vertex_count=mesh.vertex_count, index_count=len(mesh.indices))

    for channel, attr, fmt in _CHANNEL_FORMATS:
        values = getattr(mesh, attr)
        if values:
            result.channels[channel] = _pack_vectors(values, fmt)
            result.strides[channel] = struct.calcsize(fmt)

    if mesh.bone_index_words:
        result.channels["bone_indices"] = _pack_scalars(mesh.bone_index_words, "I")
        result.strides["bone_indices"] = 4

    result.index_format = choose_index_format(mesh.indices, index_format)
    code = "H" if result.index_format == "uint16" else "I"
    result.indices = _pack_scalars(mesh.indices, code)

    _log.debug("Packed %d vertices (%s), %d %s indices",
               result.vertex_count, ", ".join(result.channels),
               result.index_count, result.index_format)
    return result
