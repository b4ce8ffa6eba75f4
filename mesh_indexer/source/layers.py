"""Source mesh description and per-corner attribute resolution.

A SourceMesh is the polygon soup handed over by a scene reader: control
point positions, triangles of control-point indices, and optional
attribute layers (normals, two UV sets, colours, material assignment).

Each layer stores values plus a mapping mode and a reference mode, the
way DCC formats such as FBX describe them:

    mapping mode   -> which index selects the entry
        BY_CONTROL_POINT   control point index
        BY_POLYGON_VERTEX  flattened corner index (polygon * 3 + corner)
        BY_POLYGON         polygon index
        ALL_SAME           always entry 0
    reference mode -> how the entry is turned into a value
        DIRECT             entry indexes ``values`` directly
        INDEX_TO_DIRECT    entry indexes ``indices``, which indexes ``values``

iter_corners() resolves all of this once per corner, so the indexing
core only ever sees final attribute values.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from ..errors import SourceMeshError
from ..geometry.vertex_key import CornerAttributes
from ..profiles import AttributeChannels

BY_CONTROL_POINT = "BY_CONTROL_POINT"
BY_POLYGON_VERTEX = "BY_POLYGON_VERTEX"
BY_POLYGON = "BY_POLYGON"
ALL_SAME = "ALL_SAME"
MAPPING_MODES = (BY_CONTROL_POINT, BY_POLYGON_VERTEX, BY_POLYGON, ALL_SAME)

DIRECT = "DIRECT"
INDEX_TO_DIRECT = "INDEX_TO_DIRECT"
REFERENCE_MODES = (DIRECT, INDEX_TO_DIRECT)


@dataclass
class LayerElement:
    """One attribute layer of a source mesh."""
    values: Sequence[tuple]
    mapping: str = BY_POLYGON_VERTEX
    reference: str = DIRECT
    indices: Optional[Sequence[int]] = None

    def __post_init__(self):
        if self.mapping not in MAPPING_MODES:
            raise SourceMeshError(f"Unknown mapping mode {self.mapping!r}")
        if self.reference not in REFERENCE_MODES:
            raise SourceMeshError(f"Unknown reference mode {self.reference!r}")
        if self.reference == INDEX_TO_DIRECT and self.indices is None:
            raise SourceMeshError("INDEX_TO_DIRECT layer needs an index array")

    def mapping_index(self, control_point, corner_index, polygon_index):
        if self.mapping == BY_CONTROL_POINT:
            return control_point
        if self.mapping == BY_POLYGON_VERTEX:
            return corner_index
        if self.mapping == BY_POLYGON:
            return polygon_index
        return 0

    def resolve(self, control_point, corner_index, polygon_index):
        """Return the layer value for one corner."""
        idx = self.mapping_index(control_point, corner_index, polygon_index)
        try:
            if self.reference == INDEX_TO_DIRECT:
                idx = self.indices[idx]
            if idx < 0:
                raise IndexError(idx)
            return self.values[idx]
        except IndexError:
            raise SourceMeshError(
                f"{self.mapping}/{self.reference} layer has no entry for "
                f"polygon {polygon_index}, corner {corner_index}"
            ) from None


@dataclass
class SourceMesh:
    """Triangulated polygon soup as supplied by a scene reader.

    Attributes:
        control_points: (x, y, z) per control point
        polygons: (cp0, cp1, cp2) per triangle
        normals/uvs/uvs2/colors: optional LayerElement per channel
        materials: optional LayerElement of material slot indices
                   (BY_POLYGON or ALL_SAME)
        material_count: declared material slots (0 is allowed)
        skin: optional SkinBinding
        name: mesh name for diagnostics
    """
    control_points: List[Tuple[float, float, float]]
    polygons: List[Tuple[int, ...]]
    normals: Optional[LayerElement] = None
    uvs: Optional[LayerElement] = None
    uvs2: Optional[LayerElement] = None
    colors: Optional[LayerElement] = None
    materials: Optional[LayerElement] = None
    material_count: int = 0
    skin: Optional[object] = None
    name: str = "Mesh"

    def __post_init__(self):
        if self.materials is not None and self.materials.mapping not in (BY_POLYGON, ALL_SAME):
            raise SourceMeshError(
                f"Mesh '{self.name}': material layer must be BY_POLYGON or ALL_SAME, "
                f"got {self.materials.mapping}"
            )

    def channels(self) -> AttributeChannels:
        """Presence flags for the optional channels."""
        return AttributeChannels(
            normals=self.normals is not None,
            uvs=self.uvs is not None,
            # A second UV set only counts when there is a first one
            uvs2=self.uvs is not None and self.uvs2 is not None,
            colors=self.colors is not None,
            skin=self.skin is not None,
        )

    def material_for(self, polygon_index) -> int:
        if self.materials is None or self.material_count == 0:
            return 0
        return int(self.materials.resolve(-1, -1, polygon_index))


def iter_corners(source: SourceMesh, flip_z=True) -> Iterator[Tuple[int, int, CornerAttributes]]:
    """Resolve every corner of ``source`` in polygon order.

    Args:
        source: SourceMesh to read
        flip_z: negate Z of positions and normals

    Yields:
        (polygon_index, corner_in_polygon, CornerAttributes)

    Raises:
        SourceMeshError: for non-triangle polygons or bad control points
    """
    channels = source.channels()
    points = source.control_points
    num_points = len(points)

    for poly_idx, polygon in enumerate(source.polygons):
        if len(polygon) != 3:
            raise SourceMeshError(
                f"Mesh '{source.name}': polygon {poly_idx} has {len(polygon)} "
                f"corners (triangulate before indexing)"
            )
        material_index = source.material_for(poly_idx)

        for corner, cp in enumerate(polygon):
            if not 0 <= cp < num_points:
                raise SourceMeshError(
                    f"Mesh '{source.name}': polygon {poly_idx} references "
                    f"control point {cp} of {num_points}"
                )
            corner_index = poly_idx * 3 + corner

            x, y, z = points[cp]
            position = (x, y, -z) if flip_z else (x, y, z)

            normal = None
            if channels.normals:
                nx, ny, nz = source.normals.resolve(cp, corner_index, poly_idx)
                normal = (nx, ny, -nz) if flip_z else (nx, ny, nz)

            uv = None
            if channels.uvs:
                uv = tuple(source.uvs.resolve(cp, corner_index, poly_idx))

            uv2 = None
            if channels.uvs2:
                uv2 = tuple(source.uvs2.resolve(cp, corner_index, poly_idx))

            color = None
            if channels.colors:
                color = tuple(source.colors.resolve(cp, corner_index, poly_idx))

            yield poly_idx, corner, CornerAttributes(
                position=position,
                normal=normal,
                uv=uv,
                uv2=uv2,
                color=color,
                control_point=cp,
                material_index=material_index,
            )
