"""Composite vertex key used for exact-match welding.

A VertexKey holds every attribute of one vertex. Keys compare
lexicographically over the fixed field sequence position, normal, uv,
uv2, color, bone_indices, bone_weights (each field compared component by
component), which is the dataclass field order below. Equality is exact:
no rounding or epsilon is applied, so 0.1 + 0.2 and 0.3 are different
vertices.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]
Vec4 = Tuple[float, float, float, float]

ZERO2: Vec2 = (0.0, 0.0)
ZERO3: Vec3 = (0.0, 0.0, 0.0)
ZERO4: Vec4 = (0.0, 0.0, 0.0, 0.0)
NO_BONES: Tuple[int, int, int, int] = (0, 0, 0, 0)

_FIELD_SIZES = (
    ("position", 3),
    ("normal", 3),
    ("uv", 2),
    ("uv2", 2),
    ("color", 4),
    ("bone_indices", 4),
    ("bone_weights", 4),
)


@dataclass(frozen=True, order=True)
class VertexKey:
    """Immutable, totally ordered, hashable vertex attribute set."""
    position: Vec3 = ZERO3
    normal: Vec3 = ZERO3
    uv: Vec2 = ZERO2
    uv2: Vec2 = ZERO2
    color: Vec4 = ZERO4
    bone_indices: Tuple[int, int, int, int] = NO_BONES
    bone_weights: Vec4 = ZERO4

    def __post_init__(self):
        # Lists are accepted but stored as tuples so keys stay hashable
        for name, size in _FIELD_SIZES:
            value = getattr(self, name)
            if not isinstance(value, tuple):
                value = tuple(value)
                object.__setattr__(self, name, value)
            if len(value) != size:
                raise ValueError(
                    f"VertexKey.{name} expects {size} components, got {len(value)}"
                )


@dataclass
class CornerAttributes:
    """Resolved attributes of one polygon corner, as supplied by a reader.

    Channels the source mesh does not carry are None.
    """
    position: Vec3
    normal: Optional[Vec3] = None
    uv: Optional[Vec2] = None
    uv2: Optional[Vec2] = None
    color: Optional[Vec4] = None
    control_point: int = -1
    material_index: int = 0


def make_key(corner, bone_indices=NO_BONES, bone_weights=ZERO4):
    """Build a VertexKey from resolved corner attributes.

    Absent channels on the corner (None) fall back to all-zero values,
    matching a default-constructed vertex.

    Args:
        corner: CornerAttributes (or anything with the same attributes)
        bone_indices: 4 bone indices, already padded
        bone_weights: 4 bone weights, already padded

    Returns:
        VertexKey
    """
    return VertexKey(
        position=tuple(corner.position),
        normal=tuple(corner.normal) if corner.normal is not None else ZERO3,
        uv=tuple(corner.uv) if corner.uv is not None else ZERO2,
        uv2=tuple(corner.uv2) if corner.uv2 is not None else ZERO2,
        color=tuple(corner.color) if corner.color is not None else ZERO4,
        bone_indices=tuple(bone_indices),
        bone_weights=tuple(bone_weights),
    )
