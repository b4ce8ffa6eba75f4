"""Exception types raised by the mesh indexer.

All errors derive from ValueError so callers that already guard reader
code with ``except ValueError`` keep working.
"""


class MeshIndexError(ValueError):
    """Base class for indexing failures."""


class BoneIndexOverflowError(MeshIndexError):
    """A bone index does not fit the one-byte slot of a packed index word."""

    def __init__(self, bone_index, slot):
        self.bone_index = bone_index
        self.slot = slot
        super().__init__(
            f"Bone index {bone_index} in influence slot {slot} does not fit "
            f"in one byte (0-255)"
        )


class MaterialIndexError(MeshIndexError):
    """A corner or triangle references an undeclared material slot."""

    def __init__(self, material_index, material_count):
        self.material_index = material_index
        self.material_count = material_count
        super().__init__(
            f"Material index {material_index} out of range "
            f"(mesh declares {material_count} slot(s))"
        )


class SourceMeshError(MeshIndexError):
    """The source mesh cannot be read or encoded as requested."""
