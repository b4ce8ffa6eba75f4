"""Export profiles for mesh indexing.

A profile bundles the conventions a target engine expects from the
indexed mesh: whether the reader flips the Z axis, whether the serializer
flips triangle winding, which index width the binary buffers use, and
how many bone influences a vertex keeps.

Profiles are registered in a global dict and looked up by id, the same
way callers select them from a UI dropdown or a config file.

Adding a new target:
    1. Create an ExportProfile with the target's conventions
    2. Call register_profile() to add it to the registry
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

INDEX_FORMATS = ("auto", "uint16", "uint32")


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass
class AttributeChannels:
    """Which optional vertex channels the source mesh declares.

    Positions are always present. A channel that is off here is emitted
    as an empty array by the flattener.
    """
    normals: bool = True
    uvs: bool = False
    uvs2: bool = False
    colors: bool = False
    skin: bool = False

    def names(self) -> List[str]:
        """Names of the enabled optional channels, in buffer order."""
        return [name for name in ("normals", "uvs", "uvs2", "colors", "skin")
                if getattr(self, name)]


@dataclass
class ExportProfile:
    """Conventions for one export target."""

    profile_id: str
    name: str
    description: str = ""

    # Negate Z of positions and normals while reading (right-handed source
    # to left-handed Babylon space).
    flip_z: bool = True

    # Emit triangles as (i0, i2, i1) at serialization time.
    flip_winding: bool = False

    # Index buffer width for binary packing:
    #   "auto"   = uint16 when every index fits, else uint32
    #   "uint16" = always 16-bit (fails on meshes past 65535 vertices)
    #   "uint32" = always 32-bit
    index_format: str = "auto"

    # Influences kept per vertex; the packed layout holds four.
    max_influences: int = 4

    def __post_init__(self):
        if self.index_format not in INDEX_FORMATS:
            raise ValueError(
                f"Unknown index format {self.index_format!r} "
                f"(expected one of {', '.join(INDEX_FORMATS)})"
            )
        if not 1 <= self.max_influences <= 4:
            raise ValueError(f"max_influences must be 1-4, got {self.max_influences}")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

EXPORT_PROFILES: Dict[str, ExportProfile] = {}

DEFAULT_PROFILE_ID = "babylon"


def register_profile(profile: ExportProfile) -> None:
    """Add or replace a profile in the registry."""
    EXPORT_PROFILES[profile.profile_id] = profile


def get_profile(profile_id: Optional[str] = None) -> ExportProfile:
    """Look up a profile by id (default profile when id is None).

    Raises:
        KeyError: if no profile with that id is registered
    """
    if profile_id is None:
        profile_id = DEFAULT_PROFILE_ID
    try:
        return EXPORT_PROFILES[profile_id]
    except KeyError:
        raise KeyError(f"No export profile registered as {profile_id!r}") from None


def get_profile_items() -> List[Tuple[str, str, str]]:
    """(id, name, description) triples, e.g. for an enum property."""
    return [(pid, prof.name, prof.description)
            for pid, prof in EXPORT_PROFILES.items()]


register_profile(ExportProfile(
    profile_id="babylon",
    name="Babylon.js",
    description="Left-handed Babylon space: Z flipped on read, source winding kept",
))

register_profile(ExportProfile(
    profile_id="babylon_rh",
    name="Babylon.js (right-handed scene)",
    description="Scene uses useRightHandedSystem: no Z flip, winding flipped on write",
    flip_z=False,
    flip_winding=True,
))
