"""Pack up to four bone influences per vertex.

Output per vertex:
    weights: (w0, w1, w2, 1 - w0 - w1 - w2)
    word:    (b3 << 24) | (b2 << 16) | (b1 << 8) | b0

The fourth weight is always derived from the first three, never copied
from the source's fourth influence. The first three weights are treated
as authoritative and the remainder closes the sum to 1.0.
"""

from typing import Sequence, Tuple

from ..errors import BoneIndexOverflowError

MAX_INFLUENCES = 4
MAX_PACKED_BONE = 0xFF


class SkinPacker:
    """Encodes bone indices/weights into the packed skinning layout."""

    def pack_weights(self, weights: Sequence[float]) -> Tuple[float, float, float, float]:
        w0, w1, w2 = float(weights[0]), float(weights[1]), float(weights[2])
        return (w0, w1, w2, 1.0 - w0 - w1 - w2)

    def pack_indices(self, bone_indices: Sequence[int]) -> int:
        """Combine four one-byte bone indices into a 32-bit word.

        Raises:
            BoneIndexOverflowError: if an index is outside 0..255
        """
        if len(bone_indices) != MAX_INFLUENCES:
            raise ValueError(f"Expected {MAX_INFLUENCES} bone indices, got {len(bone_indices)}")
        word = 0
        for slot, bone in enumerate(bone_indices):
            bone = int(bone)
            if bone < 0 or bone > MAX_PACKED_BONE:
                raise BoneIndexOverflowError(bone, slot)
            word |= bone << (8 * slot)
        return word

    def pack(self, bone_indices, bone_weights):
        """Return ``(weights_vec4, index_word)`` for one vertex."""
        return self.pack_weights(bone_weights), self.pack_indices(bone_indices)


def unpack_indices(word):
    """Split a packed index word back into its four bone indices."""
    return tuple((word >> (8 * slot)) & MAX_PACKED_BONE for slot in range(MAX_INFLUENCES))
