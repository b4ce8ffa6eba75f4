"""Skin binding provider: bone influences per control point.

A binding answers, for each control point of the source mesh, which
bones influence it and how strongly. Influences are kept in the order
the provider supplied them; only the first four are used and missing
slots are padded with the sentinel bone index ``bone_count`` and weight
0.0.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from .packer import MAX_INFLUENCES

_log = logging.getLogger("mesh_indexer.skin")

Influence = Tuple[int, float]


class SkinBinding:
    """Per-control-point bone influences for one skinned mesh.

    Attributes:
        bone_count: number of bones in the skeleton (also the "unused" index)
        influences: list (per control point) of (bone_index, weight) lists
    """

    def __init__(self, bone_count, influences=None, max_influences=MAX_INFLUENCES):
        self.bone_count = int(bone_count)
        self.influences: List[List[Influence]] = [
            [(int(b), float(w)) for b, w in pairs] for pairs in (influences or [])
        ]
        if not 1 <= max_influences <= MAX_INFLUENCES:
            raise ValueError(f"max_influences must be 1-{MAX_INFLUENCES}, got {max_influences}")
        self.max_influences = max_influences

    def __len__(self):
        return len(self.influences)

    def influences_for(self, control_point, limit=None) -> Tuple[Tuple[int, ...], Tuple[float, ...]]:
        """Return padded ``(bone_indices, bone_weights)`` for a control point.

        At most ``limit`` (default ``max_influences``) real influences are
        kept; the result always has four slots. Control points the binding
        has no entry for are treated as uninfluenced (all slots padded).
        """
        keep = limit if limit is not None else self.max_influences
        keep = max(0, min(keep, MAX_INFLUENCES))
        if 0 <= control_point < len(self.influences):
            pairs = self.influences[control_point][:keep]
        else:
            pairs = []
        bones = [b for b, _ in pairs]
        weights = [w for _, w in pairs]
        while len(bones) < MAX_INFLUENCES:
            bones.append(self.bone_count)
            weights.append(0.0)
        return tuple(bones), tuple(weights)

    @classmethod
    def from_vertex_groups(cls, vertex_groups: Sequence[Sequence[Tuple[str, float]]],
                           bone_names: Sequence[str]) -> "SkinBinding":
        """Build a binding from named vertex-group weights.

        Args:
            vertex_groups: per control point, a list of (group_name, weight)
            bone_names: skeleton bone names; position is the bone index

        Returns:
            SkinBinding whose bone indices follow ``bone_names`` order.
            Groups that do not name a bone and non-positive weights are
            skipped.
        """
        name_to_index: Dict[str, int] = {name: i for i, name in enumerate(bone_names)}
        unmapped = set()
        influences = []
        for groups in vertex_groups:
            pairs = []
            for name, weight in groups:
                bone = name_to_index.get(name)
                if bone is None:
                    if weight > 0.0:
                        unmapped.add(name)
                    continue
                if weight <= 0.0:
                    continue
                pairs.append((bone, weight))
            influences.append(pairs)

        if unmapped:
            _log.info("%d vertex group(s) do not match a bone: %s",
                      len(unmapped), sorted(unmapped))
        return cls(len(bone_names), influences)
