"""Read Blender mesh objects into SourceMesh polygon soup.

Handles triangulation (loop triangles), per-loop corner normals, the
first two UV layers, the active colour attribute, per-triangle material
slots and vertex-group skin weights. Blender is Z-up right-handed; with
``y_up`` (default) coordinates are rotated to Y-up right-handed, and the
export profile's Z flip then takes them to Babylon's left-handed space.

Per-loop channels become INDEX_TO_DIRECT layers: ``values`` is the
Blender loop data and ``indices`` maps each triangle corner to its loop,
so nothing is copied per corner. Point-domain colours become a
BY_CONTROL_POINT layer.

Only source_from_object() touches ``bpy``; source_from_mesh_data() works
on anything shaped like a bpy.types.Mesh, so it runs outside Blender.
"""

import logging

from ..errors import SourceMeshError
from ..skin.binding import SkinBinding
from .layers import (
    BY_CONTROL_POINT, BY_POLYGON, BY_POLYGON_VERTEX, DIRECT, INDEX_TO_DIRECT,
    LayerElement, SourceMesh,
)

_log = logging.getLogger("mesh_indexer.blender")


def source_from_object(bl_object, armature_obj=None, y_up=True):
    """Extract a SourceMesh from a Blender mesh object.

    Evaluates the object (modifiers applied). When an armature is given,
    it is forced to REST pose for the evaluation so positions are bind
    pose, and vertex groups are bound to the armature's bones.

    Args:
        bl_object: bpy.types.Object with type == 'MESH'
        armature_obj: optional armature Object for skinning
        y_up: rotate Blender Z-up coordinates to Y-up

    Returns:
        SourceMesh

    Raises:
        SourceMeshError: if the object has no usable mesh data
    """
    import bpy

    if bl_object.type != 'MESH':
        raise SourceMeshError(f"Object '{bl_object.name}' is not a mesh (type={bl_object.type})")

    old_pose_position = None
    if armature_obj is not None and armature_obj.type == 'ARMATURE':
        old_pose_position = armature_obj.data.pose_position
        armature_obj.data.pose_position = 'REST'
        bpy.context.evaluated_depsgraph_get().update()

    try:
        depsgraph = bpy.context.evaluated_depsgraph_get()
        eval_obj = bl_object.evaluated_get(depsgraph)
        bl_mesh = eval_obj.to_mesh()

        if bl_mesh is None:
            raise SourceMeshError(f"Could not get mesh data from '{bl_object.name}'")

        try:
            bone_names = None
            if armature_obj is not None:
                bone_names = [b.name for b in armature_obj.data.bones]
            return source_from_mesh_data(
                bl_mesh,
                name=bl_object.name,
                material_count=len(bl_object.material_slots),
                vertex_group_names={vg.index: vg.name for vg in bl_object.vertex_groups},
                bone_names=bone_names,
                y_up=y_up,
            )
        finally:
            eval_obj.to_mesh_clear()
    finally:
        if old_pose_position is not None:
            armature_obj.data.pose_position = old_pose_position
            bpy.context.view_layer.update()


def source_from_mesh_data(bl_mesh, name="Mesh", material_count=0,
                          vertex_group_names=None, bone_names=None, y_up=True):
    """Build a SourceMesh from a Blender Mesh data-block.

    Args:
        bl_mesh: bpy.types.Mesh (or an object with the same API)
        name: mesh name for diagnostics
        material_count: number of material slots on the owning object
        vertex_group_names: {group_index: name}; enables skinning together
                            with ``bone_names``
        bone_names: skeleton bone names in bone-index order
        y_up: rotate Blender Z-up coordinates to Y-up

    Returns:
        SourceMesh

    Raises:
        SourceMeshError: if the mesh has no triangles
    """
    bl_mesh.calc_loop_triangles()
    loop_tris = bl_mesh.loop_triangles
    if len(loop_tris) == 0:
        raise SourceMeshError(f"Mesh '{name}' has no triangles")

    loops = bl_mesh.loops
    convert = _to_y_up if y_up else _identity

    control_points = [convert(tuple(v.co)) for v in bl_mesh.vertices]

    polygons = []
    corner_loops = []
    tri_materials = []
    for tri in loop_tris:
        tri_loops = tuple(tri.loops)
        polygons.append(tuple(loops[li].vertex_index for li in tri_loops))
        corner_loops.extend(tri_loops)
        tri_materials.append(tri.material_index)

    # Removing a slot leaves stale indices behind; Blender draws them with the last slot
    stale = sum(1 for m in tri_materials if m >= material_count) if material_count > 0 else 0
    if stale:
        _log.info("Mesh '%s': %d triangle(s) use a material index past the %d slot(s), "
                  "assigned to the last slot", name, stale, material_count)
        tri_materials = [min(m, material_count - 1) for m in tri_materials]

    source = SourceMesh(
        control_points=control_points,
        polygons=polygons,
        name=name,
        material_count=material_count,
    )

    source.normals = _normal_layer(bl_mesh, corner_loops, convert)

    uv_layers = list(bl_mesh.uv_layers)
    if uv_layers:
        source.uvs = _loop_layer(uv_layers[0].data, corner_loops, "uv")
    if len(uv_layers) > 1:
        source.uvs2 = _loop_layer(uv_layers[1].data, corner_loops, "uv")

    source.colors = _color_layer(bl_mesh, corner_loops)

    if material_count > 0:
        source.materials = LayerElement(values=tri_materials, mapping=BY_POLYGON)

    if vertex_group_names and bone_names:
        groups = []
        for vert in bl_mesh.vertices:
            groups.append([(vertex_group_names[g.group], g.weight)
                           for g in vert.groups if g.group in vertex_group_names])
        source.skin = SkinBinding.from_vertex_groups(groups, bone_names)

    _log.debug("Read '%s': %d control points, %d triangles, channels=%s",
               name, len(control_points), len(polygons), source.channels().names())
    return source


# ===========================================================================
# Layer helpers
# ===========================================================================

def _normal_layer(bl_mesh, corner_loops, convert):
    """Corner normals (Blender 4.1+), falling back to per-vertex normals."""
    corner_normals = getattr(bl_mesh, "corner_normals", None)
    if corner_normals is not None and len(corner_normals) > 0:
        values = [convert(tuple(n.vector)) for n in corner_normals]
        return LayerElement(values=values, mapping=BY_POLYGON_VERTEX,
                            reference=INDEX_TO_DIRECT, indices=corner_loops)
    values = [convert(tuple(v.normal)) for v in bl_mesh.vertices]
    return LayerElement(values=values, mapping=BY_CONTROL_POINT, reference=DIRECT)


def _loop_layer(data, corner_loops, attr):
    values = [tuple(getattr(item, attr)) for item in data]
    return LayerElement(values=values, mapping=BY_POLYGON_VERTEX,
                        reference=INDEX_TO_DIRECT, indices=corner_loops)


def _color_layer(bl_mesh, corner_loops):
    color_attributes = getattr(bl_mesh, "color_attributes", None)
    if color_attributes is None or color_attributes.active is None:
        return None
    ca = color_attributes.active
    values = [tuple(item.color) for item in ca.data]
    if ca.domain == 'CORNER':
        return LayerElement(values=values, mapping=BY_POLYGON_VERTEX,
                            reference=INDEX_TO_DIRECT, indices=corner_loops)
    if ca.domain == 'POINT':
        return LayerElement(values=values, mapping=BY_CONTROL_POINT, reference=DIRECT)
    _log.info("Colour attribute '%s' has unsupported domain %s, skipped",
              getattr(ca, "name", "?"), ca.domain)
    return None


def _to_y_up(v):
    x, y, z = v
    return (x, z, -y)


def _identity(v):
    return v
