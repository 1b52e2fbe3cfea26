"""
Bake inputs: meshes, materials and the objects that place them in the world.

Objects sharing a SourceMesh (by identity) are instances: each contributes
its own geometry to the combined mesh, but the mesh is remapped and packed
only once. load_scene() builds these from a JSON scene manifest.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import trimesh
from PIL import Image

from meshbaker.channels import ChannelKind, channel_kind
from meshbaker.geometry.transforms import trs_matrix, vertex_normals
from meshbaker.schema.manifest import MaterialDefinition, MeshDefinition, SceneManifest

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class SourceMesh:
    """
    Geometry shared by one or more objects.

    Attributes:
        name: Mesh name, used in logs and errors
        vertices: (N, 3) local positions
        uvs: (N, 2) UVs in [0, 1]
        faces: (F, 3) triangle indices
        normals: (N, 3) local normals; computed from faces when omitted
    """
    name: str
    vertices: np.ndarray
    uvs: np.ndarray
    faces: np.ndarray
    normals: Optional[np.ndarray] = None

    def __post_init__(self):
        self.vertices = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3)
        self.uvs = np.asarray(self.uvs, dtype=np.float64).reshape(-1, 2)
        self.faces = np.asarray(self.faces, dtype=np.int64).reshape(-1, 3)
        if len(self.uvs) != len(self.vertices):
            raise ValueError(
                f"Mesh '{self.name}' has {len(self.vertices)} vertices but {len(self.uvs)} UVs"
            )
        if self.normals is None:
            self.normals = vertex_normals(self.vertices, self.faces)
        else:
            self.normals = np.asarray(self.normals, dtype=np.float64).reshape(-1, 3)

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)


@dataclass(eq=False)
class MaterialDescriptor:
    """
    Surface material of a source object: a shader reference plus one
    optional image per channel kind.
    """
    name: str
    images: Dict[ChannelKind, Image.Image] = field(default_factory=dict)
    shader: str = "Standard"
    properties: Dict[str, Any] = field(default_factory=dict)
    packed_normals: bool = False

    def __post_init__(self):
        self.images = {channel_kind(k): v for k, v in self.images.items()}

    def image(self, kind: ChannelKind) -> Optional[Image.Image]:
        return self.images.get(kind)


@dataclass(eq=False)
class SourceObject:
    """A renderable instance selected for baking."""
    name: str
    mesh: Optional[SourceMesh]
    material: Optional[MaterialDescriptor]
    transform: np.ndarray = field(default_factory=lambda: np.eye(4))

    def __post_init__(self):
        self.transform = np.asarray(self.transform, dtype=np.float64).reshape(4, 4)


def load_mesh(path: Path, name: Optional[str] = None) -> SourceMesh:
    """
    Load a mesh file via trimesh, keeping vertex order and UV seams as stored.

    Scenes are merged into a single mesh.
    """
    result = trimesh.load(str(path), process=False)

    if isinstance(result, trimesh.Scene):
        geometries = [g for g in result.geometry.values() if isinstance(g, trimesh.Trimesh)]
        if not geometries:
            raise ValueError(f"No triangle geometry in mesh file: {path}")
        result = trimesh.util.concatenate(geometries)

    uv = getattr(result.visual, 'uv', None)
    if uv is None or len(uv) != len(result.vertices):
        raise ValueError(f"Mesh has no UV coordinates: {path}")

    return SourceMesh(
        name=name or Path(path).stem,
        vertices=np.asarray(result.vertices),
        uvs=np.asarray(uv),
        faces=np.asarray(result.faces),
        normals=np.asarray(result.vertex_normals),
    )


def _build_mesh(mesh_id: str, definition: MeshDefinition, base_dir: Path) -> SourceMesh:
    if definition.path is not None:
        mesh_path = base_dir / definition.path
        if not mesh_path.exists():
            raise FileNotFoundError(f"Mesh file not found: {mesh_path}")
        return load_mesh(mesh_path, name=mesh_id)
    return SourceMesh(
        name=mesh_id,
        vertices=definition.vertices,
        uvs=definition.uvs,
        faces=definition.faces,
    )


def _build_material(material_id: str, definition: MaterialDefinition, base_dir: Path) -> MaterialDescriptor:
    images = {}
    for kind, rel_path in definition.images.items():
        image_path = base_dir / rel_path
        if not image_path.exists():
            raise FileNotFoundError(f"Image not found for material '{material_id}' ({kind.value}): {image_path}")
        with Image.open(image_path) as img:
            images[kind] = img.convert('RGBA')
    return MaterialDescriptor(
        name=material_id,
        images=images,
        shader=definition.shader,
        properties=dict(definition.properties),
        packed_normals=definition.packed_normals,
    )


def load_manifest(path) -> SceneManifest:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Manifest not found: {path}")
    with open(path, 'r') as f:
        return SceneManifest.model_validate(json.load(f))


def load_scene(path) -> List[SourceObject]:
    """
    Load a scene manifest into source objects, in selection order.

    Every mesh and material is built once and shared by all objects
    referencing its id. Relative paths resolve against the manifest folder.

    Raises:
        FileNotFoundError: If the manifest or a referenced file is missing
        pydantic.ValidationError: If the manifest is malformed
    """
    path = Path(path)
    manifest = load_manifest(path)
    base_dir = path.parent

    # Only build what objects actually use
    used_meshes = {o.mesh for o in manifest.objects if o.mesh is not None}
    used_materials = {o.material for o in manifest.objects if o.material is not None}

    meshes = {
        mesh_id: _build_mesh(mesh_id, definition, base_dir)
        for mesh_id, definition in manifest.meshes.items()
        if mesh_id in used_meshes
    }
    materials = {
        material_id: _build_material(material_id, definition, base_dir)
        for material_id, definition in manifest.materials.items()
        if material_id in used_materials
    }

    objects = []
    for obj in manifest.objects:
        if obj.matrix is not None:
            transform = np.asarray(obj.matrix, dtype=np.float64)
        else:
            transform = trs_matrix(obj.position, obj.rotation, obj.scale)
        objects.append(SourceObject(
            name=obj.name,
            mesh=meshes.get(obj.mesh) if obj.mesh is not None else None,
            material=materials.get(obj.material) if obj.material is not None else None,
            transform=transform,
        ))

    logger.info(f"Loaded {len(objects)} objects ({len(meshes)} meshes, {len(materials)} materials) from {path}")
    return objects
