"""
Scene manifest: a JSON description of the objects selected for a bake.

    {
      "meshes":    {"crate": {"path": "crate.obj"}},
      "materials": {"wood":  {"shader": "Standard",
                              "images": {"Albedo": "wood.png", "Normal": "wood_n.png"}}},
      "objects":   [{"name": "crate_1", "mesh": "crate", "material": "wood",
                     "position": [0, 0, 0], "rotation": [1, 0, 0, 0], "scale": [1, 1, 1]}]
    }

Meshes and materials are declared once and referenced by id, so several
objects naming the same mesh id are instances of one mesh. Leaving an
object's mesh or material out is allowed here; the baker rejects it later
with MissingRenderData. Referencing an id that was never declared is a
schema error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from meshbaker.channels import ChannelKind

Vec3 = List[float]
Quat4 = List[float]  # [w, x, y, z]


class MeshDefinition(BaseModel):
    """Either a mesh file loaded with trimesh, or inline geometry."""
    model_config = ConfigDict(extra='forbid')

    path: Optional[str] = Field(None, description="Mesh file, relative to the manifest.")
    vertices: Optional[List[Vec3]] = Field(None, description="Inline vertex positions.")
    uvs: Optional[List[List[float]]] = Field(None, description="Inline per-vertex UVs in [0, 1].")
    faces: Optional[List[List[int]]] = Field(None, description="Inline triangle indices.")

    @model_validator(mode='after')
    def validate_source(self):
        inline = [self.vertices, self.uvs, self.faces]
        if self.path is not None:
            if any(v is not None for v in inline):
                raise ValueError("Give either 'path' or inline geometry, not both")
            return self
        if any(v is None for v in inline):
            raise ValueError("Inline meshes need 'vertices', 'uvs' and 'faces'")
        if len(self.uvs) != len(self.vertices):
            raise ValueError("Inline meshes need one UV per vertex")
        if any(len(uv) != 2 for uv in self.uvs):
            raise ValueError("UVs must be [u, v] pairs")
        if any(len(v) != 3 for v in self.vertices):
            raise ValueError("Vertices must be [x, y, z]")
        for face in self.faces:
            if len(face) != 3:
                raise ValueError("Faces must be triangles")
            if any(i < 0 or i >= len(self.vertices) for i in face):
                raise ValueError(f"Face {face} references a vertex out of range")
        return self


class MaterialDefinition(BaseModel):
    model_config = ConfigDict(extra='forbid')

    shader: str = Field("Standard", description="Shader reference.")
    images: Dict[ChannelKind, str] = Field(default_factory=dict, description="Channel -> image path, relative to the manifest.")
    properties: Dict[str, Any] = Field(default_factory=dict, description="Shader properties copied onto the baked material.")
    packed_normals: bool = Field(False, description="Normal image stores its red channel in alpha.")


class ObjectDefinition(BaseModel):
    model_config = ConfigDict(extra='forbid')

    name: str = Field(..., description="Object name, used in error messages.")
    mesh: Optional[str] = Field(None, description="Mesh id.")
    material: Optional[str] = Field(None, description="Material id.")
    position: Vec3 = Field(default=[0, 0, 0], description="World position.", min_length=3, max_length=3)
    rotation: Quat4 = Field(default=[1, 0, 0, 0], description="World rotation as quaternion [w, x, y, z].", min_length=4, max_length=4)
    scale: Vec3 = Field(default=[1, 1, 1], description="World scale.", min_length=3, max_length=3)
    matrix: Optional[List[List[float]]] = Field(None, description="Full 4x4 local-to-world matrix (row-major); overrides position/rotation/scale.")

    @field_validator('matrix')
    @classmethod
    def validate_matrix(cls, v):
        if v is not None and (len(v) != 4 or any(len(row) != 4 for row in v)):
            raise ValueError("matrix must be 4x4")
        return v


class SceneManifest(BaseModel):
    model_config = ConfigDict(extra='forbid')

    meshes: Dict[str, MeshDefinition] = Field(default_factory=dict)
    materials: Dict[str, MaterialDefinition] = Field(default_factory=dict)
    objects: List[ObjectDefinition] = Field(..., description="Selected objects, in selection order.")

    @model_validator(mode='after')
    def validate_references(self):
        for obj in self.objects:
            if obj.mesh is not None and obj.mesh not in self.meshes:
                raise ValueError(f"Object '{obj.name}' references unknown mesh '{obj.mesh}'")
            if obj.material is not None and obj.material not in self.materials:
                raise ValueError(f"Object '{obj.name}' references unknown material '{obj.material}'")
        return self
