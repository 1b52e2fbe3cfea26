"""
Bake configuration.

All knobs a bake reads, validated up front so the pipeline can treat them
as plain values. Output file names are derived here:

    <output_folder>/Baked<Channel><suffix>.png
    <output_folder>/BakedMaterial<suffix>.json
    <output_folder>/BakedMesh<suffix>.glb
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meshbaker.channels import ChannelKind

SUPPORTED_ATLAS_SIZES = (512, 1024, 2048, 4096, 8192)

# Characters that are not allowed in file names on at least one platform
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]+')

IMAGE_EXT = "png"
MATERIAL_EXT = "json"
MESH_EXT = "glb"


def sanitize_filename(value: str) -> str:
    """Replace runs of invalid characters with '_' and strip trailing dots."""
    parts = [p for p in _INVALID_FILENAME_CHARS.split(value) if p]
    return "_".join(parts).rstrip(".")


def cycle_atlas_size(current: int, increase: bool) -> int:
    """Step to the next (or previous) supported atlas size, wrapping at both ends."""
    index = SUPPORTED_ATLAS_SIZES.index(current)
    index += 1 if increase else -1
    return SUPPORTED_ATLAS_SIZES[index % len(SUPPORTED_ATLAS_SIZES)]


class BakeSettings(BaseModel):
    model_config = ConfigDict(extra='forbid')

    atlas_size: int = Field(2048, description="Side of every square atlas in pixels.")
    bake_normals: bool = Field(True, description="Bake a normal map atlas.")
    bake_specular: bool = Field(True, description="Bake a specular or metallic atlas (workflow decided by the first material).")
    bake_ao: bool = Field(False, description="Bake an ambient occlusion atlas.")
    output_folder: str = Field("Baked", description="Folder (relative to the asset store root) receiving all outputs.")
    suffix: str = Field("00", description="Appended to every output file name.")
    save_mesh: bool = Field(True, description="Persist the combined mesh as a standalone asset.")
    specular_srgb: bool = Field(False, description="Legacy: store specular/metallic atlases as color data.")
    max_unique_meshes: int = Field(4, ge=1, description="Most unique meshes a single bake accepts.")
    min_objects: int = Field(2, ge=1, description="Fewest selected objects a bake accepts.")

    @field_validator('atlas_size')
    @classmethod
    def validate_atlas_size(cls, v):
        if v not in SUPPORTED_ATLAS_SIZES:
            raise ValueError(f"atlas_size must be one of {list(SUPPORTED_ATLAS_SIZES)}")
        return v

    @field_validator('output_folder', 'suffix')
    @classmethod
    def validate_filename(cls, v):
        return sanitize_filename(v)

    @field_validator('output_folder')
    @classmethod
    def validate_folder(cls, v):
        if not v:
            raise ValueError("output_folder must not be empty")
        return v

    def atlas_path(self, kind: ChannelKind) -> str:
        return f"{self.output_folder}/Baked{ChannelKind(kind).value}{self.suffix}.{IMAGE_EXT}"

    def material_path(self) -> str:
        return f"{self.output_folder}/BakedMaterial{self.suffix}.{MATERIAL_EXT}"

    def mesh_path(self) -> str:
        return f"{self.output_folder}/BakedMesh{self.suffix}.{MESH_EXT}"
