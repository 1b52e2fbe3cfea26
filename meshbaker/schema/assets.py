"""Documents written by the asset store next to baked outputs."""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class TextureType(str, Enum):
    default = "default"
    normal_map = "normal_map"


class ImageImportSettings(BaseModel):
    """How an engine should import a baked image (sidecar `<image>.import.json`)."""
    model_config = ConfigDict(extra='forbid')

    texture_type: TextureType = Field(TextureType.default, description="Importer texture type.")
    srgb: bool = Field(True, description="False for raw data that must not be color managed.")


class MaterialAsset(BaseModel):
    """Output material: the source shader and properties plus the baked atlases."""
    model_config = ConfigDict(extra='forbid')

    shader: str = Field(..., description="Shader reference copied from the first source material.")
    properties: Dict[str, Any] = Field(default_factory=dict, description="Shader properties copied from the first source material.")
    images: Dict[str, str] = Field(default_factory=dict, description="Material slot -> image path.")
    keywords: List[str] = Field(default_factory=list, description="Enabled shader keywords.")
