"""Schema definitions: bake settings, scene manifests and written asset documents."""
from .settings import (
    BakeSettings,
    SUPPORTED_ATLAS_SIZES,
    sanitize_filename,
    cycle_atlas_size,
)
from .manifest import (
    SceneManifest,
    MeshDefinition,
    MaterialDefinition,
    ObjectDefinition,
)
from .assets import (
    ImageImportSettings,
    MaterialAsset,
    TextureType,
)

__all__ = [
    "BakeSettings",
    "SUPPORTED_ATLAS_SIZES",
    "sanitize_filename",
    "cycle_atlas_size",
    "SceneManifest",
    "MeshDefinition",
    "MaterialDefinition",
    "ObjectDefinition",
    "ImageImportSettings",
    "MaterialAsset",
    "TextureType",
]
