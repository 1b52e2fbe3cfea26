"""
Asset stores: where baked atlases, meshes and materials are persisted.

The baker only talks to the AssetStore interface. FileAssetStore writes
real files under a root folder; MemoryAssetStore keeps everything in
dictionaries for in-memory bakes and dry runs.

Paths handed to a store are relative, '/'-separated, e.g.
"Baked/BakedAlbedo00.png".
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image

from meshbaker.schema.assets import ImageImportSettings, MaterialAsset, TextureType

logger = logging.getLogger(__name__)

IMPORT_SETTINGS_SUFFIX = ".import.json"


@dataclass(frozen=True)
class ImageHandle:
    path: str
    settings: ImageImportSettings


@dataclass(frozen=True)
class MeshHandle:
    path: str


@dataclass(eq=False)
class MaterialHandle:
    path: str
    asset: MaterialAsset


def _import_settings(linear: bool, normal_map: bool) -> ImageImportSettings:
    return ImageImportSettings(
        texture_type=TextureType.normal_map if normal_map else TextureType.default,
        srgb=not linear,
    )


class AssetStore(ABC):
    """Persistence used by the baker. Failures propagate to the caller."""

    @abstractmethod
    def save_image(self, image: Image.Image, path: str, *, linear: bool = False, normal_map: bool = False) -> ImageHandle:
        """Persist an image. linear marks raw data that must not be color managed."""

    @abstractmethod
    def save_mesh(self, mesh, path: str) -> MeshHandle:
        """Persist a CombinedMesh."""

    @abstractmethod
    def create_material(self, shader: str, path: str, properties: Optional[Dict[str, Any]] = None) -> MaterialHandle:
        """Create (and persist) an empty material for the shader."""

    def set_material_image(self, material: MaterialHandle, slot: str, image: ImageHandle) -> None:
        material.asset.images[slot] = image.path
        self._material_changed(material)

    def set_material_keyword(self, material: MaterialHandle, name: str) -> None:
        if name not in material.asset.keywords:
            material.asset.keywords.append(name)
        self._material_changed(material)

    def _material_changed(self, material: MaterialHandle) -> None:
        pass


class FileAssetStore(AssetStore):
    """
    Writes assets under a root folder, creating subfolders as needed.

    Images are PNG with an import-settings sidecar (<image>.import.json),
    meshes are exported with trimesh (format from the extension) and
    materials are JSON documents rewritten on every change.
    """

    def __init__(self, root):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        full = self.root / path
        full.parent.mkdir(parents=True, exist_ok=True)
        return full

    def save_image(self, image, path, *, linear=False, normal_map=False):
        full = self._resolve(path)
        image.save(full, format='PNG')

        settings = _import_settings(linear, normal_map)
        sidecar = full.with_name(full.name + IMPORT_SETTINGS_SUFFIX)
        sidecar.write_text(settings.model_dump_json(indent=2))

        logger.info(f"Saved image {full} ({'linear' if linear else 'sRGB'})")
        return ImageHandle(path=path, settings=settings)

    def save_mesh(self, mesh, path):
        full = self._resolve(path)
        mesh.to_trimesh().export(str(full))
        logger.info(f"Saved mesh {full} ({mesh.vertex_count} vertices)")
        return MeshHandle(path=path)

    def create_material(self, shader, path, properties=None):
        handle = MaterialHandle(path=path, asset=MaterialAsset(shader=shader, properties=dict(properties or {})))
        self._material_changed(handle)
        logger.info(f"Created material {self.root / path}")
        return handle

    def _material_changed(self, material):
        full = self._resolve(material.path)
        full.write_text(material.asset.model_dump_json(indent=2))


class MemoryAssetStore(AssetStore):
    """Keeps every asset in memory, keyed by path."""

    def __init__(self):
        self.images: Dict[str, Image.Image] = {}
        self.import_settings: Dict[str, ImageImportSettings] = {}
        self.meshes: Dict[str, Any] = {}
        self.materials: Dict[str, MaterialAsset] = {}

    def save_image(self, image, path, *, linear=False, normal_map=False):
        settings = _import_settings(linear, normal_map)
        self.images[path] = image.copy()
        self.import_settings[path] = settings
        return ImageHandle(path=path, settings=settings)

    def save_mesh(self, mesh, path):
        self.meshes[path] = mesh
        return MeshHandle(path=path)

    def create_material(self, shader, path, properties=None):
        asset = MaterialAsset(shader=shader, properties=dict(properties or {}))
        self.materials[path] = asset
        return MaterialHandle(path=path, asset=asset)

    @property
    def paths(self):
        """Every path written so far."""
        return sorted(set(self.images) | set(self.meshes) | set(self.materials))
