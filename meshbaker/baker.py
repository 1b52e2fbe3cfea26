"""
Bake orchestration.

Runs one bake synchronously from selected objects to a combined mesh and
a set of channel atlases:

    IDLE -> VALIDATING -> BAKING (Albedo) -> REMAPPING -> BAKING (others)
         -> COMBINING -> DONE

Any failure moves to FAILED and re-raises; nothing is retried. All input
checks happen during VALIDATING, before anything is written or packed.
Assets written before a later failure are left in the store.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from meshbaker.channels import (
    ChannelKind,
    bake_order,
    material_keyword,
    specular_kind,
)
from meshbaker.exceptions import (
    BakeError,
    InsufficientSelection,
    MissingRenderData,
    MissingRequiredChannel,
    TooManyUniqueSources,
)
from meshbaker.geometry.combiner import CombinedMesh, combine
from meshbaker.schema.settings import BakeSettings
from meshbaker.store import AssetStore, ImageHandle, MaterialHandle, MemoryAssetStore, MeshHandle
from meshbaker.texturing.atlas_packer import PackedAtlas, Rect
from meshbaker.texturing.channel_baker import build_channel_atlas, persist_channel_atlas
from meshbaker.texturing.uv_remap import remap_meshes

logger = logging.getLogger(__name__)


class BakeState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    BAKING = "baking"
    REMAPPING = "remapping"
    COMBINING = "combining"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class UniqueSource:
    """A deduplicated mesh and the material of the first object using it."""
    mesh: object
    material: object
    first_object: str


@dataclass(frozen=True)
class BakeContext:
    """Validated input shared by every stage of one bake."""
    objects: Tuple
    uniques: Tuple[UniqueSource, ...]
    specular_workflow: bool

    @property
    def meshes(self) -> List:
        return [u.mesh for u in self.uniques]

    @property
    def materials(self) -> List:
        return [u.material for u in self.uniques]


@dataclass
class BakeResult:
    """
    Everything a bake produced.

    Attributes:
        mesh: Combined mesh
        atlases: Channel kind -> packed atlas
        placements: Albedo layout, one rect per unique mesh
        remapped_uvs: SourceMesh -> atlas-space UVs
        material: Output material handle
        images: Channel kind -> saved atlas handle
        mesh_handle: Saved mesh handle, None when the mesh was kept in memory
    """
    mesh: CombinedMesh
    atlases: Dict[ChannelKind, PackedAtlas]
    placements: List[Rect]
    remapped_uvs: Dict[object, np.ndarray]
    material: MaterialHandle
    images: Dict[ChannelKind, ImageHandle]
    mesh_handle: Optional[MeshHandle] = None


def find_unique_sources(objects: Sequence) -> List[UniqueSource]:
    """
    Deduplicate objects by mesh identity, in selection order.

    The first object seen with a mesh decides that mesh's material. Later
    objects sharing the mesh with a different material lose their
    material's images; this is logged, not rejected.
    """
    uniques: Dict[int, UniqueSource] = {}
    for obj in objects:
        key = id(obj.mesh)
        existing = uniques.get(key)
        if existing is None:
            uniques[key] = UniqueSource(mesh=obj.mesh, material=obj.material, first_object=obj.name)
        elif existing.material is not obj.material:
            logger.warning(
                f"Object '{obj.name}' shares mesh '{obj.mesh.name}' with '{existing.first_object}' "
                f"but uses material '{obj.material.name}'; only '{existing.material.name}' is baked"
            )
    return list(uniques.values())


def validate_selection(objects: Sequence, settings: BakeSettings) -> BakeContext:
    """
    Check the selection and build the bake context.

    Raises:
        InsufficientSelection: Fewer than settings.min_objects objects
        MissingRenderData: An object has no mesh or material
        TooManyUniqueSources: More unique meshes than settings.max_unique_meshes
        MissingRequiredChannel: A unique material has no albedo image
    """
    if len(objects) < settings.min_objects:
        raise InsufficientSelection(
            f"Select at least {settings.min_objects} objects to bake, got {len(objects)}"
        )

    for obj in objects:
        if obj.mesh is None:
            raise MissingRenderData(f"Object '{obj.name}' has no mesh")
        if obj.material is None:
            raise MissingRenderData(f"Object '{obj.name}' has no material")

    uniques = find_unique_sources(objects)
    if len(uniques) > settings.max_unique_meshes:
        raise TooManyUniqueSources(
            f"Maximum unique meshes is {settings.max_unique_meshes}, selection has {len(uniques)}"
        )

    for unique in uniques:
        if unique.material.image(ChannelKind.ALBEDO) is None:
            raise MissingRequiredChannel(
                f"Material '{unique.material.name}' of object '{unique.first_object}' has no Albedo image"
            )

    # The first material decides the workflow for the whole bake
    specular_workflow = uniques[0].material.image(ChannelKind.SPECULAR) is not None

    logger.info(
        f"Validated {len(objects)} objects, {len(uniques)} unique meshes "
        f"({'specular' if specular_workflow else 'metallic'} workflow)"
    )
    return BakeContext(objects=tuple(objects), uniques=tuple(uniques), specular_workflow=specular_workflow)


class MeshBaker:
    """
    Combines objects into one mesh with one material.

    Examples:
        >>> baker = MeshBaker(BakeSettings(atlas_size=1024), FileAssetStore("Assets"))
        >>> result = baker.bake(load_scene("scene.json"))
        >>> result.mesh.vertex_count

    Only one bake may run against a store's output folder at a time; the
    baker holds no lock.
    """

    def __init__(self, settings: Optional[BakeSettings] = None, store: Optional[AssetStore] = None):
        self.settings = settings or BakeSettings()
        self.store = store if store is not None else MemoryAssetStore()
        self.state = BakeState.IDLE
        self.failure: Optional[BakeError] = None

    def _enter(self, state: BakeState) -> None:
        logger.debug(f"Bake state: {self.state.value} -> {state.value}")
        self.state = state

    def bake(self, objects: Sequence) -> BakeResult:
        """
        Run the whole pipeline once.

        Raises:
            BakeError: Any of its subclasses; the bake is aborted
        """
        self.state = BakeState.IDLE
        self.failure = None
        try:
            return self._run(list(objects))
        except BakeError as e:
            self.failure = e
            self._enter(BakeState.FAILED)
            logger.error(f"Bake failed: {e}")
            raise
        except Exception:
            self._enter(BakeState.FAILED)
            raise

    def _run(self, objects: List) -> BakeResult:
        settings = self.settings

        self._enter(BakeState.VALIDATING)
        context = validate_selection(objects, settings)
        channels = bake_order(settings, context.specular_workflow)

        self._enter(BakeState.BAKING)
        material = self._create_material(context)

        albedo = build_channel_atlas(ChannelKind.ALBEDO, context.materials, settings.atlas_size)
        atlases = {ChannelKind.ALBEDO: albedo}
        images = {ChannelKind.ALBEDO: persist_channel_atlas(albedo, self.store, material, settings)}

        self._enter(BakeState.REMAPPING)
        remapped = remap_meshes(context.meshes, albedo.placements)

        self._enter(BakeState.BAKING)
        for kind in channels:
            if kind == ChannelKind.ALBEDO:
                continue
            atlas = build_channel_atlas(kind, context.materials, settings.atlas_size, layout=albedo)
            atlases[kind] = atlas
            images[kind] = persist_channel_atlas(atlas, self.store, material, settings)

        self._enter(BakeState.COMBINING)
        combined = combine(context.objects, remapped)
        mesh_handle = None
        if settings.save_mesh:
            mesh_handle = self.store.save_mesh(combined, settings.mesh_path())

        self._enter(BakeState.DONE)
        logger.info(
            f"Baked {len(context.objects)} objects into {combined.vertex_count} vertices "
            f"and {len(atlases)} atlases ({', '.join(k.value for k in atlases)})"
        )
        return BakeResult(
            mesh=combined,
            atlases=atlases,
            placements=list(albedo.placements),
            remapped_uvs=remapped,
            material=material,
            images=images,
            mesh_handle=mesh_handle,
        )

    def _create_material(self, context: BakeContext) -> MaterialHandle:
        """Output material: shader and properties of the first unique material."""
        settings = self.settings
        source = context.materials[0]
        material = self.store.create_material(source.shader, settings.material_path(), source.properties)

        if settings.bake_normals:
            self.store.set_material_keyword(material, material_keyword(ChannelKind.NORMAL))
        if settings.bake_specular:
            self.store.set_material_keyword(material, material_keyword(specular_kind(context.specular_workflow)))
        return material


def bake(objects: Sequence, settings: Optional[BakeSettings] = None, store: Optional[AssetStore] = None) -> BakeResult:
    """Bake with a one-off MeshBaker."""
    return MeshBaker(settings, store).bake(objects)
