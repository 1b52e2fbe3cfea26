"""
MeshBaker - Combine many textured meshes into one mesh and one material

Packs each channel's source images (albedo, normal, specular/metallic, AO)
into a square atlas, remaps every mesh's UVs into its atlas slot and merges
all objects into a single vertex/index buffer.
"""

from meshbaker.baker import MeshBaker, BakeResult, BakeState, bake
from meshbaker.channels import ChannelKind
from meshbaker.scene import SourceMesh, MaterialDescriptor, SourceObject, load_scene
from meshbaker.schema.settings import BakeSettings
from meshbaker.store import FileAssetStore, MemoryAssetStore

__version__ = "0.1.0"
__all__ = [
    "MeshBaker",
    "BakeResult",
    "BakeState",
    "bake",
    "ChannelKind",
    "SourceMesh",
    "MaterialDescriptor",
    "SourceObject",
    "load_scene",
    "BakeSettings",
    "FileAssetStore",
    "MemoryAssetStore",
]
