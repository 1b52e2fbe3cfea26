"""
Texturing: pixel helpers, the fixed-size atlas packer, UV remapping and
per-channel atlas baking.
"""
from .image_ops import create_solid_image, restore_normal_channel, rescale_bilinear
from .atlas_packer import PackedAtlas, PixelBox, Rect, ShelfPacker, pack_boxes, pack_images, compose_atlas
from .uv_remap import remap_uvs, remap_meshes
from .channel_baker import collect_channel_images, equalize_images, build_channel_atlas, persist_channel_atlas

__all__ = [
    'create_solid_image',
    'restore_normal_channel',
    'rescale_bilinear',
    'PackedAtlas',
    'PixelBox',
    'Rect',
    'ShelfPacker',
    'pack_boxes',
    'pack_images',
    'compose_atlas',
    'remap_uvs',
    'remap_meshes',
    'collect_channel_images',
    'equalize_images',
    'build_channel_atlas',
    'persist_channel_atlas',
]
