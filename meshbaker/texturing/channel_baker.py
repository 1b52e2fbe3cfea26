"""
Per-channel atlas baking.

For one channel kind, turns the unique source materials into a packed
atlas and hands it to the asset store:

    collect -> equalize -> pack (Albedo) or compose into the Albedo layout
            -> save -> bind to the output material

Collect, equalize and pack/compose are pure; only persist_channel_atlas
touches the store.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from PIL import Image

from meshbaker.channels import (
    ChannelKind,
    default_fill_color,
    is_linear,
    material_slot,
)
from meshbaker.exceptions import MissingRequiredChannel
from meshbaker.texturing.atlas_packer import PackedAtlas, compose_atlas, pack_images
from meshbaker.texturing.image_ops import create_solid_image, rescale_bilinear, restore_normal_channel

logger = logging.getLogger(__name__)


def collect_channel_images(kind: ChannelKind, materials: Sequence) -> List[Image.Image]:
    """
    One image per material for this channel, in material order.

    Missing images are replaced by a solid placeholder of the channel's
    default color, sized like the material's albedo. Packed normal maps
    are restored to a standard layout, once per material even when several
    meshes share it.

    Raises:
        MissingRequiredChannel: If an image is missing and the channel has no default
    """
    images = []
    restored = {}  # id(material) -> restored normal map
    for material in materials:
        image = material.image(kind)

        if image is not None:
            if kind == ChannelKind.NORMAL and material.packed_normals:
                key = id(material)
                if key not in restored:
                    restored[key] = restore_normal_channel(image)
                image = restored[key]
            images.append(image)
            continue

        fill = default_fill_color(kind)
        albedo = material.image(ChannelKind.ALBEDO)
        if fill is None or albedo is None:
            missing = kind if fill is None else ChannelKind.ALBEDO
            raise MissingRequiredChannel(
                f"Material '{material.name}' has no {missing.value} image"
            )

        logger.info(f"Material '{material.name}' has no {kind.value} image, using default fill")
        images.append(create_solid_image(albedo.size[0], albedo.size[1], fill))

    return images


def equalize_images(images: Sequence[Image.Image], atlas_size: int) -> Tuple[List[Image.Image], int]:
    """
    Bring images to one square footprint.

    The side is the smallest image width, capped at atlas_size. Wider
    images are scaled down; non-square images end up stretched.

    Returns:
        Tuple of (equalized images, footprint side)
    """
    if not images:
        return [], 0

    target = min(min(img.size[0] for img in images), atlas_size)
    equalized = []
    for index, img in enumerate(images):
        if img.size != (target, target):
            if img.size[0] != img.size[1]:
                logger.warning(
                    f"Image {index} is {img.size[0]}x{img.size[1]}, "
                    f"stretching to {target}x{target}"
                )
            img = rescale_bilinear(img, target, target)
        equalized.append(img)
    return equalized, target


def build_channel_atlas(
    kind: ChannelKind,
    materials: Sequence,
    atlas_size: int,
    layout: Optional[PackedAtlas] = None,
) -> PackedAtlas:
    """
    Build the atlas for one channel.

    Without a layout the images are packed, establishing a new layout
    (the Albedo pass). With a layout they are drawn into its placements.
    """
    images = collect_channel_images(kind, materials)
    equalized, side = equalize_images(images, atlas_size)
    logger.info(f"{kind.value}: {len(equalized)} images at {side}x{side}")

    if layout is None:
        return pack_images(equalized, atlas_size, kind=kind)
    return compose_atlas(equalized, layout, kind=kind)


def persist_channel_atlas(atlas: PackedAtlas, store, material, settings):
    """Save the atlas image and bind it to its slot on the output material."""
    handle = store.save_image(
        atlas.image,
        settings.atlas_path(atlas.kind),
        linear=is_linear(atlas.kind, settings),
        normal_map=atlas.kind == ChannelKind.NORMAL,
    )
    store.set_material_image(material, material_slot(atlas.kind), handle)
    return handle
