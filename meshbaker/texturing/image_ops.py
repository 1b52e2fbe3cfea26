"""
Pixel-level helpers. Every function returns a new RGBA image and leaves
its input untouched.
"""

from typing import Tuple

import numpy as np
from PIL import Image


def create_solid_image(width: int, height: int, color: Tuple[int, int, int, int]) -> Image.Image:
    """
    Create an image of the given size filled with one color.

    Stands in for a missing channel image so every unique mesh still has
    an entry of the right size when packing.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image size must be positive, got {width}x{height}")
    return Image.new('RGBA', (width, height), tuple(color))


def restore_normal_channel(image: Image.Image) -> Image.Image:
    """
    Unpack a normal map whose red channel was moved into alpha.

    Copies alpha into red. This is a one-way substitution: applying it to
    an already restored image overwrites red with the (opaque) alpha.
    """
    pixels = np.array(image.convert('RGBA'), dtype=np.uint8)
    pixels[..., 0] = pixels[..., 3]
    return Image.fromarray(pixels)


def rescale_bilinear(image: Image.Image, target_width: int, target_height: int) -> Image.Image:
    """Resample an image to the target size with bilinear filtering."""
    if target_width <= 0 or target_height <= 0:
        raise ValueError(f"Target size must be positive, got {target_width}x{target_height}")
    if image.mode != 'RGBA':
        image = image.convert('RGBA')
    if image.size == (target_width, target_height):
        return image.copy()
    return image.resize((target_width, target_height), Image.BILINEAR)
