"""
Fixed-size square atlas packer.

Places N images into one atlas_size x atlas_size canvas with a greedy shelf
algorithm and reports where each image went, both as integer pixel boxes and
as normalized [0, 1] atlas-space rectangles.

Pixel boxes use a bottom-left origin so they line up with UV space:

    y ^
      | +-----+-----+
      | |  2  |     |     box (x, y, w, h) covers UVs
      | +-----+-----+       [x/size, (x+w)/size] x [y/size, (y+h)/size]
      | |  0  |  1  |
      +-+-----+-----+---> x

Results are always returned in input order, whatever order the packer
placed them in, so callers can zip image index -> placement.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from PIL import Image

from meshbaker.channels import ChannelKind
from meshbaker.exceptions import PackingOverflow
from meshbaker.texturing.image_ops import rescale_bilinear

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PixelBox:
    """Integer pixel rectangle, bottom-left origin."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def top(self) -> int:
        return self.y + self.height

    def overlaps(self, other: "PixelBox") -> bool:
        return (
            self.x < other.right and other.x < self.right
            and self.y < other.top and other.y < self.top
        )


@dataclass(frozen=True)
class Rect:
    """Normalized atlas-space rectangle."""
    x_min: float
    y_min: float
    x_max: float
    y_max: float

    @classmethod
    def from_box(cls, box: PixelBox, atlas_size: int) -> "Rect":
        return cls(
            box.x / atlas_size,
            box.y / atlas_size,
            box.right / atlas_size,
            box.top / atlas_size,
        )

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min


@dataclass
class PackedAtlas:
    """
    One baked channel atlas.

    Attributes:
        kind: Channel kind this atlas holds
        image: atlas_size x atlas_size RGBA image
        boxes: Pixel placement per input image, in input order
        placements: Normalized placement per input image, in input order
    """
    kind: Optional[ChannelKind]
    image: Image.Image
    boxes: List[PixelBox]
    placements: List[Rect]

    @property
    def atlas_size(self) -> int:
        return self.image.size[0]


class ShelfPacker:
    """Packs rectangles using a greedy shelf algorithm."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.shelves: List[Dict] = []

    def pack(self, width: int, height: int) -> Optional[Tuple[int, int]]:
        """Try to pack a rect. Returns (x, y) or None if it does not fit."""
        # Try existing shelves
        for shelf in self.shelves:
            if width <= self.width - shelf['x'] and height <= shelf['height']:
                x = shelf['x']
                y = shelf['y']
                shelf['x'] += width
                return x, y

        # New shelf
        new_y = sum(s['height'] for s in self.shelves)
        if new_y + height > self.height or width > self.width:
            return None

        self.shelves.append({
            'y': new_y,
            'height': height,
            'x': width
        })
        return 0, new_y


def pack_boxes(sizes: Sequence[Tuple[int, int]], atlas_size: int) -> List[PixelBox]:
    """
    Compute non-overlapping pixel boxes for (width, height) sizes.

    Deterministic: the same ordered sizes always give the same boxes.

    Raises:
        PackingOverflow: If the sizes cannot all fit in atlas_size x atlas_size
    """
    if not sizes:
        return []

    total_area = sum(w * h for w, h in sizes)
    if total_area > atlas_size * atlas_size:
        raise PackingOverflow(
            f"{len(sizes)} images need {total_area} px, more than a "
            f"{atlas_size}x{atlas_size} atlas holds"
        )

    # Tallest first, equal sizes keep input order
    order = sorted(range(len(sizes)), key=lambda i: (-sizes[i][1], -sizes[i][0], i))

    packer = ShelfPacker(atlas_size, atlas_size)
    boxes: List[Optional[PixelBox]] = [None] * len(sizes)
    for index in order:
        w, h = sizes[index]
        pos = packer.pack(w, h)
        if pos is None:
            raise PackingOverflow(
                f"Image {index} ({w}x{h}) does not fit into a {atlas_size}x{atlas_size} atlas"
            )
        boxes[index] = PixelBox(pos[0], pos[1], w, h)

    return boxes


def _paste(canvas: Image.Image, image: Image.Image, box: PixelBox) -> None:
    # PIL rows run top-down, boxes bottom-up
    canvas.paste(image, (box.x, canvas.size[1] - box.top))


def _blank_atlas(atlas_size: int) -> Image.Image:
    return Image.new('RGBA', (atlas_size, atlas_size), (0, 0, 0, 0))


def pack_images(
    images: Sequence[Image.Image],
    atlas_size: int,
    kind: Optional[ChannelKind] = None,
) -> PackedAtlas:
    """
    Pack images into a new square atlas.

    Images are placed at their own pixel size, never scaled; equalize
    their resolution beforehand.

    Raises:
        PackingOverflow: If the images cannot all fit
    """
    sizes = [img.size for img in images]
    boxes = pack_boxes(sizes, atlas_size)

    atlas = _blank_atlas(atlas_size)
    for img, box in zip(images, boxes):
        _paste(atlas, img.convert('RGBA'), box)

    placements = [Rect.from_box(box, atlas_size) for box in boxes]
    logger.info(f"Packed {len(images)} images into {atlas_size}x{atlas_size} atlas")
    return PackedAtlas(kind=kind, image=atlas, boxes=boxes, placements=placements)


def compose_atlas(
    images: Sequence[Image.Image],
    layout: PackedAtlas,
    kind: Optional[ChannelKind] = None,
) -> PackedAtlas:
    """
    Draw images into an existing layout instead of packing them anew.

    Image i lands in layout box i; images of a different size are
    bilinear-resampled to the box.
    """
    if len(images) != len(layout.boxes):
        raise ValueError(f"Layout has {len(layout.boxes)} placements but got {len(images)} images")

    atlas = _blank_atlas(layout.atlas_size)
    for index, (img, box) in enumerate(zip(images, layout.boxes)):
        if img.size != (box.width, box.height):
            if img.size[0] < box.width or img.size[1] < box.height:
                logger.warning(
                    f"Upscaling {kind.value if kind else 'image'} {index} from "
                    f"{img.size[0]}x{img.size[1]} to {box.width}x{box.height} to fit the layout"
                )
            img = rescale_bilinear(img, box.width, box.height)
        _paste(atlas, img.convert('RGBA'), box)

    return PackedAtlas(
        kind=kind,
        image=atlas,
        boxes=list(layout.boxes),
        placements=list(layout.placements),
    )
