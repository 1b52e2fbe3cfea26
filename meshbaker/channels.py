"""
Material channel table.

Maps each channel kind to the material slot it binds to, the fill color used
when a source material has no image for it, and the shader keyword it enables.
All lookups are plain functions over fixed tables.
"""

from enum import Enum
from typing import List, Optional, Tuple

from meshbaker.exceptions import UnsupportedChannelKind

Color = Tuple[int, int, int, int]


class ChannelKind(str, Enum):
    ALBEDO = "Albedo"
    NORMAL = "Normal"
    SPECULAR = "Specular"
    METALLIC = "Metallic"
    AO = "AO"


_MATERIAL_SLOTS = {
    ChannelKind.ALBEDO: "_MainTex",
    ChannelKind.SPECULAR: "_SpecGlossMap",
    ChannelKind.METALLIC: "_MetallicGlossMap",
    ChannelKind.NORMAL: "_BumpMap",
    ChannelKind.AO: "_OcclusionMap",
}

# Albedo has no sensible default, a missing one is an input error
_DEFAULT_FILL = {
    ChannelKind.SPECULAR: (128, 128, 128, 255),
    ChannelKind.METALLIC: (128, 128, 128, 255),
    ChannelKind.NORMAL: (128, 128, 255, 255),  # flat tangent-space normal
    ChannelKind.AO: (255, 255, 255, 255),
}

_KEYWORDS = {
    ChannelKind.NORMAL: "_NORMALMAP",
    ChannelKind.SPECULAR: "_SPECGLOSSMAP",
    ChannelKind.METALLIC: "_METALLICGLOSSMAP",
}


def channel_kind(value) -> ChannelKind:
    """Coerce a string (or ChannelKind) into a ChannelKind."""
    try:
        return ChannelKind(value)
    except ValueError:
        raise UnsupportedChannelKind(f"Unknown channel kind: {value!r}") from None


def material_slot(kind) -> str:
    """Material slot identifier that a baked atlas of this kind binds to."""
    slot = _MATERIAL_SLOTS.get(kind)
    if slot is None:
        raise UnsupportedChannelKind(f"No material slot for channel kind: {kind!r}")
    return slot


def default_fill_color(kind: ChannelKind) -> Optional[Color]:
    """Placeholder color for a missing image, or None if the channel has no default."""
    return _DEFAULT_FILL.get(kind)


def material_keyword(kind: ChannelKind) -> Optional[str]:
    return _KEYWORDS.get(kind)


def specular_kind(specular_workflow: bool) -> ChannelKind:
    return ChannelKind.SPECULAR if specular_workflow else ChannelKind.METALLIC


def is_enabled(kind: ChannelKind, settings) -> bool:
    if kind == ChannelKind.ALBEDO:
        return True
    if kind in (ChannelKind.SPECULAR, ChannelKind.METALLIC):
        return settings.bake_specular
    if kind == ChannelKind.NORMAL:
        return settings.bake_normals
    if kind == ChannelKind.AO:
        return settings.bake_ao
    raise UnsupportedChannelKind(f"Unknown channel kind: {kind!r}")


def bake_order(settings, specular_workflow: bool) -> List[ChannelKind]:
    """
    Channels to bake, in order. Albedo always comes first since its
    packing establishes the layout every other channel reuses.
    """
    order = [
        ChannelKind.ALBEDO,
        specular_kind(specular_workflow),
        ChannelKind.NORMAL,
        ChannelKind.AO,
    ]
    return [kind for kind in order if is_enabled(kind, settings)]


def is_linear(kind: ChannelKind, settings) -> bool:
    """True if the atlas holds raw data rather than display color."""
    if kind == ChannelKind.NORMAL:
        return True
    if kind in (ChannelKind.SPECULAR, ChannelKind.METALLIC):
        return not settings.specular_srgb
    return False
