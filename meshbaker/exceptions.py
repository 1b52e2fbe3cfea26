"""Exceptions raised while baking. Every one of them aborts the whole bake."""


class BakeError(Exception):
    """Base exception for bake errors"""
    pass


class InsufficientSelection(BakeError):
    """Fewer objects selected than a bake needs"""
    pass


class MissingRenderData(BakeError):
    """A selected object has no mesh or no material"""
    pass


class MissingRequiredChannel(BakeError):
    """A unique material has no albedo image"""
    pass


class TooManyUniqueSources(BakeError):
    """More unique meshes than the configured limit"""
    pass


class PackingOverflow(BakeError):
    """Images of a channel do not fit into the configured atlas size"""
    pass


class UnsupportedChannelKind(BakeError):
    """A channel kind with no material slot reached the baker"""
    pass
