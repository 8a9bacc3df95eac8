"""Exception types raised by the container core."""


class VoroError(Exception):
    """Base class for unrecoverable container errors."""


class ContainerConfigError(VoroError, ValueError):
    """Invalid container geometry (bounds, grid sizes or initial capacity)."""


class ParticleMemoryError(VoroError, MemoryError):
    """A block would have to grow past the configured memory ceiling."""
