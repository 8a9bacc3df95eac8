"""
py-voro: grid container for 3D Voronoi and radical Voronoi tessellations.
"""

from .core import (
    Container, ContainerPoly, VoronoiCell, VoronoiCellNeighbor, WallPlane,
    LoopAll, LoopOrder, ParticleOrder, ContainerConfigError, ParticleMemoryError,
)

__version__ = "0.1.0"

__all__ = ['Container', 'ContainerPoly', 'VoronoiCell', 'VoronoiCellNeighbor', 'WallPlane',
           'LoopAll', 'LoopOrder', 'ParticleOrder', 'ContainerConfigError', 'ParticleMemoryError']
