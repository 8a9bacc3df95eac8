"""
Core grid container and cell computation.
"""

from .container import (
    BootstrapContext, CellRecord, Container, ContainerBase, ContainerGeometry, ContainerPoly,
)
from .cell import VoronoiCell, VoronoiCellNeighbor
from .compute import CellCompute
from .errors import ContainerConfigError, ParticleMemoryError, VoroError
from .loops import LoopAll, LoopOrder, ParticleLocation, ParticleOrder
from .radius import PolydisperseRadius, UniformRadius
from .walls import Wall, WallList, WallPlane

__all__ = ['BootstrapContext', 'CellRecord', 'Container', 'ContainerBase', 'ContainerGeometry',
           'ContainerPoly', 'VoronoiCell', 'VoronoiCellNeighbor', 'CellCompute',
           'ContainerConfigError', 'ParticleMemoryError', 'VoroError',
           'LoopAll', 'LoopOrder', 'ParticleLocation', 'ParticleOrder',
           'PolydisperseRadius', 'UniformRadius', 'Wall', 'WallList', 'WallPlane']
