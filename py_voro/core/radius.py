"""
Radius policies for ordinary and radical (power) Voronoi diagrams.

The neighbor search asks a policy to set up the scratch values for the
particle whose cell is being built (``init``), to inflate a squared search
distance into a cutoff (``cutoff``), to rescale the squared distance to a
candidate (``scale``) and to decide whether a shell of blocks can be skipped
(``ctest``). The policy is chosen when the container is constructed, so the
search loop never branches on it.
"""

import math
from dataclasses import dataclass

from .blocks import BlockStore


class UniformRadiusState:
    """Identity cutoff and scaling for equal-radius Voronoi cells."""

    __slots__ = ()

    def cutoff(self, lrs: float) -> float:
        return lrs

    def ctest(self, bound: float, mrs: float) -> bool:
        """True if no particle at distance bound or more can cut a cell of squared radius mrs."""
        return bound * bound > 4 * mrs

    def scale(self, rs: float, ijk: int, q: int) -> float:
        return rs


@dataclass
class PolyRadiusState:
    """
    Scratch values for one particle of a radical Voronoi computation.

    Attributes:
        r_rad: Squared radius of the particle under construction
        r_mul: Cutoff multiplier for squared search distances
        max_rsq: Squared maximum radius over the container
        store: Block storage holding candidate radii
    """
    r_rad: float
    r_mul: float
    max_rsq: float
    store: BlockStore

    def cutoff(self, lrs: float) -> float:
        return self.r_mul * lrs

    def ctest(self, bound: float, mrs: float) -> bool:
        # A candidate of radius R at distance d cuts at (d^2 + r_rad - R^2) / 2d,
        # which grows with d and shrinks with R while r <= R
        return bound * bound + self.r_rad - self.max_rsq > 2 * bound * math.sqrt(mrs)

    def scale(self, rs: float, ijk: int, q: int) -> float:
        rq = self.store.p[ijk][q, 3]
        return rs + self.r_rad - rq * rq


class UniformRadius:
    """Radius policy of the plain container: all distances are unmodified."""

    _state = UniformRadiusState()

    def init(self, ijk: int, s: int) -> UniformRadiusState:
        return self._state


class PolydisperseRadius:
    """
    Radius policy of the polydisperse container.

    Reads the particle radius and the container-wide maximum radius once per
    cell, and derives the cutoff multiplier and shell test from them.

    Args:
        container: Container owning the radius column and ``max_radius``
    """

    def __init__(self, container):
        self.container = container

    def init(self, ijk: int, s: int) -> PolyRadiusState:
        store = self.container.store
        max_radius = self.container.max_radius
        r = float(store.p[ijk][s, 3])
        denom = (max_radius + r) * (max_radius + r)
        r_mul = 1 + (r * r - max_radius * max_radius) / denom if denom > 0 else 1.0
        return PolyRadiusState(r_rad=r * r, r_mul=r_mul,
                               max_rsq=max_radius * max_radius, store=store)
