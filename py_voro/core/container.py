"""
Grid container for 3D Voronoi and radical Voronoi tessellations.

The container partitions an axis-aligned domain into ``nx*ny*nz`` blocks and
stores each particle in the block that holds it. For every particle it can
bootstrap a cell (the whole domain for non-periodic axes, half a period
either side of the particle for periodic ones, then cut by walls) and hand
it to the neighbor search.

Periodic axes are addressed with doubled indices: the search starts a full
block count ``n`` away from the particle's block, so that offsets below ``n``
and at or above ``2n`` can be wrapped by plain integer arithmetic while
recording the matching coordinate translation.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..config import Settings, settings as default_settings
from .blocks import BlockStore
from .cell import VoronoiCell, VoronoiCellNeighbor
from .compute import CellCompute
from .errors import ContainerConfigError
from .loops import LoopAll, ParticleLocation, ParticleOrder
from .radius import PolydisperseRadius, UniformRadius
from .walls import WallList

logger = structlog.get_logger()


class ContainerGeometry(BaseModel):
    """Immutable domain bounds, grid size and periodicity of a container."""

    model_config = ConfigDict(frozen=True)

    ax: float = Field(..., description="Minimum x coordinate")
    bx: float = Field(..., description="Maximum x coordinate")
    ay: float = Field(..., description="Minimum y coordinate")
    by: float = Field(..., description="Maximum y coordinate")
    az: float = Field(..., description="Minimum z coordinate")
    bz: float = Field(..., description="Maximum z coordinate")
    nx: int = Field(..., gt=0, description="Number of blocks along x")
    ny: int = Field(..., gt=0, description="Number of blocks along y")
    nz: int = Field(..., gt=0, description="Number of blocks along z")
    xperiodic: bool = False
    yperiodic: bool = False
    zperiodic: bool = False
    init_mem: int = Field(..., gt=0, description="Initial particle capacity of each block")

    @model_validator(mode="after")
    def check_bounds(self) -> "ContainerGeometry":
        for axis, lo, hi in (("x", self.ax, self.bx), ("y", self.ay, self.by), ("z", self.az, self.bz)):
            if not (math.isfinite(lo) and math.isfinite(hi)):
                raise ValueError(f"{axis} bounds must be finite")
            if not hi > lo:
                raise ValueError(f"{axis} bounds must satisfy max > min, got [{lo}, {hi}]")
        return self


@dataclass(frozen=True)
class BootstrapContext:
    """
    Working state for the cell of one particle.

    Produced by ``initialize_voronoicell`` and passed explicitly to the
    neighbor search, so concurrent computations never share it.

    Attributes:
        x, y, z: Particle position
        i, j, k: Block coordinates of the particle
        ijk: Flat block index of the particle
        q: Local index of the particle within its block
        sti, stj, stk: Search start per axis (``n`` if periodic, else the block coordinate)
        cuijk: Base grid index that region offsets are added to
    """
    x: float
    y: float
    z: float
    i: int
    j: int
    k: int
    ijk: int
    q: int
    sti: int
    stj: int
    stk: int
    cuijk: int


@dataclass
class CellRecord:
    """Summary of one computed cell."""
    id: int
    position: Tuple[float, float, float]
    volume: float
    radius: Optional[float] = None
    neighbors: Optional[List[int]] = None


class ContainerBase(WallList):
    """
    Block storage, periodic geometry and cell bootstrap shared by both containers.

    Args:
        ax, bx, ay, by, az, bz: Domain bounds
        nx, ny, nz: Number of blocks along each axis
        xperiodic, yperiodic, zperiodic: Per-axis periodicity
        init_mem: Initial particle capacity of each block
        ps: Floats stored per particle (3, or 4 with a radius)
        config: Settings providing the memory ceiling and cut tolerance

    Raises:
        ContainerConfigError: If the geometry is invalid
    """

    def __init__(self, ax: float, bx: float, ay: float, by: float, az: float, bz: float,
                 nx: int, ny: int, nz: int,
                 xperiodic: bool, yperiodic: bool, zperiodic: bool,
                 init_mem: int, ps: int, config: Optional[Settings] = None):
        super().__init__()
        try:
            self.geometry = ContainerGeometry(
                ax=ax, bx=bx, ay=ay, by=by, az=az, bz=bz,
                nx=nx, ny=ny, nz=nz,
                xperiodic=xperiodic, yperiodic=yperiodic, zperiodic=zperiodic,
                init_mem=init_mem,
            )
        except ValidationError as e:
            logger.error("Invalid container geometry", errors=e.errors())
            raise ContainerConfigError(str(e)) from e

        self.config = config or default_settings
        self.ps = ps
        g = self.geometry
        self.boxx = (g.bx - g.ax) / g.nx
        self.boxy = (g.by - g.ay) / g.ny
        self.boxz = (g.bz - g.az) / g.nz
        self.xsp = 1 / self.boxx
        self.ysp = 1 / self.boxy
        self.zsp = 1 / self.boxz
        self.nxy = g.nx * g.ny
        self.nxyz = self.nxy * g.nz
        self.store = BlockStore(self.nxyz, g.init_mem, ps, self.config.max_particle_memory)
        self.vc = CellCompute(self)

        logger.debug("Container created",
                     bounds=(g.ax, g.bx, g.ay, g.by, g.az, g.bz),
                     blocks=(g.nx, g.ny, g.nz),
                     periodic=(g.xperiodic, g.yperiodic, g.zperiodic),
                     init_mem=g.init_mem)

    # Read-only views of the geometry
    ax = property(lambda self: self.geometry.ax)
    bx = property(lambda self: self.geometry.bx)
    ay = property(lambda self: self.geometry.ay)
    by = property(lambda self: self.geometry.by)
    az = property(lambda self: self.geometry.az)
    bz = property(lambda self: self.geometry.bz)
    nx = property(lambda self: self.geometry.nx)
    ny = property(lambda self: self.geometry.ny)
    nz = property(lambda self: self.geometry.nz)
    xperiodic = property(lambda self: self.geometry.xperiodic)
    yperiodic = property(lambda self: self.geometry.yperiodic)
    zperiodic = property(lambda self: self.geometry.zperiodic)

    @property
    def co(self) -> np.ndarray:
        return self.store.co

    @property
    def mem(self) -> np.ndarray:
        return self.store.mem

    def total_particles(self) -> int:
        return self.store.total()

    @staticmethod
    def _wrap(x: float, lo: float, hi: float) -> float:
        """Shift x by whole periods until it lies in [lo, hi)."""
        length = hi - lo
        if x < lo or x >= hi:
            x -= math.floor((x - lo) / length) * length
        while x >= hi:
            x -= length
        while x < lo:
            x += length
        return x

    def _remap_axis(self, x: float, lo: float, hi: float, n: int, sp: float,
                    periodic: bool) -> Tuple[int, float]:
        if periodic:
            x = self._wrap(x, lo, hi)
        c = math.floor((x - lo) * sp)
        # Clamp covers non-periodic strays and rounding right at the upper bound
        if c < 0:
            c = 0
        elif c >= n:
            c = n - 1
        return c, x

    def put_remap(self, x: float, y: float, z: float) -> Tuple[int, float, float, float]:
        """
        Find the block for a position.

        Periodic coordinates are wrapped into the domain; non-periodic block
        coordinates are clamped into the grid.

        Returns:
            Flat block index and the (possibly wrapped) position
        """
        i, x = self._remap_axis(x, self.ax, self.bx, self.nx, self.xsp, self.xperiodic)
        j, y = self._remap_axis(y, self.ay, self.by, self.ny, self.ysp, self.yperiodic)
        k, z = self._remap_axis(z, self.az, self.bz, self.nz, self.zsp, self.zperiodic)
        return i + self.nx * j + self.nxy * k, x, y, z

    def _put(self, n: int, values: Iterable[float], order: Optional[ParticleOrder]) -> Tuple[int, int]:
        x, y, z, *rest = values
        ijk, x, y, z = self.put_remap(x, y, z)
        if not (self.xperiodic or self.ax <= x <= self.bx) or \
                not (self.yperiodic or self.ay <= y <= self.by) or \
                not (self.zperiodic or self.az <= z <= self.bz):
            logger.warning("Particle outside non-periodic bounds stored in edge block",
                           id=n, position=(x, y, z), block=ijk)
        q = self.store.append(ijk, n, (x, y, z, *rest))
        if order is not None:
            order.add(ijk, q)
        return ijk, q

    def point_inside(self, x: float, y: float, z: float) -> bool:
        """Return True if the point is inside the domain bounds and all walls."""
        if x < self.ax or x > self.bx or y < self.ay or y > self.by or z < self.az or z > self.bz:
            return False
        return self.point_inside_walls(x, y, z)

    def region_count(self) -> np.ndarray:
        """
        Number of particles in each block.

        Returns:
            Integer array of shape (nz, ny, nx)
        """
        counts = self.store.co.reshape(self.nz, self.ny, self.nx).copy()
        logger.info("Region counts",
                    total=int(counts.sum()),
                    max_per_block=int(counts.max()),
                    empty_blocks=int(np.count_nonzero(counts == 0)))
        return counts

    def location(self, ijk: int, q: int) -> ParticleLocation:
        """Build the loop position of the particle stored at (ijk, q)."""
        k, rem = divmod(ijk, self.nxy)
        j, i = divmod(rem, self.nx)
        return ParticleLocation(ijk, q, i, j, k)

    def initialize_voronoicell(self, cell, loc: ParticleLocation) -> Optional[BootstrapContext]:
        """
        Initialize a cell to the whole container around a particle and cut it by the walls.

        For non-periodic axes the cell spans the domain. For periodic axes it
        spans half a period either way, since the particle's own periodic
        images bound it there.

        Args:
            cell: Cell object to reset
            loc: Position of the particle in block storage

        Returns:
            Bootstrap context for the neighbor search, or None if a wall
            removed the cell
        """
        x, y, z = self.store.p[loc.ijk][loc.q, :3]
        x, y, z = float(x), float(y), float(z)

        if self.xperiodic:
            x2 = 0.5 * (self.bx - self.ax)
            x1 = -x2
            sti = self.nx
        else:
            x1 = self.ax - x
            x2 = self.bx - x
            sti = loc.i
        if self.yperiodic:
            y2 = 0.5 * (self.by - self.ay)
            y1 = -y2
            stj = self.ny
        else:
            y1 = self.ay - y
            y2 = self.by - y
            stj = loc.j
        if self.zperiodic:
            z2 = 0.5 * (self.bz - self.az)
            z1 = -z2
            stk = self.nz
        else:
            z1 = self.az - z
            z2 = self.bz - z
            stk = loc.k

        cell.init(x1, x2, y1, y2, z1, z2)
        if not self.apply_walls(cell, x, y, z):
            return None

        return BootstrapContext(
            x=x, y=y, z=z,
            i=loc.i, j=loc.j, k=loc.k,
            ijk=loc.ijk, q=loc.q,
            sti=sti, stj=stj, stk=stk,
            cuijk=loc.ijk - sti - self.nx * (stj + self.ny * stk),
        )

    def frac_pos(self, ctx: BootstrapContext) -> Tuple[float, float, float]:
        """Position of the particle relative to the lower corner of its block."""
        return (ctx.x - self.ax - self.boxx * ctx.i,
                ctx.y - self.ay - self.boxy * ctx.j,
                ctx.z - self.az - self.boxz * ctx.k)

    def region_index(self, ctx: BootstrapContext, ei: int, ej: int, ek: int
                     ) -> Tuple[int, Tuple[float, float, float]]:
        """
        Flat index of the block at search offset (ei, ej, ek), with its periodic translation.

        Offsets are measured from the search start of ``ctx``. On a periodic
        axis ``ci + ei`` is a doubled index: below ``n`` it wraps up by ``n``
        and the block's contents must be shifted by minus one period; at or
        above ``2n`` it wraps down and the shift is plus one period. Valid
        offsets satisfy ``0 <= ci + ei < 3n``.

        Returns:
            Block index and the translation (qx, qy, qz) to add to positions read from it
        """
        nx, ny, nz = self.nx, self.ny, self.nz
        qx = qy = qz = 0.0
        if self.xperiodic:
            if ctx.i + ei < nx:
                ei += nx
                qx = -(self.bx - self.ax)
            elif ctx.i + ei >= (nx << 1):
                ei -= nx
                qx = self.bx - self.ax
        if self.yperiodic:
            if ctx.j + ej < ny:
                ej += ny
                qy = -(self.by - self.ay)
            elif ctx.j + ej >= (ny << 1):
                ej -= ny
                qy = self.by - self.ay
        if self.zperiodic:
            if ctx.k + ek < nz:
                ek += nz
                qz = -(self.bz - self.az)
            elif ctx.k + ek >= (nz << 1):
                ek -= nz
                qz = self.bz - self.az
        return ctx.cuijk + ei + nx * (ej + ny * ek), (qx, qy, qz)

    def compute_cell(self, cell, loc: ParticleLocation) -> bool:
        """
        Compute the cell of one particle.

        Returns:
            False if the cell is degenerate (removed by walls or neighbors)
        """
        ctx = self.initialize_voronoicell(cell, loc)
        if ctx is None:
            return False
        return self.vc.compute_cell(cell, ctx)

    def _radius_of(self, loc: ParticleLocation) -> Optional[float]:
        return None

    def iter_cells(self, neighbors: bool = False, loop: Optional[Iterable[ParticleLocation]] = None):
        """
        Compute cells one by one.

        Args:
            neighbors: Track which particle or wall made each face
            loop: Particle positions to visit, defaults to every stored particle

        Yields:
            CellRecord for every non-degenerate cell
        """
        cell = VoronoiCellNeighbor(self.config.cut_tolerance) if neighbors \
            else VoronoiCell(self.config.cut_tolerance)
        for loc in (loop if loop is not None else LoopAll(self)):
            if not self.compute_cell(cell, loc):
                continue
            x, y, z = self.store.p[loc.ijk][loc.q, :3]
            yield CellRecord(
                id=int(self.store.id[loc.ijk][loc.q]),
                position=(float(x), float(y), float(z)),
                volume=cell.volume(),
                radius=self._radius_of(loc),
                neighbors=cell.neighbors() if neighbors else None,
            )

    def compute_all_cells(self, neighbors: bool = False,
                          loop: Optional[Iterable[ParticleLocation]] = None) -> List[CellRecord]:
        """Compute the cells of all particles, skipping degenerate ones."""
        logger.info("Computing all cells", particles=self.total_particles(), neighbors=neighbors)
        records = list(self.iter_cells(neighbors=neighbors, loop=loop))
        skipped = self.total_particles() - len(records) if loop is None else None
        logger.info("Cells computed", cells=len(records), skipped=skipped)
        return records

    def sum_cell_volumes(self) -> float:
        """Sum of the volumes of all computed cells."""
        return sum(record.volume for record in self.iter_cells())


class Container(ContainerBase):
    """
    Container for ordinary Voronoi tessellations.

    Args:
        ax, bx, ay, by, az, bz: Domain bounds
        nx, ny, nz: Number of blocks along each axis
        xperiodic, yperiodic, zperiodic: Per-axis periodicity
        init_mem: Initial particle capacity of each block, defaults to
            ``settings.init_particle_memory``
        config: Optional Settings override
    """

    def __init__(self, ax: float, bx: float, ay: float, by: float, az: float, bz: float,
                 nx: int, ny: int, nz: int,
                 xperiodic: bool = False, yperiodic: bool = False, zperiodic: bool = False,
                 init_mem: Optional[int] = None, config: Optional[Settings] = None):
        config = config or default_settings
        super().__init__(ax, bx, ay, by, az, bz, nx, ny, nz,
                         xperiodic, yperiodic, zperiodic,
                         init_mem if init_mem is not None else config.init_particle_memory,
                         3, config)
        self.radius_policy = UniformRadius()

    def put(self, n: int, x: float, y: float, z: float,
            order: Optional[ParticleOrder] = None) -> Tuple[int, int]:
        """
        Add a particle.

        Args:
            n: Particle id
            x, y, z: Position
            order: If given, the storage slot is recorded there

        Returns:
            (block index, local index) where the particle was stored

        Raises:
            ParticleMemoryError: If the block cannot grow any further
        """
        return self._put(n, (x, y, z), order)

    def clear(self) -> None:
        """Remove all particles, keeping allocated block memory."""
        self.store.clear()


class ContainerPoly(ContainerBase):
    """
    Container for radical Voronoi tessellations of particles with radii.

    Takes the same arguments as :class:`Container`.
    """

    def __init__(self, ax: float, bx: float, ay: float, by: float, az: float, bz: float,
                 nx: int, ny: int, nz: int,
                 xperiodic: bool = False, yperiodic: bool = False, zperiodic: bool = False,
                 init_mem: Optional[int] = None, config: Optional[Settings] = None):
        config = config or default_settings
        super().__init__(ax, bx, ay, by, az, bz, nx, ny, nz,
                         xperiodic, yperiodic, zperiodic,
                         init_mem if init_mem is not None else config.init_particle_memory,
                         4, config)
        self.max_radius = 0.0
        self.radius_policy = PolydisperseRadius(self)

    def put(self, n: int, x: float, y: float, z: float, r: float,
            order: Optional[ParticleOrder] = None) -> Tuple[int, int]:
        """
        Add a particle with radius r.

        Returns:
            (block index, local index) where the particle was stored

        Raises:
            ValueError: If r is negative
            ParticleMemoryError: If the block cannot grow any further
        """
        if r < 0:
            raise ValueError(f"Particle radius must be non-negative, got {r}")
        slot = self._put(n, (x, y, z, r), order)
        if r > self.max_radius:
            self.max_radius = r
        return slot

    def clear(self) -> None:
        """Remove all particles and reset the maximum radius."""
        self.store.clear()
        self.max_radius = 0.0

    def _radius_of(self, loc: ParticleLocation) -> Optional[float]:
        return float(self.store.p[loc.ijk][loc.q, 3])
