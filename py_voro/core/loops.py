"""Iteration over the particles stored in a container."""

from typing import Iterator, List, NamedTuple, Tuple


class ParticleLocation(NamedTuple):
    """Where a particle lives: flat block index, local index, block coordinates."""
    ijk: int
    q: int
    i: int
    j: int
    k: int


class ParticleOrder:
    """Records the storage slot of each particle in insertion order."""

    def __init__(self):
        self.slots: List[Tuple[int, int]] = []

    def add(self, ijk: int, q: int) -> None:
        self.slots.append((ijk, q))

    def clear(self) -> None:
        self.slots.clear()

    def __len__(self) -> int:
        return len(self.slots)


class LoopAll:
    """
    Loop over every stored particle, block by block.

    Blocks are visited in flat-index order (x fastest), and particles within
    a block in storage order.
    """

    def __init__(self, container):
        self.container = container

    def __iter__(self) -> Iterator[ParticleLocation]:
        con = self.container
        nx, ny, nz = con.nx, con.ny, con.nz
        ijk = 0
        for k in range(nz):
            for j in range(ny):
                for i in range(nx):
                    for q in range(int(con.store.co[ijk])):
                        yield ParticleLocation(ijk, q, i, j, k)
                    ijk += 1


class LoopOrder:
    """Loop over the particles recorded in a ParticleOrder, in that order."""

    def __init__(self, container, order: ParticleOrder):
        self.container = container
        self.order = order

    def __iter__(self) -> Iterator[ParticleLocation]:
        nx, ny = self.container.nx, self.container.ny
        nxy = nx * ny
        for ijk, q in self.order.slots:
            k, rem = divmod(ijk, nxy)
            j, i = divmod(rem, nx)
            yield ParticleLocation(ijk, q, i, j, k)
