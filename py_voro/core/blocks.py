"""
Per-block particle storage.

Each block of the grid owns a pair of numpy arrays: particle ids and a
``(mem, ps)`` array of particle data, where ``ps`` is 3 for positions or 4
when a radius column is carried. Storage only grows: a full block doubles its
capacity and keeps every stored entry in its original order.
"""

from typing import List

import numpy as np
import structlog

from .errors import ParticleMemoryError

logger = structlog.get_logger()


class BlockStore:
    """
    Arena of growable particle arrays indexed by flat block id.

    Attributes:
        co: Number of particles stored in each block
        mem: Allocated capacity of each block
        id: Per-block arrays of particle ids
        p: Per-block arrays of particle data, shape (mem, ps)
        ps: Number of floats stored per particle
    """

    def __init__(self, n_blocks: int, init_mem: int, ps: int, max_mem: int):
        if init_mem <= 0:
            raise ValueError("Initial block capacity must be positive")
        self.n_blocks = n_blocks
        self.ps = ps
        self.max_mem = max_mem
        self.co = np.zeros(n_blocks, dtype=np.int64)
        self.mem = np.full(n_blocks, init_mem, dtype=np.int64)
        self.id: List[np.ndarray] = [np.empty(init_mem, dtype=np.int64) for _ in range(n_blocks)]
        self.p: List[np.ndarray] = [np.empty((init_mem, ps), dtype=np.float64) for _ in range(n_blocks)]

    def grow(self, ijk: int) -> None:
        """
        Double the capacity of one block.

        Existing entries are copied over in order and ``co`` is unchanged.

        Raises:
            ParticleMemoryError: If the new capacity would exceed ``max_mem``
        """
        nmem = int(self.mem[ijk]) << 1
        if nmem > self.max_mem:
            logger.error("Block memory ceiling exceeded", block=ijk, requested=nmem, ceiling=self.max_mem)
            raise ParticleMemoryError(
                f"Absolute maximum memory allocation exceeded in block {ijk} "
                f"({nmem} > {self.max_mem})"
            )

        count = int(self.co[ijk])
        new_id = np.empty(nmem, dtype=np.int64)
        new_p = np.empty((nmem, self.ps), dtype=np.float64)
        new_id[:count] = self.id[ijk][:count]
        new_p[:count] = self.p[ijk][:count]
        self.id[ijk] = new_id
        self.p[ijk] = new_p
        self.mem[ijk] = nmem

        logger.debug("Block memory grown", block=ijk, capacity=nmem)

    def append(self, ijk: int, n: int, values) -> int:
        """
        Store a particle at the end of a block, growing it first if full.

        Args:
            ijk: Flat block index
            n: Particle id
            values: ``ps`` floats (position, then radius if carried)

        Returns:
            Local index of the particle within the block
        """
        if self.co[ijk] == self.mem[ijk]:
            self.grow(ijk)
        q = int(self.co[ijk])
        self.id[ijk][q] = n
        self.p[ijk][q] = values
        self.co[ijk] = q + 1
        return q

    def clear(self) -> None:
        """Reset all counts to zero, keeping allocated capacity."""
        self.co[:] = 0

    def ids(self, ijk: int) -> np.ndarray:
        """View of the ids stored in a block."""
        return self.id[ijk][:self.co[ijk]]

    def positions(self, ijk: int) -> np.ndarray:
        """View of the (x, y, z) positions stored in a block."""
        return self.p[ijk][:self.co[ijk], :3]

    def radii(self, ijk: int) -> np.ndarray:
        """View of the radii stored in a block (polydisperse storage only)."""
        if self.ps < 4:
            raise ValueError("This block store does not carry radii")
        return self.p[ijk][:self.co[ijk], 3]

    def total(self) -> int:
        """Total number of stored particles."""
        return int(self.co.sum())
