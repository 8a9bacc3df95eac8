"""
Neighbor search that turns a bootstrapped cell into a finished Voronoi cell.

Blocks are visited in shells of increasing Chebyshev distance around the
particle's own block. Before each shell, the closest any block in it can be
to the particle is handed with the current cell radius to the radius
policy's shell test; once no particle in the shell could reach the cell, the
search stops.

The only grid queries made are ``region_index`` and ``frac_pos`` plus reads
of block storage.
"""

from typing import List, Optional, Tuple

import numpy as np
import structlog

logger = structlog.get_logger()


class CellCompute:
    """
    Shell-expanding neighbor search bound to one container.

    Holds no per-cell state: everything about the particle under
    construction arrives through the bootstrap context.
    """

    def __init__(self, container):
        self.con = container

    def _offset_ranges(self, ctx) -> List[Tuple[int, int]]:
        # Inclusive block offsets per axis that region_index can address.
        # Periodic axes reach one full period beyond the domain on each side.
        con = self.con
        ranges = []
        for periodic, n, c in ((con.xperiodic, con.nx, ctx.i),
                               (con.yperiodic, con.ny, ctx.j),
                               (con.zperiodic, con.nz, ctx.k)):
            if periodic:
                ranges.append((-n - c, 2 * n - c - 1))
            else:
                ranges.append((-c, n - c - 1))
        return ranges

    def _shell_distance(self, s: int, ranges, fracs) -> Optional[float]:
        """Lower bound on the distance to any block of shell s, or None if the shell is empty."""
        con = self.con
        bound = None
        for (lo, hi), box, f in zip(ranges, (con.boxx, con.boxy, con.boxz), fracs):
            if s <= hi:
                cand = s * box - f
                bound = cand if bound is None else min(bound, cand)
            if -s >= lo:
                cand = (s - 1) * box + f
                bound = cand if bound is None else min(bound, cand)
        return bound

    def compute_cell(self, cell, ctx) -> bool:
        """
        Cut a bootstrapped cell by every particle that can reach it.

        Args:
            cell: Cell initialized by the container's bootstrap
            ctx: Bootstrap context returned for that cell

        Returns:
            False if the cell was removed entirely, True otherwise
        """
        state = self.con.radius_policy.init(ctx.ijk, ctx.q)
        fracs = self.con.frac_pos(ctx)
        ranges = self._offset_ranges(ctx)
        origin = np.array((ctx.x, ctx.y, ctx.z))

        s = 0
        while True:
            if s > 0:
                bound = self._shell_distance(s, ranges, fracs)
                if bound is None:
                    break
                if bound > 0 and state.ctest(bound, cell.max_radius_squared()):
                    break
            if not self._cut_shell(cell, ctx, state, s, ranges, origin):
                return False
            s += 1

        logger.debug("Cell computed", block=ctx.ijk, index=ctx.q, shells=s)
        return True

    def _cut_shell(self, cell, ctx, state, s: int, ranges, origin: np.ndarray) -> bool:
        (lo_i, hi_i), (lo_j, hi_j), (lo_k, hi_k) = ranges
        for dk in range(max(-s, lo_k), min(s, hi_k) + 1):
            for dj in range(max(-s, lo_j), min(s, hi_j) + 1):
                if abs(dk) == s or abs(dj) == s:
                    dis = range(max(-s, lo_i), min(s, hi_i) + 1)
                else:
                    dis = [d for d in (-s, s) if lo_i <= d <= hi_i]
                for di in dis:
                    if not self._cut_block(cell, ctx, state, di, dj, dk, origin):
                        return False
        return True

    def _cut_block(self, cell, ctx, state, di: int, dj: int, dk: int, origin: np.ndarray) -> bool:
        con = self.con
        store = con.store
        ijk, (qx, qy, qz) = con.region_index(ctx, ctx.sti + di, ctx.stj + dj, ctx.stk + dk)
        m = int(store.co[ijk])
        if m == 0:
            return True

        rel = store.positions(ijk) + (np.array((qx, qy, qz)) - origin)
        rs = np.einsum('ij,ij->i', rel, rel)
        ids = store.ids(ijk)
        own = ijk == ctx.ijk and qx == 0 and qy == 0 and qz == 0
        mrs = cell.max_radius_squared()

        for q in range(m):
            if own and q == ctx.q:
                continue
            scaled = state.scale(rs[q], ijk, q)
            # The plane sits at scaled / (2 |rel|); it misses the cell if that exceeds the cell radius
            if scaled > 0 and scaled * scaled > 4 * rs[q] * mrs:
                continue
            if not cell.nplane(rel[q, 0], rel[q, 1], rel[q, 2], scaled, int(ids[q])):
                return False
        return True
