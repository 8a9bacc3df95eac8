"""
Convex cell geometry.

A cell is stored as a set of points whose convex hull is the cell, expressed
relative to the particle that owns it. It starts as an axis-aligned box and
is cut by planes of the form ``v . n <= rsq / 2``, which for a neighbor at
displacement ``n`` is exactly its perpendicular bisector (or radical plane
when ``rsq`` has been rescaled by radii).

Cutting keeps every vertex on the retained side and adds the intersection of
the plane with every hull edge that crosses it. Intersections with triangle
diagonals are interior to faces, so they never change the hull.
"""

from typing import List, Optional, Tuple

import numpy as np
import structlog
from scipy.spatial import ConvexHull

from ..config import settings

logger = structlog.get_logger()


class VoronoiCell:
    """
    Convex polyhedral cell without neighbor tracking.

    Args:
        tolerance: Distance within which a vertex counts as lying on a plane
    """

    def __init__(self, tolerance: Optional[float] = None):
        self.tolerance = tolerance if tolerance is not None else settings.cut_tolerance
        self.pts = np.zeros((0, 3), dtype=np.float64)
        self._hull: Optional[ConvexHull] = None

    def init(self, xmin: float, xmax: float, ymin: float, ymax: float,
             zmin: float, zmax: float) -> None:
        """Reset the cell to the box [xmin,xmax] x [ymin,ymax] x [zmin,zmax]."""
        self.pts = np.array(
            [[x, y, z] for z in (zmin, zmax) for y in (ymin, ymax) for x in (xmin, xmax)],
            dtype=np.float64,
        )
        self._hull = None

    @property
    def empty(self) -> bool:
        return self.pts.shape[0] == 0

    def _get_hull(self) -> ConvexHull:
        if self._hull is None:
            self._hull = ConvexHull(self.pts)
        return self._hull

    def plane(self, x: float, y: float, z: float, rsq: float) -> bool:
        """Cut the cell by the plane (x, y, z) . v = rsq / 2."""
        return self.nplane(x, y, z, rsq, 0)

    def nplane(self, x: float, y: float, z: float, rsq: float, p_id: int) -> bool:
        """
        Cut the cell by the plane (x, y, z) . v = rsq / 2, keeping the side
        containing the origin direction.

        Args:
            x, y, z: Plane normal (displacement to the neighbor)
            rsq: Twice the plane offset along the normal
            p_id: Id of whatever made the plane

        Returns:
            False if the cell was removed completely, True otherwise
        """
        if self.empty:
            return False

        normal = np.array((x, y, z), dtype=np.float64)
        norm = float(np.sqrt(normal @ normal))
        tol = self.tolerance * norm if norm > 0 else self.tolerance
        half = 0.5 * rsq
        if norm == 0 and abs(half) <= tol:
            # Coincident particles of equal weight: neither cell is cut
            logger.warning("Zero-normal plane ignored", plane_id=p_id, rsq=rsq)
            return True
        d = self.pts @ normal - half

        if not (d > tol).any():
            if norm > 0 and np.count_nonzero(np.abs(d) <= tol) >= 3:
                self._record_plane(normal / norm, half / norm, p_id)
            return True

        # Nothing strictly inside: at most a face survives
        if not (d < -tol).any():
            self.pts = np.zeros((0, 3), dtype=np.float64)
            self._hull = None
            return False

        hull = self._get_hull()
        simplices = hull.simplices
        edges = np.vstack([simplices[:, [0, 1]], simplices[:, [1, 2]], simplices[:, [0, 2]]])
        edges = np.unique(np.sort(edges, axis=1), axis=0)

        da = d[edges[:, 0]]
        db = d[edges[:, 1]]
        crossing = ((da > tol) & (db < -tol)) | ((da < -tol) & (db > tol))
        a = self.pts[edges[crossing, 0]]
        b = self.pts[edges[crossing, 1]]
        t = da[crossing] / (da[crossing] - db[crossing])
        cut_points = a + t[:, None] * (b - a)

        kept = hull.vertices[d[hull.vertices] <= tol]
        self.pts = np.vstack([self.pts[kept], cut_points])
        self._hull = None
        self._record_plane(normal / norm, half / norm, p_id)
        return True

    def _record_plane(self, unit_normal: np.ndarray, offset: float, p_id: int) -> None:
        pass

    def volume(self) -> float:
        """Volume of the cell."""
        if self.empty:
            return 0.0
        return float(self._get_hull().volume)

    def surface_area(self) -> float:
        """Total area of the cell faces."""
        if self.empty:
            return 0.0
        return float(self._get_hull().area)

    def max_radius_squared(self) -> float:
        """Squared distance from the particle to the furthest vertex."""
        if self.empty:
            return 0.0
        return float(np.einsum('ij,ij->i', self.pts, self.pts).max())

    def vertices(self, x: float = 0.0, y: float = 0.0, z: float = 0.0) -> np.ndarray:
        """
        Hull vertices of the cell.

        Args:
            x, y, z: Offset added to every vertex, typically the particle position

        Returns:
            Array of shape (n, 3)
        """
        if self.empty:
            return np.zeros((0, 3), dtype=np.float64)
        hull = self._get_hull()
        return self.pts[hull.vertices] + np.array((x, y, z))

    def centroid(self) -> np.ndarray:
        """Centroid of the cell relative to the particle."""
        if self.empty:
            return np.zeros(3)
        hull = self._get_hull()
        apex = self.pts[hull.vertices].mean(axis=0)
        tri = self.pts[hull.simplices]
        vols = np.abs(np.linalg.det(tri - apex[None, None, :])) / 6.0
        cents = (tri.sum(axis=1) + apex) / 4.0
        return (vols[:, None] * cents).sum(axis=0) / vols.sum()

    def number_of_vertices(self) -> int:
        if self.empty:
            return 0
        return len(self._get_hull().vertices)


class VoronoiCellNeighbor(VoronoiCell):
    """
    Convex cell that remembers which plane made each face.

    Faces of the initial box carry ids -1 (x min), -2 (x max), -3 (y min),
    -4 (y max), -5 (z min) and -6 (z max). A later plane that coincides with
    an existing face takes the face over.
    """

    def __init__(self, tolerance: Optional[float] = None):
        super().__init__(tolerance)
        self.planes: List[Tuple[np.ndarray, float, int]] = []

    def init(self, xmin: float, xmax: float, ymin: float, ymax: float,
             zmin: float, zmax: float) -> None:
        super().init(xmin, xmax, ymin, ymax, zmin, zmax)
        self.planes = [
            (np.array((-1.0, 0.0, 0.0)), -xmin, -1),
            (np.array((1.0, 0.0, 0.0)), xmax, -2),
            (np.array((0.0, -1.0, 0.0)), -ymin, -3),
            (np.array((0.0, 1.0, 0.0)), ymax, -4),
            (np.array((0.0, 0.0, -1.0)), -zmin, -5),
            (np.array((0.0, 0.0, 1.0)), zmax, -6),
        ]

    def _record_plane(self, unit_normal: np.ndarray, offset: float, p_id: int) -> None:
        self.planes.append((unit_normal, offset, p_id))

    def _faces(self) -> List[Tuple[np.ndarray, float, int]]:
        if self.empty:
            return []
        verts = self.vertices()
        faces: List[Tuple[np.ndarray, float, int]] = []
        for normal, offset, p_id in self.planes:
            if np.count_nonzero(np.abs(verts @ normal - offset) <= self.tolerance * 10) < 3:
                continue
            for i, (fn, fo, _) in enumerate(faces):
                if np.allclose(fn, normal, atol=1e-9) and abs(fo - offset) <= 1e-9:
                    faces[i] = (fn, fo, p_id)
                    break
            else:
                faces.append((normal, offset, p_id))
        return faces

    def neighbors(self) -> List[int]:
        """Ids of the particles or walls that made each face of the cell."""
        return [p_id for _, _, p_id in self._faces()]

    def number_of_faces(self) -> int:
        return len(self._faces())
