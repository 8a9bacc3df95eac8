"""
Wall objects and the ordered wall list applied to every new cell.

A wall is anything that can say whether a point lies inside it and can cut a
cell with its bounding surface. Walls are applied in the order they were
added; the first wall that removes the cell completely stops the sequence.
"""

from abc import ABC, abstractmethod
from typing import Iterator, List, Union

import structlog

logger = structlog.get_logger()


class Wall(ABC):
    """Base class for wall objects."""

    @abstractmethod
    def point_inside(self, x: float, y: float, z: float) -> bool:
        """Test whether a point is inside the wall object."""

    @abstractmethod
    def cut_cell(self, cell, x: float, y: float, z: float) -> bool:
        """
        Cut a cell centered on particle (x, y, z) with this wall.

        The same call serves plain cells and neighbor-tracking cells: the
        wall always passes its id through ``cell.nplane``, and cells that do
        not track neighbors ignore it.

        Returns:
            False if the cut removed the cell entirely, True otherwise
        """


class WallPlane(Wall):
    """
    Plane wall keeping the half-space a*x + b*y + c*z < d.

    Args:
        a, b, c: Plane normal, pointing out of the retained region
        d: Plane displacement
        w_id: Id recorded as the neighbor of faces made by this wall
    """

    def __init__(self, a: float, b: float, c: float, d: float, w_id: int = -99):
        self.a = a
        self.b = b
        self.c = c
        self.d = d
        self.w_id = w_id

    def point_inside(self, x: float, y: float, z: float) -> bool:
        return x * self.a + y * self.b + z * self.c < self.d

    def cut_cell(self, cell, x: float, y: float, z: float) -> bool:
        # Cell coordinates are relative to the particle, so the plane offset
        # is shifted by the particle's own projection onto the normal
        dq = 2 * (self.d - x * self.a - y * self.b - z * self.c)
        return cell.nplane(self.a, self.b, self.c, dq, self.w_id)

    def __repr__(self) -> str:
        return f"WallPlane(a={self.a}, b={self.b}, c={self.c}, d={self.d}, w_id={self.w_id})"


class WallList:
    """Ordered collection of walls."""

    def __init__(self):
        self.walls: List[Wall] = []

    def add_wall(self, wall: Union[Wall, "WallList"]) -> None:
        """
        Append a wall, or every wall of another list, to this list.

        Args:
            wall: A Wall instance or a WallList whose walls are copied in order
        """
        if isinstance(wall, WallList):
            self.walls.extend(wall.walls)
        elif isinstance(wall, Wall):
            self.walls.append(wall)
        else:
            raise TypeError(f"Expected Wall or WallList, got {type(wall).__name__}")
        logger.debug("Wall added", total_walls=len(self.walls))

    def point_inside_walls(self, x: float, y: float, z: float) -> bool:
        """Return True if the point is inside every wall."""
        return all(w.point_inside(x, y, z) for w in self.walls)

    def apply_walls(self, cell, x: float, y: float, z: float) -> bool:
        """
        Cut a cell with every wall in insertion order.

        Returns:
            False as soon as one wall removes the cell; the remaining walls
            are not applied
        """
        for w in self.walls:
            if not w.cut_cell(cell, x, y, z):
                return False
        return True

    def clear_walls(self) -> None:
        """Forget all walls."""
        self.walls.clear()

    def __len__(self) -> int:
        return len(self.walls)

    def __iter__(self) -> Iterator[Wall]:
        return iter(self.walls)
