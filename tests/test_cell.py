"""Tests for the convex cell geometry."""

import pytest
import numpy as np

from py_voro.core import VoronoiCell, VoronoiCellNeighbor
from py_voro.core import cell as cell_module


class _WarningRecorder:
    """Stand-in logger keeping warning events."""

    def __init__(self):
        self.warnings = []

    def warning(self, event, **kw):
        self.warnings.append((event, kw))


@pytest.fixture
def cube():
    """Cell initialized to the cube [-1, 1]^3."""
    cell = VoronoiCell()
    cell.init(-1, 1, -1, 1, -1, 1)
    return cell


class TestBoxCell:
    """Test freshly initialized cells."""

    def test_volume(self, cube):
        """Test the volume of the initial box."""
        assert cube.volume() == pytest.approx(8.0)

    def test_surface_area(self, cube):
        """Test the surface area of the initial box."""
        assert cube.surface_area() == pytest.approx(24.0)

    def test_max_radius_squared(self, cube):
        """Test the squared distance to the furthest corner."""
        assert cube.max_radius_squared() == pytest.approx(3.0)

    def test_centroid(self):
        """Test the centroid of an off-center box."""
        cell = VoronoiCell()
        cell.init(0, 2, -1, 1, 1, 2)
        np.testing.assert_allclose(cell.centroid(), [1.0, 0.0, 1.5], atol=1e-12)

    def test_vertices_offset(self, cube):
        """Test that vertex positions can be shifted to absolute coordinates."""
        verts = cube.vertices(10, 0, 0)
        assert len(verts) == 8
        assert verts[:, 0].min() == pytest.approx(9.0)
        assert cube.number_of_vertices() == 8


class TestPlaneCuts:
    """Test cutting cells with planes."""

    def test_half_space_cut(self, cube):
        """Test cutting by the bisector of a neighbor at distance 1."""
        assert cube.plane(1, 0, 0, 1)
        assert cube.volume() == pytest.approx(6.0)
        assert cube.vertices()[:, 0].max() == pytest.approx(0.5)

    def test_plane_missing_cell(self, cube):
        """Test that a plane beyond the cell changes nothing."""
        assert cube.plane(1, 0, 0, 10)
        assert cube.volume() == pytest.approx(8.0)

    def test_plane_removing_cell(self, cube):
        """Test that a plane excluding every vertex empties the cell."""
        assert not cube.plane(1, 0, 0, -10)
        assert cube.empty
        assert cube.volume() == 0.0
        assert cube.max_radius_squared() == 0.0
        assert not cube.plane(0, 1, 0, 1)

    def test_plane_through_face(self, cube):
        """Test that a plane leaving only a face counts as removal."""
        assert not cube.plane(1, 0, 0, -2)

    def test_corner_cut(self, cube):
        """Test cutting one corner off the cube."""
        assert cube.plane(1, 1, 1, 5)
        assert cube.volume() == pytest.approx(8.0 - 0.5 ** 3 / 6)
        assert cube.number_of_vertices() == 10

    def test_successive_cuts(self, cube):
        """Test that cuts compose into their intersection."""
        cube.plane(1, 0, 0, 1)
        cube.plane(0, 1, 0, 1)
        cube.plane(0, 0, -1, 1)
        assert cube.volume() == pytest.approx(1.5 * 1.5 * 1.5)

    def test_cut_order_independent(self):
        """Test that the same planes in another order give the same cell."""
        planes = [(1, 0.2, 0, 1.1), (0.3, 1, 0.1, 0.9), (-1, -1, 0.5, 1.7), (0, 0, 1, 0.4)]

        volumes = []
        for order in (planes, planes[::-1]):
            cell = VoronoiCell()
            cell.init(-1, 1, -1, 1, -1, 1)
            for p in order:
                cell.plane(*p)
            volumes.append(cell.volume())

        assert volumes[0] == pytest.approx(volumes[1])

    def test_zero_normal_plane_ignored(self, cube, monkeypatch):
        """Test that a coincident equal-weight neighbor leaves the cell alone and warns."""
        recorder = _WarningRecorder()
        monkeypatch.setattr(cell_module, "logger", recorder)

        assert cube.nplane(0, 0, 0, 0, 7)
        assert cube.volume() == pytest.approx(8.0)
        assert recorder.warnings == [("Zero-normal plane ignored", {"plane_id": 7, "rsq": 0})]

    def test_zero_normal_plane_with_weight(self, cube):
        """Test that a coincident heavier neighbor removes the cell."""
        assert not cube.plane(0, 0, 0, -0.5)
        assert cube.empty


class TestNeighborTracking:
    """Test cells that remember which plane made each face."""

    def test_cut_replaces_box_face(self):
        """Test that a cut face carries the cutting id."""
        cell = VoronoiCellNeighbor()
        cell.init(-1, 1, -1, 1, -1, 1)
        cell.nplane(1, 0, 0, 1, 7)

        assert sorted(cell.neighbors()) == [-6, -5, -4, -3, -1, 7]
        assert cell.number_of_faces() == 6

    def test_coincident_plane_takes_over_face(self):
        """Test that a plane lying on an existing face takes the face over."""
        cell = VoronoiCellNeighbor()
        cell.init(-0.5, 0.5, -0.5, 0.5, -0.5, 0.5)
        cell.nplane(1, 0, 0, 1, 3)

        assert 3 in cell.neighbors()
        assert -2 not in cell.neighbors()
        assert cell.volume() == pytest.approx(1.0)

    def test_face_count_after_corner_cut(self):
        """Test that cutting a corner adds one face."""
        cell = VoronoiCellNeighbor()
        cell.init(-1, 1, -1, 1, -1, 1)
        cell.nplane(1, 1, 1, 5, 11)

        assert cell.number_of_faces() == 7
        assert 11 in cell.neighbors()

    def test_plain_cell_ignores_ids(self, cube):
        """Test that a plain cell accepts an id without tracking it."""
        assert cube.nplane(1, 0, 0, 1, 42)
        assert cube.volume() == pytest.approx(6.0)
        assert not hasattr(cube, "neighbors")
