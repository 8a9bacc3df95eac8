"""Tests for doubled-index periodic addressing and fractional positions."""

import pytest

from py_voro.core import Container, VoronoiCell


@pytest.fixture
def periodic_context():
    """Periodic 4x4x4 unit cube with one particle in block (1, 2, 3)."""
    con = Container(0, 1, 0, 1, 0, 1, 4, 4, 4, True, True, True)
    ijk, q = con.put(0, 0.3, 0.6, 0.9)
    ctx = con.initialize_voronoicell(VoronoiCell(), con.location(ijk, q))
    return con, ctx


class TestPeriodicRegionIndex:
    """Test region_index on periodic axes."""

    def test_start_offset_is_own_block(self, periodic_context):
        """Test that the search start addresses the particle's block with no shift."""
        con, ctx = periodic_context
        ijk, shift = con.region_index(ctx, 4, 4, 4)

        assert ijk == ctx.ijk
        assert shift == (0.0, 0.0, 0.0)

    def test_one_period_left(self, periodic_context):
        """Test that offset 0 is the same block shifted by minus one period."""
        con, ctx = periodic_context
        ijk, shift = con.region_index(ctx, 0, 4, 4)

        assert ijk == ctx.ijk
        assert shift == (-1.0, 0.0, 0.0)

    def test_one_period_right(self, periodic_context):
        """Test that offset 2n is the same block shifted by plus one period."""
        con, ctx = periodic_context
        ijk, shift = con.region_index(ctx, 8, 4, 4)

        assert ijk == ctx.ijk
        assert shift == (1.0, 0.0, 0.0)

    def test_neighbor_without_wrap(self, periodic_context):
        """Test a neighbor inside the domain."""
        con, ctx = periodic_context
        ijk, shift = con.region_index(ctx, 3, 4, 4)

        assert ijk == ctx.ijk - 1
        assert shift == (0.0, 0.0, 0.0)

    def test_wrap_below_low_threshold(self, periodic_context):
        """Test that a doubled index below n wraps to the far side with a negative shift."""
        con, ctx = periodic_context
        # Block i = -1 is block 3 seen one period to the left
        ijk, shift = con.region_index(ctx, 2, 4, 4)

        assert ijk == 3 + 4 * 2 + 16 * 3
        assert shift == (-1.0, 0.0, 0.0)

    def test_wrap_at_high_threshold(self, periodic_context):
        """Test that a doubled index of exactly 2n wraps with a positive shift."""
        con, ctx = periodic_context
        # Block i = 4 is block 0 seen one period to the right
        ijk, shift = con.region_index(ctx, 7, 4, 4)

        assert ijk == 0 + 4 * 2 + 16 * 3
        assert shift == (1.0, 0.0, 0.0)

    def test_just_below_high_threshold(self, periodic_context):
        """Test that the last in-range block does not wrap."""
        con, ctx = periodic_context
        ijk, shift = con.region_index(ctx, 6, 4, 4)

        assert ijk == 3 + 4 * 2 + 16 * 3
        assert shift == (0.0, 0.0, 0.0)

    def test_each_axis_wraps_independently(self, periodic_context):
        """Test wrapping y down and z up together."""
        con, ctx = periodic_context
        ijk, shift = con.region_index(ctx, 4, 1, 5)

        # j = 2 - 3 = -1 -> 3, k = 3 + 1 = 4 -> 0
        assert ijk == 1 + 4 * 3 + 16 * 0
        assert shift == (0.0, -1.0, 1.0)

    def test_shift_uses_domain_extent(self):
        """Test that translations equal the extent of each axis."""
        con = Container(-1, 2, 0, 5, 0, 0.5, 3, 5, 1, True, True, True)
        ijk, q = con.put(0, 0.0, 2.5, 0.25)
        ctx = con.initialize_voronoicell(VoronoiCell(), con.location(ijk, q))

        _, shift = con.region_index(ctx, 0, 0, 0)
        assert shift == (-3.0, -5.0, -0.5)
        _, shift = con.region_index(ctx, 6, 10, 2)
        assert shift == (3.0, 5.0, 0.5)


class TestNonPeriodicRegionIndex:
    """Test region_index on non-periodic axes."""

    def test_absolute_addressing(self):
        """Test that offsets are absolute block coordinates without shifts."""
        con = Container(0, 1, 0, 1, 0, 1, 4, 4, 4)
        ijk, q = con.put(0, 0.3, 0.6, 0.9)
        ctx = con.initialize_voronoicell(VoronoiCell(), con.location(ijk, q))

        assert ctx.cuijk == 0
        assert con.region_index(ctx, 0, 0, 0) == (0, (0.0, 0.0, 0.0))
        assert con.region_index(ctx, 3, 3, 3) == (63, (0.0, 0.0, 0.0))
        assert con.region_index(ctx, ctx.sti, ctx.stj, ctx.stk)[0] == ijk

    def test_mixed_periodicity(self):
        """Test that only the periodic axis wraps."""
        con = Container(0, 1, 0, 1, 0, 1, 4, 4, 4, xperiodic=True)
        ijk, q = con.put(0, 0.1, 0.1, 0.1)
        ctx = con.initialize_voronoicell(VoronoiCell(), con.location(ijk, q))

        assert (ctx.sti, ctx.stj, ctx.stk) == (4, 0, 0)
        ijk2, shift = con.region_index(ctx, 3, 0, 0)
        assert ijk2 == 3
        assert shift == (-1.0, 0.0, 0.0)


class TestFracPos:
    """Test the position of a particle within its block."""

    def test_frac_pos(self, periodic_context):
        """Test offsets from the block corner."""
        con, ctx = periodic_context
        fx, fy, fz = con.frac_pos(ctx)

        assert fx == pytest.approx(0.05)
        assert fy == pytest.approx(0.1)
        assert fz == pytest.approx(0.15)

    def test_frac_pos_offset_domain(self):
        """Test that the domain origin is subtracted."""
        con = Container(-2, 2, -2, 2, -2, 2, 2, 2, 2)
        ijk, q = con.put(0, 1.5, -0.5, 0.0)
        ctx = con.initialize_voronoicell(VoronoiCell(), con.location(ijk, q))

        assert con.frac_pos(ctx) == pytest.approx((1.5, 1.5, 0.0))
