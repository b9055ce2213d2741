"""
Tests for the spatial indexes: guillotine free-space list, occupancy grid
and extreme-point frontier.

Run with:
    python -m pytest tests/test_spatial.py -v
"""

import itertools
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from loadopt.config import Dimension, Item, PackingConfig
from loadopt.engine import PackingEngine, pack_detailed
from loadopt.errors import GridTooLargeError, LoadOptError, UnknownStrategyError
from loadopt.orientation import enumerate_orientations
from loadopt.scoring import PlacementScorer
from loadopt.spatial import (
    INDEX_REGISTRY,
    Candidate,
    ExtremePointIndex,
    FreeSpace,
    GuillotineIndex,
    OccupancyGrid,
    get_index_class,
)


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def box10():
    return Dimension(10, 10, 10)


@pytest.fixture
def cube5():
    return enumerate_orientations(Dimension(5, 5, 5))


def make_index(cls, container, orientations, **config):
    cfg = PackingConfig(strategy=cls.name, **config)
    return cls(container, orientations, PlacementScorer(cfg.resolved_weights()), cfg)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class TestRegistry:

    def test_both_strategies_registered(self):
        assert INDEX_REGISTRY["guillotine"] is GuillotineIndex
        assert INDEX_REGISTRY["extreme_points"] is ExtremePointIndex

    def test_unknown_strategy(self):
        with pytest.raises(UnknownStrategyError) as exc:
            get_index_class("skyline")
        assert "guillotine" in str(exc.value)
        assert isinstance(exc.value, ValueError)
        assert isinstance(exc.value, LoadOptError)


# ---------------------------------------------------------------------------
# Guillotine
# ---------------------------------------------------------------------------

class TestFreeSpace:

    def test_split_partitions_space(self, cube5):
        space = FreeSpace(0, 0, 0, 10, 10, 10)
        successors = space.split(cube5[0])
        extents = [(s.origin, s.extents) for s in successors]
        assert extents == [
            ((5, 0, 0), (5, 10, 10)),
            ((0, 5, 0), (5, 5, 10)),
            ((0, 0, 5), (5, 5, 5)),
        ]
        assert sum(s.volume for s in successors) + 125 == space.volume

    def test_split_drops_empty_successors(self):
        exact = enumerate_orientations(Dimension(10, 10, 10))[0]
        assert FreeSpace(0, 0, 0, 10, 10, 10).split(exact) == []

    def test_contains(self):
        outer = FreeSpace(0, 0, 0, 10, 10, 10)
        assert outer.contains(FreeSpace(2, 2, 2, 3, 3, 3))
        assert not outer.contains(FreeSpace(8, 0, 0, 3, 1, 1))
        assert outer.same_as(FreeSpace(0, 0, 0, 10, 10, 10))


class TestGuillotineIndex:

    def test_starts_with_whole_container(self, box10, cube5):
        idx = make_index(GuillotineIndex, box10, cube5)
        assert idx.open_count == 1
        assert idx.spaces[0].extents == (10, 10, 10)

    def test_first_candidate_at_origin(self, box10, cube5):
        idx = make_index(GuillotineIndex, box10, cube5)
        cand = idx.best_candidate()
        assert cand.position == (0, 0, 0)

    def test_commit_replaces_space_with_splits(self, box10, cube5):
        idx = make_index(GuillotineIndex, box10, cube5)
        idx.commit(idx.best_candidate())
        assert idx.open_count == 3
        assert sum(s.volume for s in idx.spaces) == 1000 - 125

    def test_discard_removes_anchor(self, box10, cube5):
        idx = make_index(GuillotineIndex, box10, cube5)
        idx.discard(idx.best_candidate())
        assert idx.open_count == 0
        assert idx.best_candidate() is None

    def test_prune(self, box10):
        orientations = enumerate_orientations(Dimension(2, 2, 2))
        idx = make_index(GuillotineIndex, box10, orientations)
        first = FreeSpace(0, 0, 0, 10, 10, 10)
        idx.spaces = [
            first,
            FreeSpace(0, 0, 0, 5, 5, 5),         # contained
            FreeSpace(0, 0, 0, 10, 10, 10),      # duplicate
            FreeSpace(20, 0, 0, 1, 1, 1),        # fits nothing
        ]
        idx.prune()
        assert len(idx.spaces) == 1
        assert idx.spaces[0] is first

    def test_tolerance_only_at_container_walls(self, box10):
        long_side = enumerate_orientations(Dimension(5.0005, 5, 5))
        idx = make_index(GuillotineIndex, box10, long_side)
        # bounded on every axis by a placed item, not by the container
        idx.spaces = [FreeSpace(0, 0, 0, 5, 5, 5)]
        assert idx.best_candidate() is None

        # ends at the x wall: the overrun along x is absorbed
        idx.spaces = [FreeSpace(5, 0, 0, 5, 5, 5)]
        cand = idx.best_candidate()
        assert cand is not None
        assert cand.orientation.dims[0] == pytest.approx(5.0005)

    def test_near_equal_items_do_not_overlap(self):
        container = (20, 10, 10)
        result = pack_detailed(container, "cm", (10.0005, 5, 5), "cm")
        assert result.placed_count > 0
        for a, b in itertools.combinations(result.placements, 2):
            assert not (
                a.x < b.x_max - 1e-9 and b.x < a.x_max - 1e-9
                and a.y < b.y_max - 1e-9 and b.y < a.y_max - 1e-9
                and a.z < b.z_max - 1e-9 and b.z < a.z_max - 1e-9
            )

    def test_maintain_prunes_on_interval(self, box10):
        orientations = enumerate_orientations(Dimension(2, 2, 2))
        idx = make_index(GuillotineIndex, box10, orientations, prune_interval=2)
        idx.spaces.append(FreeSpace(0, 0, 0, 1, 1, 1))
        idx.maintain(1)
        assert idx.open_count == 2
        idx.maintain(2)
        assert idx.open_count == 1


# ---------------------------------------------------------------------------
# Occupancy grid
# ---------------------------------------------------------------------------

class TestOccupancyGrid:

    def test_shape_is_ceiling(self):
        assert OccupancyGrid(Dimension(10.5, 3, 2)).shape == (11, 3, 2)

    def test_too_large(self):
        with pytest.raises(GridTooLargeError):
            OccupancyGrid(Dimension(100, 100, 100), max_cells=1000)

    def test_mark_and_query(self, box10):
        grid = OccupancyGrid(box10)
        grid.mark((0, 0, 0), (5, 5, 5))
        assert grid.is_occupied((4, 4, 4))
        assert not grid.is_occupied((5, 0, 0))
        assert not grid.is_occupied((50, 0, 0))
        assert grid.occupied_fraction() == pytest.approx(0.125)

    def test_fractional_extent_marks_touched_cells(self, box10):
        grid = OccupancyGrid(box10)
        grid.mark((0, 0, 0), (2.5, 1, 1))
        assert int(grid.cells.sum()) == 3

    def test_sample_is_free(self, box10):
        grid = OccupancyGrid(box10)
        grid.mark((0, 0, 0), (5, 5, 5))
        assert grid.sample_is_free((5, 0, 0), (5, 5, 5))
        assert grid.sample_is_free((0, 0, 5), (5, 5, 5))
        assert not grid.sample_is_free((4, 0, 0), (5, 5, 5))

    def test_interior_stride_for_large_boxes(self):
        grid = OccupancyGrid(Dimension(30, 30, 30))
        grid.mark((6, 6, 6), (1, 1, 1))
        assert not grid.sample_is_free((0, 0, 0), (30, 30, 30))

    def test_sampling_is_approximate(self):
        grid = OccupancyGrid(Dimension(30, 30, 30))
        grid.mark((7, 7, 7), (1, 1, 1))
        # cell 7 lies between the stride samples 6 and 12
        assert grid.sample_is_free((0, 0, 0), (30, 30, 30))


# ---------------------------------------------------------------------------
# Extreme points
# ---------------------------------------------------------------------------

class TestExtremePointIndex:

    def test_seeded_with_origin(self, box10, cube5):
        idx = make_index(ExtremePointIndex, box10, cube5)
        assert idx.points == [(0.0, 0.0, 0.0)]
        assert idx.best_candidate().position == (0, 0, 0)

    def test_commit_generates_far_face_points(self, box10, cube5):
        idx = make_index(ExtremePointIndex, box10, cube5)
        idx.commit(idx.best_candidate())
        assert sorted(idx.points) == [(0, 0, 5), (0, 5, 0), (5, 0, 0)]
        assert not idx.can_place((0, 0, 0), cube5[0])

    def test_points_outside_container_not_added(self, box10):
        exact = enumerate_orientations(box10)
        idx = make_index(ExtremePointIndex, box10, exact)
        idx.commit(idx.best_candidate())
        assert idx.points == []
        assert idx.best_candidate() is None

    def test_duplicate_points_merged(self, box10, cube5):
        idx = make_index(ExtremePointIndex, box10, cube5)
        o = cube5[0]
        for p in [(0, 0, 0), (5, 0, 0), (0, 5, 0)]:
            idx.commit(Candidate(position=p, orientation=o, score=0.0, anchor=p))
        assert idx.points.count((5, 5, 0)) == 1

    def test_can_place_rejects_out_of_bounds(self, box10, cube5):
        idx = make_index(ExtremePointIndex, box10, cube5)
        assert not idx.can_place((6, 0, 0), cube5[0])
        assert not idx.can_place((-1, 0, 0), cube5[0])

    def test_selection_order_is_z_then_x_then_y(self, box10, cube5):
        idx = make_index(ExtremePointIndex, box10, cube5)
        idx.commit(idx.best_candidate())
        idx.best_candidate()
        assert idx.points[0] == (0, 5, 0)

    def test_frontier_drops_points_inside_placed_items(self):
        engine = PackingEngine(Dimension(40, 30, 20), Item(Dimension(10, 10, 5)),
                               PackingConfig(strategy="extreme_points"))
        result = engine.run()
        idx = engine._index
        assert result.placed_count > 0
        assert all(not idx.grid.is_occupied(idx.grid.cell_at(p)) for p in idx.points)

    def test_cell_at_matches_marked_corner(self, box10):
        grid = OccupancyGrid(box10)
        grid.mark((2.5, 0, 0), (1, 1, 1))
        assert grid.cell_at((2.5, 0, 0)) == (2, 0, 0)
        assert grid.is_occupied(grid.cell_at((2.5, 0, 0)))
