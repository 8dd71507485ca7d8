"""Tests for hex-coordinate arithmetic.

Tests cover:
- Canonical key formatting and parsing, including malformed input
- Axial distance and neighbours
- Range queries and the edge of the representable grid
- Travel time with speed bonuses
"""

import pytest

from tribes.spatial import (
    format_hex_coords,
    get_hexes_in_range,
    get_neighbors,
    hex_distance,
    parse_hex_coords,
    travel_turns,
)


class TestHexKeys:
    """Tests for format_hex_coords and parse_hex_coords."""

    def test_origin_is_offset(self):
        assert format_hex_coords(0, 0) == "050.050"

    def test_negative_coordinates_are_zero_padded(self):
        assert format_hex_coords(-3, 12) == "047.062"
        assert format_hex_coords(-50, -50) == "000.000"

    def test_parse_inverts_format(self):
        for q, r in [(0, 0), (-3, 12), (7, -7), (-50, 949)]:
            assert parse_hex_coords(format_hex_coords(q, r)) == (q, r)

    def test_unrepresentable_coordinates_raise(self):
        with pytest.raises(ValueError, match="out of range"):
            format_hex_coords(-51, 0)

    @pytest.mark.parametrize("key", ["50.50", "050-050", "050.05a", "050.050.050", ""])
    def test_malformed_keys_raise(self, key):
        with pytest.raises(ValueError):
            parse_hex_coords(key)

    def test_non_string_key_raises(self):
        with pytest.raises(ValueError, match="must be a string"):
            parse_hex_coords(50050)


class TestDistanceAndNeighbours:
    """Tests for hex_distance and get_neighbors."""

    def test_distance_examples(self):
        assert hex_distance("050.050", "050.050") == 0
        assert hex_distance("050.050", "052.049") == 2
        assert hex_distance("050.050", "046.050") == 4

    def test_distance_is_symmetric(self):
        assert hex_distance("047.062", "053.048") == hex_distance("053.048", "047.062")

    def test_six_neighbours_at_distance_one(self):
        neighbours = get_neighbors("050.050")
        assert len(neighbours) == 6
        assert len(set(neighbours)) == 6
        assert all(hex_distance("050.050", n) == 1 for n in neighbours)

    def test_corner_hex_drops_unrepresentable_neighbours(self):
        neighbours = get_neighbors("000.000")
        assert sorted(neighbours) == ["000.001", "001.000"]


class TestRange:
    """Tests for get_hexes_in_range."""

    @pytest.mark.parametrize("radius,count", [(0, 1), (1, 7), (2, 19), (4, 61)])
    def test_disk_size(self, radius, count):
        assert len(get_hexes_in_range("050.050", radius)) == count

    def test_accepts_axial_tuple(self):
        assert get_hexes_in_range((0, 0), 1) == get_hexes_in_range("050.050", 1)

    def test_all_hexes_within_radius(self):
        assert all(hex_distance("050.050", k) <= 3 for k in get_hexes_in_range("050.050", 3))

    def test_negative_radius_raises(self):
        with pytest.raises(ValueError, match="non-negative"):
            get_hexes_in_range("050.050", -1)


class TestTravelTurns:
    """Tests for travel_turns."""

    def test_half_turn_per_hex_rounded_up(self):
        assert travel_turns("050.050", "051.050") == 1
        assert travel_turns("050.050", "053.050") == 2
        assert travel_turns("050.050", "054.050") == 2

    def test_at_least_one_turn(self):
        assert travel_turns("050.050", "050.050") == 1

    def test_speed_bonus_shortens_trips(self):
        assert travel_turns("050.050", "058.050") == 4
        assert travel_turns("050.050", "058.050", speed_multiplier=2.0) == 2
