"""Tests for index traversal directions."""

from waterlevels.core.direction import Direction


class TestDirection:
    """Test stepping over a half-open range."""

    def test_left_steps_down(self):
        assert Direction.LEFT.next_index(3, range(5)) == 2

    def test_left_stops_at_zero(self):
        assert Direction.LEFT.next_index(0, range(5)) is None

    def test_right_steps_up(self):
        assert Direction.RIGHT.next_index(3, range(5)) == 4

    def test_right_stops_at_last_index(self):
        assert Direction.RIGHT.next_index(4, range(5)) is None

    def test_single_element_range(self):
        assert Direction.LEFT.next_index(0, range(1)) is None
        assert Direction.RIGHT.next_index(0, range(1)) is None
