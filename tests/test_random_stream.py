"""Tests for the seeded random stream."""

import pytest

from tangle_map.core.random_stream import LCG_MODULUS, RandomStream


class TestSequentialDraws:
    """Test the linear congruential cursor."""

    def test_first_value_for_seed(self):
        """Test the first draw follows the LCG recurrence."""
        stream = RandomStream(42)
        assert stream.next() == 206659 / LCG_MODULUS

    def test_values_in_unit_interval(self):
        """Test that draws stay in [0, 1)."""
        stream = RandomStream(7)
        values = [stream.next() for _ in range(1000)]
        assert all(0 <= v < 1 for v in values)

    def test_negative_seed_stays_in_unit_interval(self):
        """Test that negative seeds still produce values in [0, 1)."""
        stream = RandomStream(-100)
        assert stream.next() == 52317 / LCG_MODULUS
        assert all(0 <= stream.next() < 1 for _ in range(100))

    def test_same_seed_same_sequence(self):
        """Test reproducibility."""
        a = RandomStream(1234)
        b = RandomStream(1234)
        assert [a.next() for _ in range(50)] == [b.next() for _ in range(50)]

    def test_call_count(self):
        """Test that every draw is counted and reseeding resets the count."""
        stream = RandomStream(1)
        for _ in range(5):
            stream.next()
        stream.random_int(0, 3)
        assert stream.call_count == 6

        stream.reseed(2)
        assert stream.call_count == 0
        assert stream.seed == 2

    def test_reset_rewinds_cursor(self):
        """Test reset returns to the start of the sequence."""
        stream = RandomStream(99)
        first = [stream.next() for _ in range(3)]
        stream.reset()
        assert [stream.next() for _ in range(3)] == first


class TestNoise:
    """Test position-keyed noise."""

    def test_noise_ignores_cursor(self):
        """Test noise returns the same value with draws in between."""
        stream = RandomStream(42)
        before = stream.noise(12.5, 40.1, 1)
        for _ in range(17):
            stream.next()
        after = stream.noise(12.5, 40.1, 1)
        assert before == after

    def test_noise_does_not_advance_cursor(self):
        """Test noise never consumes sequential draws."""
        stream = RandomStream(42)
        state = stream.state
        stream.noise(3, 4, 2)
        assert stream.state == state
        assert stream.call_count == 0

    def test_noise_buckets_coordinates(self):
        """Test that points in the same bucket share a value."""
        stream = RandomStream(5)
        assert stream.noise(3.1, 7.2, 1) == stream.noise(3.9, 7.8, 1)

    def test_noise_matches_generator_offset(self):
        """Test noise is the first draw of a generator keyed by position."""
        stream = RandomStream(5)
        assert stream.noise(3, 7, 1) == stream.generator(3 + 7 * 1000)()

    def test_noise_depends_on_seed(self):
        """Test that different seeds give different noise."""
        assert RandomStream(1).noise(10, 10) != RandomStream(2).noise(10, 10)


class TestHelpers:
    """Test derived draws."""

    def test_random_int_inclusive(self):
        """Test integer draws cover both bounds."""
        stream = RandomStream(3)
        values = {stream.random_int(0, 2) for _ in range(300)}
        assert values == {0, 1, 2}

    def test_random_float_range(self):
        """Test float draws respect their bounds."""
        stream = RandomStream(3)
        assert all(2.0 <= stream.random_float(2.0, 5.0) < 5.0 for _ in range(200))

    def test_pick_empty_raises(self):
        """Test picking from an empty sequence."""
        with pytest.raises(IndexError):
            RandomStream(1).pick([])

    def test_pick_uses_one_draw(self):
        """Test pick consumes exactly one value."""
        stream = RandomStream(1)
        stream.pick(["a", "b", "c"])
        assert stream.call_count == 1
