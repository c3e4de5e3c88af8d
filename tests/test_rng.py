"""Tests for outbreak_sim.rng — seeded RNG streams and checkpointing."""

import numpy as np
import pytest

from outbreak_sim.rng import (
    STREAMS,
    create_rng_hierarchy,
    restore_rng_state,
    rng_state_snapshot,
)


class TestCreateRngHierarchy:
    def test_returns_correct_keys(self):
        rngs = create_rng_hierarchy(42)
        assert set(rngs) == set(STREAMS) == {'outbreak', 'spread'}

    def test_streams_are_independent(self):
        rngs = create_rng_hierarchy(42)
        assert rngs['outbreak'].random() != rngs['spread'].random()

    def test_reproducibility(self):
        rngs1 = create_rng_hierarchy(42)
        rngs2 = create_rng_hierarchy(42)
        for name in rngs1:
            np.testing.assert_array_equal(rngs1[name].random(100),
                                          rngs2[name].random(100))

    def test_different_seeds_differ(self):
        v1 = create_rng_hierarchy(42)['spread'].random(10)
        v2 = create_rng_hierarchy(43)['spread'].random(10)
        assert not np.array_equal(v1, v2)

    def test_unseeded(self):
        rngs = create_rng_hierarchy(None)
        assert isinstance(rngs['outbreak'], np.random.Generator)

    def test_outbreak_draws_do_not_shift_spread(self):
        """Extra seeding trials leave the spread stream untouched."""
        a = create_rng_hierarchy(7)
        b = create_rng_hierarchy(7)
        a['outbreak'].random(1000)
        np.testing.assert_array_equal(a['spread'].random(20), b['spread'].random(20))


class TestCheckpointing:
    def test_snapshot_and_restore(self):
        rngs = create_rng_hierarchy(42)
        for rng in rngs.values():
            rng.random(10)
        snapshot = rng_state_snapshot(rngs)
        expected = {name: rng.random(20) for name, rng in rngs.items()}

        rngs2 = create_rng_hierarchy(0)
        restore_rng_state(rngs2, snapshot)
        for name, rng in rngs2.items():
            np.testing.assert_array_equal(rng.random(20), expected[name])

    def test_restore_unknown_stream(self):
        rngs = create_rng_hierarchy(42)
        with pytest.raises(KeyError, match="unknown stream"):
            restore_rng_state(rngs, {'larval': rngs['spread'].bit_generator.state})
