"""
Unit tests for multi-index hashing.
"""

import pytest
import imagehash
import numpy as np

from similar_images.lsh import MultiIndexHash, is_bucketing_useful, segment_bounds


def _hash(bits):
    bits = np.asarray(bits, dtype=bool)
    return imagehash.ImageHash(bits.reshape(8, -1))


def _random_hash(rng, n_bits=64):
    return rng.integers(0, 2, n_bits).astype(bool)


def _flip(bits, positions):
    flipped = bits.copy()
    flipped[list(positions)] ^= True
    return flipped


class TestSegmentBounds:
    """Test splitting hashes into segments."""

    def test_even_split(self):
        assert segment_bounds(64, 4) == [(0, 16), (16, 32), (32, 48), (48, 64)]

    def test_uneven_split(self):
        bounds = segment_bounds(64, 3)
        lengths = [end - start for start, end in bounds]
        assert sum(lengths) == 64
        assert max(lengths) - min(lengths) <= 1

    def test_invalid(self):
        with pytest.raises(ValueError):
            segment_bounds(64, 0)
        with pytest.raises(ValueError):
            segment_bounds(8, 9)


class TestIsBucketingUseful:
    """Test the bucketing feasibility check."""

    def test_small_threshold(self):
        assert is_bucketing_useful(64, 5)

    def test_threshold_too_loose(self):
        assert not is_bucketing_useful(64, 10)

    def test_larger_hashes(self):
        assert is_bucketing_useful(256, 10)


class TestMultiIndexHash:
    """Test MultiIndexHash class."""

    def test_initialization(self):
        index = MultiIndexHash(hash_bits=64, threshold=3)
        assert index.num_tables == 4
        assert index.size == 0

    def test_add_hash(self):
        index = MultiIndexHash(hash_bits=64, threshold=3)
        index.add(0, _hash(np.zeros(64)))
        assert index.size == 1

    def test_wrong_bit_count(self):
        index = MultiIndexHash(hash_bits=64, threshold=3)
        with pytest.raises(ValueError):
            index.add(0, imagehash.ImageHash(np.zeros((4, 4), dtype=bool)))

    def test_none_hash_handling(self):
        index = MultiIndexHash(hash_bits=64, threshold=3)
        index.add(0, None)
        assert index.size == 0

    def test_identical_hashes_collide(self):
        index = MultiIndexHash(hash_bits=64, threshold=0)
        bits = np.ones(64)
        index.add(0, _hash(bits))
        index.add(1, _hash(bits))
        assert index.get_all_candidate_pairs() == {(0, 1)}

    def test_never_misses_pairs_within_threshold(self):
        """Any two hashes within the threshold share at least one bucket."""
        rng = np.random.default_rng(42)
        threshold = 5
        index = MultiIndexHash(hash_bits=64, threshold=threshold)

        base = _random_hash(rng)
        index.add(0, _hash(base))
        # Spread the flipped bits over as many segments as possible
        for idx, positions in enumerate([(0, 13, 26, 39, 52), (1, 2, 3), (60, 61, 62, 63, 5)], 1):
            index.add(idx, _hash(_flip(base, positions)))

        pairs = index.get_all_candidate_pairs()
        for idx in (1, 2, 3):
            assert (0, idx) in pairs

    def test_distant_hashes_do_not_collide(self):
        index = MultiIndexHash(hash_bits=64, threshold=1)
        zeros = np.zeros(64)
        index.add(0, _hash(zeros))
        index.add(1, _hash(np.ones(64)))
        assert index.get_all_candidate_pairs() == set()

    def test_variants_of_one_image(self):
        index = MultiIndexHash(hash_bits=64, threshold=1)
        index.add(0, _hash(np.zeros(64)))
        index.add(0, _hash(np.ones(64)))
        index.add(1, _hash(np.ones(64)))
        assert index.size == 2
        assert index.get_all_candidate_pairs() == {(0, 1)}

    def test_iter_candidate_pairs_ordered(self):
        index = MultiIndexHash(hash_bits=64, threshold=2)
        bits = np.zeros(64)
        for idx in (3, 1, 2):
            index.add(idx, _hash(bits))
        for i, j in index.iter_candidate_pairs():
            assert i < j

    def test_iter_candidate_pairs_may_have_duplicates(self):
        index = MultiIndexHash(hash_bits=64, threshold=2)
        bits = np.zeros(64)
        index.add(0, _hash(bits))
        index.add(1, _hash(bits))
        assert list(index.iter_candidate_pairs()) == [(0, 1)] * 3

    def test_estimate_candidate_pairs(self):
        index = MultiIndexHash(hash_bits=64, threshold=2)
        bits = np.zeros(64)
        for idx in range(4):
            index.add(idx, _hash(bits))
        assert index.estimate_candidate_pairs() == 3 * 6
        assert index.estimate_candidate_pairs() == len(list(index.iter_candidate_pairs()))

    def test_estimate_candidate_pairs_empty(self):
        assert MultiIndexHash(hash_bits=64, threshold=2).estimate_candidate_pairs() == 0

    def test_clear(self):
        index = MultiIndexHash(hash_bits=64, threshold=2)
        index.add(0, _hash(np.zeros(64)))
        index.clear()
        assert index.size == 0
        assert index.get_all_candidate_pairs() == set()

    def test_get_stats(self):
        index = MultiIndexHash(hash_bits=64, threshold=3)
        index.add(0, _hash(np.zeros(64)))
        index.add(1, _hash(np.zeros(64)))
        stats = index.get_stats()
        assert stats['num_tables'] == 4
        assert stats['segment_bits'] == [16, 16, 16, 16]
        assert stats['total_items'] == 2
        assert stats['max_bucket_size'] == 2
