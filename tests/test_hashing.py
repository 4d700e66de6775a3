"""
Unit tests for perceptual hashing, decoding and single-image analysis.
"""

import pytest
import imagehash
import numpy as np
from PIL import Image

from similar_images.errors import DecodeError
from similar_images.models import FileEntry
from similar_images.params import HashAlgorithm, Parameters, ResizeFilter
from similar_images.scanner.analysis import analyze_image
from similar_images.scanner.decoding import decode_image
from similar_images.scanner.hashing import (
    compute_hash_variants,
    hash_bit_count,
    hash_distance,
    hash_to_hex,
    hex_to_hash,
    packed_bits,
    working_size,
)
from similar_images.scanner.grouping import _min_distance


def _params(**kwargs):
    return Parameters.create(**kwargs)


class TestBitLayout:
    """Working sizes and hash sizes per algorithm."""

    @pytest.mark.parametrize("algorithm", list(HashAlgorithm))
    @pytest.mark.parametrize("hash_size", [8, 16])
    def test_hash_has_expected_bits(self, pattern_image, algorithm, hash_size):
        variants = compute_hash_variants(
            pattern_image, _params(hash_algorithm=algorithm, hash_size=hash_size)
        )
        assert variants[0].hash.hash.size == hash_bit_count(algorithm, hash_size)

    def test_working_sizes(self):
        assert working_size(HashAlgorithm.GRADIENT, 8) == (9, 8)
        assert working_size(HashAlgorithm.VERT_GRADIENT, 8) == (8, 9)
        assert working_size(HashAlgorithm.DOUBLE_GRADIENT, 8) == (5, 5)
        assert working_size(HashAlgorithm.BLOCKHASH, 8) == (32, 32)
        assert working_size(HashAlgorithm.MEAN, 16) == (16, 16)

    def test_double_gradient_bits(self):
        assert hash_bit_count(HashAlgorithm.DOUBLE_GRADIENT, 8) == 32
        assert hash_bit_count(HashAlgorithm.GRADIENT, 8) == 64


class TestComputeHashVariants:
    """Test hashing behavior."""

    @pytest.mark.parametrize("resize_filter", list(ResizeFilter))
    def test_deterministic(self, pattern_image, resize_filter):
        params = _params(resize_filter=resize_filter)
        first = compute_hash_variants(pattern_image, params)
        second = compute_hash_variants(pattern_image.copy(), params)
        assert first == second

    def test_variant_counts(self, pattern_image):
        assert len(compute_hash_variants(pattern_image, _params())) == 1
        assert len(compute_hash_variants(
            pattern_image, _params(geometric_invariance='mirror_flip'))) == 2
        assert len(compute_hash_variants(
            pattern_image, _params(geometric_invariance='mirror_flip_rotate90'))) == 8

    def test_variant_order(self, pattern_image):
        variants = compute_hash_variants(pattern_image, _params(geometric_invariance='mirror_flip'))
        assert [v.transform for v in variants] == ['original', 'mirror']

    def test_gradient_of_ramp(self):
        ramp = Image.fromarray(np.tile(np.arange(0, 256, 4, dtype=np.uint8), (64, 1)), 'L')
        variants = compute_hash_variants(ramp, _params())
        assert variants[0].hash.hash.all()

    def test_vert_gradient_ignores_horizontal_ramp(self):
        ramp = Image.fromarray(np.tile(np.arange(0, 256, 4, dtype=np.uint8), (64, 1)), 'L')
        variants = compute_hash_variants(ramp, _params(hash_algorithm='vert_gradient'))
        assert not variants[0].hash.hash.any()

    def test_inverted_image_is_far(self, pattern_image):
        inverted = Image.fromarray(255 - np.asarray(pattern_image), 'RGB')
        params = _params()
        original = compute_hash_variants(pattern_image, params)[0].hash
        opposite = compute_hash_variants(inverted, params)[0].hash
        assert hash_distance(original, opposite) > 32

    def test_resized_copy_is_close(self, pattern_image):
        smaller = pattern_image.resize((180, 180), Image.Resampling.LANCZOS)
        params = _params()
        original = compute_hash_variants(pattern_image, params)[0].hash
        resized = compute_hash_variants(smaller, params)[0].hash
        assert hash_distance(original, resized) <= 10

    def test_mirror_variant_matches_mirrored_image(self, asymmetric_image):
        params = _params(geometric_invariance='mirror_flip')
        mirrored = asymmetric_image.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
        original = compute_hash_variants(asymmetric_image, params)
        flipped = compute_hash_variants(mirrored, params)
        assert hash_distance(original[0].hash, flipped[1].hash) == 0
        assert hash_distance(original[0].hash, flipped[0].hash) > 0


class TestHashDistance:
    """hash_distance agrees with the packed-bit distance used for grouping."""

    @pytest.mark.parametrize("algorithm", list(HashAlgorithm))
    @pytest.mark.parametrize("hash_size", [8, 16])
    def test_matches_packed_popcount(self, pattern_image, asymmetric_image, algorithm, hash_size):
        params = _params(hash_algorithm=algorithm, hash_size=hash_size,
                         geometric_invariance='mirror_flip')
        first = compute_hash_variants(pattern_image, params)
        second = compute_hash_variants(asymmetric_image, params)

        for a in first:
            for b in second:
                packed = _min_distance(packed_bits(a.hash)[None, :], packed_bits(b.hash)[None, :])
                assert hash_distance(a.hash, b.hash) == packed

    def test_random_hashes(self):
        rng = np.random.default_rng(3)
        for shape in ((8, 8), (4, 8), (16, 16)):
            a = imagehash.ImageHash(rng.integers(0, 2, shape).astype(bool))
            b = imagehash.ImageHash(rng.integers(0, 2, shape).astype(bool))
            expected = int(np.count_nonzero(a.hash != b.hash))
            assert hash_distance(a, b) == expected
            assert _min_distance(packed_bits(a)[None, :], packed_bits(b)[None, :]) == expected

    def test_identical_hashes(self, pattern_image):
        phash = compute_hash_variants(pattern_image, _params())[0].hash
        assert hash_distance(phash, phash) == 0


class TestHashSerialization:
    """Hex encoding used by the cache."""

    @pytest.mark.parametrize("algorithm", list(HashAlgorithm))
    def test_hex_round_trip(self, pattern_image, algorithm):
        phash = compute_hash_variants(pattern_image, _params(hash_algorithm=algorithm))[0].hash
        restored = hex_to_hash(hash_to_hex(phash), phash.hash.shape)
        assert restored == phash

    def test_hex_shape_mismatch(self):
        with pytest.raises(ValueError):
            hex_to_hash("ff", (8, 8))


class TestDecodeImage:
    """Test the default decoder."""

    def test_decodes_png(self, sample_images):
        image = decode_image(sample_images['base'])
        assert image.size == (256, 256)
        assert image.mode == 'RGB'

    def test_converts_palette_images(self, temp_dir):
        path = temp_dir / "palette.gif"
        Image.new('P', (10, 10)).save(path)
        assert decode_image(path).mode == 'RGB'

    def test_missing_file(self, temp_dir):
        with pytest.raises(DecodeError, match="File not found"):
            decode_image(temp_dir / "missing.png")

    def test_not_an_image(self, sample_images):
        with pytest.raises(DecodeError) as exc_info:
            decode_image(sample_images['corrupted'])
        assert exc_info.value.path == sample_images['corrupted']


class TestAnalyzeImage:
    """Test single-image analysis."""

    def test_builds_record(self, sample_images):
        entry = FileEntry.from_path(sample_images['base'])
        record = analyze_image(entry, _params())

        assert record.path == entry.path
        assert record.size_bytes == entry.size_bytes
        assert record.modified_time == entry.modified_time
        assert (record.width, record.height) == (256, 256)
        assert len(record.hash_variants) == 1

    def test_decode_failure(self, sample_images):
        entry = FileEntry.from_path(sample_images['corrupted'])
        with pytest.raises(DecodeError):
            analyze_image(entry, _params())

    def test_custom_decoder(self, pattern_image):
        entry = FileEntry("/virtual/image.png", 10, 0.0)
        record = analyze_image(entry, _params(), decoder=lambda path: pattern_image.copy())
        assert record.pixel_count == 256 * 256

    def test_hashing_failure_is_decode_error(self):
        class Broken:
            size = (4, 4)
            mode = 'RGB'

            def convert(self, mode):
                raise RuntimeError("boom")

            def close(self):
                pass

        entry = FileEntry("/virtual/broken.png", 10, 0.0)
        with pytest.raises(DecodeError, match="Hash calculation failed"):
            analyze_image(entry, _params(), decoder=lambda path: Broken())
