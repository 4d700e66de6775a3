"""
Pytest configuration and shared fixtures for test suite.
"""

import pytest
import tempfile
import shutil
from pathlib import Path

import numpy as np
from PIL import Image

from similar_images.database import reset_cache
from similar_images.user_config import get_user_config


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep the global cache and user config away from the real home directory."""
    monkeypatch.setenv('SIMILAR_IMAGES_CONFIG_DIR', str(tmp_path / 'config'))
    monkeypatch.setenv('SIMILAR_IMAGES_CACHE_DB', str(tmp_path / 'global_cache.db'))
    for name in ('THRESHOLD', 'HASH_SIZE', 'ALGORITHM', 'FILTER', 'INVARIANCE',
                 'WORKERS', 'LSH_THRESHOLD', 'CACHE_MAX_AGE'):
        monkeypatch.delenv(f'SIMILAR_IMAGES_{name}', raising=False)
    reset_cache()
    get_user_config().reload()
    yield
    reset_cache()
    get_user_config().reload()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


def make_pattern(width=256, height=256):
    """Smooth two-dimensional pattern with large-scale structure (RGB)."""
    y, x = np.mgrid[0:height, 0:width]
    values = 128 + 100 * np.sin(x / 23.0) * np.cos(y / 17.0) + 20 * np.sin((x + y) / 40.0)
    gray = np.clip(values, 0, 255).astype(np.uint8)
    return Image.fromarray(np.dstack([gray, gray, gray]), 'RGB')


def make_asymmetric(width=64, height=48):
    """
    Image with no mirror or rotation symmetry.

    A left-to-right brightness ramp with a dark block in the bottom-right
    corner and a red stripe along the top.
    """
    ramp = np.tile(np.linspace(20, 235, width), (height, 1))
    ramp[height * 2 // 3:, width * 3 // 4:] = 0
    rgb = np.dstack([ramp, ramp, ramp]).astype(np.uint8)
    rgb[:3, :, :] = (255, 0, 0)
    return Image.fromarray(rgb, 'RGB')


@pytest.fixture
def pattern_image():
    """In-memory pattern image."""
    return make_pattern()


@pytest.fixture
def asymmetric_image():
    """In-memory asymmetric image."""
    return make_asymmetric()


@pytest.fixture
def sample_images(temp_dir):
    """
    Create a set of sample images for testing.

    Returns:
        dict with paths to:
        - base.png: pattern image
        - near_duplicate.jpg: same pattern, resized and JPEG compressed
        - unrelated.png: inverted pattern
        - corrupted.jpg: not an image
    """
    images = {}

    base = make_pattern()
    path = temp_dir / "base.png"
    base.save(path, 'PNG')
    images['base'] = str(path)

    path = temp_dir / "near_duplicate.jpg"
    base.resize((200, 200), Image.Resampling.LANCZOS).save(path, 'JPEG', quality=90)
    images['near_duplicate'] = str(path)

    inverted = Image.fromarray(255 - np.asarray(base), 'RGB')
    path = temp_dir / "unrelated.png"
    inverted.save(path, 'PNG')
    images['unrelated'] = str(path)

    path = temp_dir / "corrupted.jpg"
    path.write_text("not an image")
    images['corrupted'] = str(path)

    return images


@pytest.fixture
def geometric_images(temp_dir):
    """
    Asymmetric image saved together with its mirror and 90 degree rotation.

    PNG is lossless, so the transformed copies have exactly permuted pixels.
    """
    original = make_asymmetric()
    paths = {}
    for name, image in (
        ('original', original),
        ('mirror', original.transpose(Image.Transpose.FLIP_LEFT_RIGHT)),
        ('rotated', original.transpose(Image.Transpose.ROTATE_90)),
    ):
        path = temp_dir / f"{name}.png"
        image.save(path, 'PNG')
        paths[name] = str(path)
    return paths


@pytest.fixture
def temp_cache_db(temp_dir):
    """Create a temporary database file for cache tests."""
    db_path = temp_dir / "test_cache.db"
    return str(db_path)
