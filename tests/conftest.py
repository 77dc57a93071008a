"""Shared pytest fixtures for facecompare tests."""

import io
import tempfile
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp)


@pytest.fixture
def sample_config_dict() -> dict:
    """Sample configuration dictionary for testing."""
    return {
        "recognition": {
            "backend": "face_recognition",
            "detection_model": "hog",
            "encoding_model": "large",
            "num_jitters": 1,
            "match_threshold": 0.5,
        },
        "camera": {
            "device_index": 0,
            "warmup_frames": 0,
            "jpeg_quality": 90,
        },
        "log_level": "INFO",
    }


@pytest.fixture
def sample_config_yaml(temp_dir: Path, sample_config_dict: dict) -> Path:
    """Create a temporary YAML config file."""
    import yaml

    config_path = temp_dir / "test_config.yaml"
    config_dict = sample_config_dict.copy()
    config_dict["capture_dir"] = str(temp_dir / "captures")

    with open(config_path, "w") as f:
        yaml.dump(config_dict, f)

    return config_path


@pytest.fixture
def reference_descriptor() -> np.ndarray:
    """A fixed 128-d descriptor."""
    rng = np.random.default_rng(7)
    return rng.uniform(-0.2, 0.2, 128)


@pytest.fixture
def near_descriptor(reference_descriptor: np.ndarray) -> np.ndarray:
    """Same face: distance 0.3 from reference_descriptor."""
    out = reference_descriptor.copy()
    out[0] += 0.3
    return out


@pytest.fixture
def far_descriptor(reference_descriptor: np.ndarray) -> np.ndarray:
    """Different face: distance 0.8 from reference_descriptor."""
    out = reference_descriptor.copy()
    out[0] += 0.8
    return out


@pytest.fixture
def sample_image_path(temp_dir: Path) -> Path:
    """A small RGB JPEG on disk."""
    path = temp_dir / "face.jpg"
    Image.new("RGB", (64, 48), color=(200, 150, 120)).save(path, format="JPEG")
    return path


@pytest.fixture
def sample_image_bytes() -> bytes:
    bio = io.BytesIO()
    Image.new("RGB", (32, 32), color=(10, 20, 30)).save(bio, format="PNG")
    return bio.getvalue()


@pytest.fixture
def mock_camera():
    """Webcam stand-in that returns a grey RGB frame."""
    camera = MagicMock()
    camera.is_open = True
    camera.read_frame.return_value = np.full((48, 64, 3), 128, dtype=np.uint8)
    return camera


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration between tests."""
    import logging

    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level

    yield

    root_logger.handlers = original_handlers
    root_logger.level = original_level
