"""
Configuration management using Pydantic for validation.

Supports loading from:
- YAML files (primary)
- Environment variables with FACECOMPARE_ prefix
"""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RecognitionSettings(BaseModel):
    """Face detection and descriptor settings."""

    backend: Literal["face_recognition"] = Field(
        default="face_recognition",
        description="Face recognition backend to use",
    )
    detection_model: Literal["hog", "cnn"] = Field(
        default="hog",
        description="Face detector: 'hog' (CPU, fast) or 'cnn' (needs a CUDA build of dlib)",
    )
    encoding_model: Literal["small", "large"] = Field(
        default="large",
        description="Landmark model used to align faces before encoding "
        "('large' = 68 points, 'small' = 5 points)",
    )
    num_jitters: int = Field(
        default=1,
        ge=1,
        description="Times to re-sample each face when encoding (higher = slower, steadier)",
    )
    upsample_times: int = Field(
        default=1,
        ge=0,
        description="Times to upsample the image when looking for faces (finds smaller faces)",
    )
    min_face_size_pixels: int = Field(
        default=0,
        ge=0,
        description="Ignore detections smaller than this (0 = keep every detection)",
    )
    match_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Euclidean distance below which two descriptors are the same person",
    )


class CameraSettings(BaseModel):
    """Webcam configuration."""

    device_index: int = Field(
        default=0,
        ge=0,
        description="OpenCV capture device index",
    )
    width: int | None = Field(
        default=None,
        ge=1,
        description="Requested frame width (None = device default)",
    )
    height: int | None = Field(
        default=None,
        ge=1,
        description="Requested frame height (None = device default)",
    )
    warmup_frames: int = Field(
        default=5,
        ge=0,
        description="Frames discarded after opening so exposure can settle",
    )
    jpeg_quality: int = Field(
        default=92,
        ge=1,
        le=100,
        description="JPEG quality used when encoding captured frames",
    )

    @model_validator(mode="after")
    def validate_resolution(self):
        """Width and height must be given together."""
        if (self.width is None) != (self.height is None):
            raise ValueError("camera.width and camera.height must be set together")
        return self


class Settings(BaseSettings):
    """
    Main application settings.

    Can be loaded from:
    - YAML file: Settings.from_yaml("config.yaml")
    - Environment variables: FACECOMPARE_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="FACECOMPARE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    recognition: RecognitionSettings = Field(
        default_factory=RecognitionSettings,
        description="Face recognition settings",
    )
    camera: CameraSettings = Field(
        default_factory=CameraSettings,
        description="Webcam settings",
    )
    capture_dir: Path | None = Field(
        default=None,
        description="Optional directory where captured frames are saved as JPEG",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("capture_dir", mode="before")
    @classmethod
    def parse_capture_dir(cls, v):
        """Convert string path to Path object."""
        if isinstance(v, str):
            return Path(v) if v else None
        return v

    @model_validator(mode="after")
    def ensure_capture_dir(self) -> "Settings":
        if self.capture_dir is not None:
            if self.capture_dir.exists() and not self.capture_dir.is_dir():
                raise ValueError(f"capture_dir is not a directory: {self.capture_dir}")
            self.capture_dir.mkdir(parents=True, exist_ok=True)
        return self

    @classmethod
    def from_yaml(cls, path: Path | str) -> "Settings":
        """
        Load settings from a YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Settings instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def to_yaml(self, path: Path | str) -> None:
        """Save settings to a YAML file."""
        path = Path(path)
        data = self.model_dump(mode="json")

        with open(path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
