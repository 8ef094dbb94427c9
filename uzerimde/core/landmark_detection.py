"""
Body landmark estimation for 2D clothing overlays.

═══════════════════════════════════════════════════════════════
Proportional model (placeholder, no pose detection)
═══════════════════════════════════════════════════════════════

Each keypoint is a fixed fraction of the photograph's pixel size:

  Landmark       │  x / W        │  y / H
  ───────────────┼───────────────┼────────
  Head           │  0.50         │  0.12
  Neck           │  0.50         │  0.18
  Shoulder L/R   │  0.40 / 0.60  │  0.22
  Chest          │  0.50         │  0.30
  Waist          │  0.50         │  0.45
  Hips           │  0.50         │  0.55
  Knee L/R       │  0.45 / 0.55  │  0.75
  Ankle L/R      │  0.45 / 0.55  │  0.95

This assumes a single, upright, centred, full-length subject.  It performs
no inference: the same dimensions always give the same landmarks.  A real
pose model (MediaPipe, PoseNet, ...) plugs in as another LandmarkEstimator
via set_estimator(); the placement engine only sees BodyLandmarks.
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod

import numpy as np
from PIL import Image, UnidentifiedImageError

from uzerimde.config import LandmarkConfig, config
from uzerimde.models.schemas import LANDMARK_NAMES, BodyLandmarks, Point

logger = logging.getLogger(__name__)


class LandmarkEstimationError(ValueError):
    """Raised when landmarks cannot be derived from the given input."""


class LandmarkEstimator(ABC):
    """Produces BodyLandmarks for an image of the given pixel size."""

    name: str = "abstract"

    @abstractmethod
    def estimate(self, width: int, height: int, image: bytes | None = None) -> BodyLandmarks:
        ...


class ProportionalLandmarkEstimator(LandmarkEstimator):
    """Fixed-ratio keypoints; ignores the pixels entirely."""

    name = "proportional"

    def __init__(self, ratios: LandmarkConfig | None = None):
        self.ratios = ratios or config.landmarks

    def estimate(self, width: int, height: int, image: bytes | None = None) -> BodyLandmarks:
        if width <= 0 or height <= 0:
            raise LandmarkEstimationError(
                f"Image dimensions must be positive, got {width}x{height}"
            )

        points = {}
        for name in LANDMARK_NAMES:
            rx, ry = getattr(self.ratios, name)
            points[name] = Point(x=width * rx, y=height * ry)

        return BodyLandmarks(**points, method=self.name)


_estimator: LandmarkEstimator = ProportionalLandmarkEstimator()


def get_estimator() -> LandmarkEstimator:
    return _estimator


def set_estimator(estimator: LandmarkEstimator) -> None:
    """Swap in another landmark backend (e.g. a pose-estimation model)."""
    global _estimator
    logger.info("Landmark estimator set to %s", estimator.name)
    _estimator = estimator


def estimate_landmarks(width: int, height: int, image: bytes | None = None) -> BodyLandmarks:
    return _estimator.estimate(width, height, image)


def image_dimensions(content: bytes) -> tuple[int, int]:
    """Natural (width, height) of an encoded image."""
    try:
        with Image.open(io.BytesIO(content)) as img:
            return img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise LandmarkEstimationError("Unreadable image data") from exc


def detect_landmarks(content: bytes) -> tuple[BodyLandmarks, tuple[int, int]]:
    """Landmarks for an encoded image, plus its natural size."""
    width, height = image_dimensions(content)
    return estimate_landmarks(width, height, content), (width, height)


# ── Coordinate transforms ──────────────────────────────────────────────

def landmarks_to_array(landmarks: BodyLandmarks) -> np.ndarray:
    """(N, 2) array of landmark coordinates in LANDMARK_NAMES order."""
    return np.array(
        [[getattr(landmarks, n).x, getattr(landmarks, n).y] for n in LANDMARK_NAMES],
        dtype=float,
    )


def landmarks_from_array(points: np.ndarray, method: str = "proportional") -> BodyLandmarks:
    return BodyLandmarks(
        **{n: Point(x=float(p[0]), y=float(p[1])) for n, p in zip(LANDMARK_NAMES, points)},
        method=method,
    )


def scale_landmarks(
    landmarks: BodyLandmarks,
    natural_size: tuple[int, int],
    display_size: tuple[float, float],
) -> BodyLandmarks:
    """
    Rescale landmarks from natural image pixels to displayed pixels.

    One uniform ratio per axis; a zero natural dimension counts as 1.
    """
    natural = np.array([natural_size[0] or 1, natural_size[1] or 1], dtype=float)
    ratio = np.asarray(display_size, dtype=float) / natural
    return landmarks_from_array(landmarks_to_array(landmarks) * ratio, landmarks.method)
