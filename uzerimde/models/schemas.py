"""
Pydantic models for API request/response and internal data transfer.

Wire names are camelCase (the browser client and the providers speak that);
Python attributes stay snake_case.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


# ── Enums ──────────────────────────────────────────────────────────────

class ClothingCategory(str, Enum):
    upper = "upper"
    outer = "outer"
    lower = "lower"
    full = "full"
    shoes = "shoes"


# Category names used by the catalog pages and partner feeds.
CATEGORY_ALIASES: dict[str, ClothingCategory] = {
    "upper": ClothingCategory.upper,
    "tops": ClothingCategory.upper,
    "outer": ClothingCategory.outer,
    "outerwear": ClothingCategory.outer,
    "lower": ClothingCategory.lower,
    "bottoms": ClothingCategory.lower,
    "full": ClothingCategory.full,
    "dresses": ClothingCategory.full,
    "shoes": ClothingCategory.shoes,
    "footwear": ClothingCategory.shoes,
}


def normalize_category(value: str) -> str:
    """Map a category alias onto the closed set; unknown names pass through."""
    canonical = CATEGORY_ALIASES.get(value.strip().lower())
    return canonical.value if canonical is not None else value


class FitPreference(str, Enum):
    tight = "tight"
    regular = "regular"
    loose = "loose"


class AnimationMode(str, Enum):
    idle = "idle"
    walking = "walking"
    turning = "turning"


class JobStatus(str, Enum):
    processing = "processing"
    completed = "completed"
    failed = "failed"


# ── Landmarks and placement ────────────────────────────────────────────

class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


# Paired keypoints travel as {"left": ..., "right": ...} under these names.
_PAIRED = {"shoulders": "shoulder", "knees": "knee", "ankles": "ankle"}


class BodyLandmarks(CamelModel):
    """
    Named body keypoints in pixel coordinates of one image.

    On the wire, left/right pairs nest under ``shoulders``, ``knees`` and
    ``ankles``; the flat ``leftShoulder`` form is accepted on input too.
    """
    model_config = ConfigDict(frozen=True)

    head: Point
    neck: Point
    left_shoulder: Point
    right_shoulder: Point
    chest: Point
    waist: Point
    hips: Point
    left_knee: Point
    right_knee: Point
    left_ankle: Point
    right_ankle: Point
    method: str = "proportional"

    @model_validator(mode="before")
    @classmethod
    def _flatten_pairs(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not any(k in data for k in _PAIRED):
            return data
        flat = {k: v for k, v in data.items() if k not in _PAIRED}
        for group, part in _PAIRED.items():
            pair = data.get(group)
            if isinstance(pair, dict):
                for side in ("left", "right"):
                    if side in pair:
                        flat[f"{side}_{part}"] = pair[side]
        return flat

    @model_serializer(mode="plain")
    def _nest_pairs(self) -> dict[str, Any]:
        def xy(p: Point) -> dict[str, float]:
            return {"x": p.x, "y": p.y}

        return {
            "head": xy(self.head),
            "neck": xy(self.neck),
            "shoulders": {"left": xy(self.left_shoulder), "right": xy(self.right_shoulder)},
            "chest": xy(self.chest),
            "waist": xy(self.waist),
            "hips": xy(self.hips),
            "knees": {"left": xy(self.left_knee), "right": xy(self.right_knee)},
            "ankles": {"left": xy(self.left_ankle), "right": xy(self.right_ankle)},
            "method": self.method,
        }



LANDMARK_NAMES: tuple[str, ...] = (
    "head", "neck", "left_shoulder", "right_shoulder", "chest", "waist",
    "hips", "left_knee", "right_knee", "left_ankle", "right_ankle",
)


class ClothingItem(CamelModel):
    """Immutable catalog entry."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: str
    image_url: str | None = Field(
        None,
        validation_alias=AliasChoices("imageUrl", "image", "image_url"),
        serialization_alias="imageUrl",
    )
    overlay: str | None = None
    model_url: str | None = None
    brand: str | None = None
    price: str | None = None
    description: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, v: Any) -> Any:
        return normalize_category(v) if isinstance(v, str) else v


class PositionedItem(CamelModel):
    """A selected item with its computed on-screen placement."""
    model_config = ConfigDict(frozen=True)

    item: ClothingItem
    position: Point
    scale: float
    z_index: int
    rotation: float = 0.0


class OverlayLayer(CamelModel):
    """One absolutely-positioned sprite of the 2D view."""
    item_id: str
    src: str | None
    left: float
    top: float
    z_index: int
    transform: str


# ── Provider structures (opaque; consumed as returned) ─────────────────

class BodyMeasurements(CamelModel):
    model_config = ConfigDict(extra="allow")

    height: float | None = None
    chest: float | None = None
    waist: float | None = None
    hips: float | None = None
    shoulders: float | None = None
    inseam: float | None = None
    neck_circumference: float | None = None
    arm_length: float | None = None
    thigh_circumference: float | None = None
    calf_circumference: float | None = None
    ankle_circumference: float | None = None


class BrandSizes(CamelModel):
    upper_size: str = ""
    lower_size: str = ""


class SizeRecommendation(CamelModel):
    model_config = ConfigDict(extra="allow")

    upper_size: str = ""
    lower_size: str = ""
    shoe_size: str = ""
    fit: FitPreference = FitPreference.regular
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    brand_specific: dict[str, BrandSizes] | None = None


# ── 3D scene ───────────────────────────────────────────────────────────

class CameraSpec(CamelModel):
    position: tuple[float, float, float]
    look_at: tuple[float, float, float]
    fov: float


class LightSpec(CamelModel):
    kind: str  # ambient | directional | spot
    intensity: float
    position: tuple[float, float, float] | None = None
    angle: float | None = None
    penumbra: float | None = None
    cast_shadow: bool = False


class SceneClothingItem(CamelModel):
    id: str
    model_url: str

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class SceneRequest(CamelModel):
    avatar_url: str = Field(..., min_length=1)
    clothing_items: list[SceneClothingItem] = Field(default_factory=list)
    animation_mode: AnimationMode = AnimationMode.idle
    zoom: float | None = Field(None, gt=0)
    rotation: float = 0.0


class SceneResponse(CamelModel):
    scene_url: str
    camera: CameraSpec
    lights: list[LightSpec]
    animation_clip: str | None
    available_clips: list[str]
    clothing_nodes: list[str]
    failed_items: list[str]


# ── API request / response ─────────────────────────────────────────────

class AvatarResponse(CamelModel):
    success: bool
    avatar_url: str = ""
    avatar_id: str | None = None
    message: str | None = None


class OverlayResponse(CamelModel):
    success: bool
    result_url: str = ""
    landmarks: BodyLandmarks | None = None
    items: list[PositionedItem] | None = None
    message: str | None = None


class TryOnClothingItem(CamelModel):
    id: str
    category: str
    image_url: str

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, v: Any) -> Any:
        return normalize_category(v) if isinstance(v, str) else v


class TryOnRequest(CamelModel):
    user_image_url: str = Field(..., min_length=1)
    clothing_items: list[TryOnClothingItem]
    callback_url: str | None = None
    include_body_measurements: bool = False
    include_size_recommendations: bool = False


class TryOnStatus(CamelModel):
    """Job state; the same shape is posted to the partner's callback URL."""
    request_id: str
    status: JobStatus
    message: str
    avatar_url: str | None = None
    clothed_avatar_url: str | None = None
    body_measurements: BodyMeasurements | None = None
    size_recommendations: dict[str, SizeRecommendation] | None = None
    error: str | None = None
    progress: int | None = None


class SessionResponse(CamelModel):
    session_id: str
    width: int
    height: int
    landmarks: BodyLandmarks
    selection: list[ClothingItem]
    avatar_url: str | None = None
    image_generation: int


class SelectionRequest(CamelModel):
    item_id: str

    @field_validator("item_id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class OverlayView(CamelModel):
    display_width: int
    display_height: int
    landmarks: BodyLandmarks
    items: list[PositionedItem]
    layers: list[OverlayLayer]


class HealthResponse(BaseModel):
    status: str
    version: str


class ErrorResponse(BaseModel):
    detail: str
