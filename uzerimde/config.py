"""
Uzerimde configuration.

All tunable parameters live here so landmark ratios, placement rules and
provider endpoints are configurable without touching the code that uses them.
"""

import math
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field


class LandmarkConfig(BaseSettings):
    """Proportional body keypoints as (x, y) fractions of image width/height."""

    head: tuple[float, float] = (0.50, 0.12)
    neck: tuple[float, float] = (0.50, 0.18)
    left_shoulder: tuple[float, float] = (0.40, 0.22)
    right_shoulder: tuple[float, float] = (0.60, 0.22)
    chest: tuple[float, float] = (0.50, 0.30)
    waist: tuple[float, float] = (0.50, 0.45)
    hips: tuple[float, float] = (0.50, 0.55)
    left_knee: tuple[float, float] = (0.45, 0.75)
    right_knee: tuple[float, float] = (0.55, 0.75)
    left_ankle: tuple[float, float] = (0.45, 0.95)
    right_ankle: tuple[float, float] = (0.55, 0.95)


class PlacementConfig(BaseSettings):
    """Reference overlay sizes (px) the per-category scale is measured against."""

    torso_reference_px: float = 150.0
    legs_reference_px: float = 120.0
    dress_height_reference_px: float = 300.0

    outer_width_factor: float = 1.2
    outer_lift: float = 0.95  # outerwear centre sits slightly above the chest
    legs_width_factor: float = 1.2
    dress_width_factor: float = 1.1

    default_z_base: int = 10


class ProviderConfig(BaseSettings):
    """External provider endpoints and credentials (one bearer token each)."""

    avaturn_base_url: str = "https://api.avaturn.me"
    fashn_base_url: str = "https://api.fashn.ai"
    sizer_base_url: str = "https://api.sizer.me"

    avaturn_api_key: str = ""
    fashn_api_key: str = ""
    sizer_api_key: str = ""

    # The hosted providers are stubbed unless explicitly switched off.
    simulate: bool = True
    simulated_delay_s: float = 1.5
    http_timeout_s: float = 30.0


class AvatarConfig(BaseSettings):
    """Fixture avatars returned by the simulated avatar provider."""

    male_model_url: str = "/models/avatars/standard-male-fullbody.glb"
    female_model_url: str = "/models/avatars/standard-female-fullbody.glb"
    clothed_url_template: str = "https://example.com/clothed-avatars/{avatar_id}.glb"


class SizingConfig(BaseSettings):
    """Size recommendation parameters."""

    default_fit: str = "regular"  # tight | regular | loose
    fit_offset_tight_cm: float = -2.0
    fit_offset_loose_cm: float = 3.0
    default_stretch_factor: float = 1.0  # 1.0 = no stretch


class StorageConfig(BaseSettings):
    """File storage paths and in-memory retention."""

    asset_dir: Path = Path("public")
    result_dir: Path = Path("/tmp/uzerimde/results")
    max_upload_size_mb: int = 8
    public_base_url: str = "https://uzerimde.com"

    session_ttl_s: float = 3600.0
    max_sessions: int = 200
    job_ttl_s: float = 3600.0
    max_jobs: int = 1000


class SceneConfig(BaseSettings):
    """Camera and light rig for the 3D viewer."""

    camera_height: float = 1.5
    default_zoom: float = 3.0
    look_at: tuple[float, float, float] = (0.0, 1.0, 0.0)
    fov: float = 50.0

    ambient_intensity: float = 0.5
    key_light_position: tuple[float, float, float] = (10.0, 10.0, 5.0)
    key_light_intensity: float = 1.0
    fill_light_position: tuple[float, float, float] = (-10.0, 10.0, 5.0)
    fill_light_intensity: float = 0.5
    spot_light_position: tuple[float, float, float] = (-5.0, 5.0, 5.0)
    spot_light_intensity: float = 0.8
    spot_light_angle: float = math.pi / 6
    spot_light_penumbra: float = 0.2


class AppConfig(BaseSettings):
    """Top-level application configuration."""

    app_name: str = "Uzerimde"
    version: str = "0.1.0"
    debug: bool = False
    cors_origins: list[str] = ["*"]

    landmarks: LandmarkConfig = Field(default_factory=LandmarkConfig)
    placement: PlacementConfig = Field(default_factory=PlacementConfig)
    providers: ProviderConfig = Field(default_factory=ProviderConfig)
    avatar: AvatarConfig = Field(default_factory=AvatarConfig)
    sizing: SizingConfig = Field(default_factory=SizingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    scene: SceneConfig = Field(default_factory=SceneConfig)


config = AppConfig()
