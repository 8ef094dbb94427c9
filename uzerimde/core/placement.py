"""
Overlay placement: where each selected garment sprite goes on the photo.

Every category maps to a PlacementRule record instead of a branch:

  category │ centre x  │ centre y                   │ scale                                     │ z
  ─────────┼───────────┼────────────────────────────┼───────────────────────────────────────────┼────
  upper    │ chest     │ chest                      │ shoulder span / 150                       │ 20
  outer    │ chest     │ chest × 0.95               │ 1.2 × shoulder span / 150                 │ 30
  lower    │ hips      │ avg(waist, left knee)      │ 1.2 × knee span / 120                     │ 15
  full     │ chest     │ avg(left shoulder, l. knee)│ max(torso drop / 300, 1.1 × shoulder/150) │ 25
  other    │ chest     │ chest                      │ 1                                         │ by order

Scale is relative to the overlay image's reference width/height.  Rotation
is always 0 for now.

Items without a rule stack by selection order, kept strictly between the
lower and upper layers, so bottoms always sit beneath everything and tops
above any unclassified item.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from uzerimde.config import config
from uzerimde.models.schemas import (
    BodyLandmarks,
    ClothingCategory,
    ClothingItem,
    Point,
    PositionedItem,
)

logger = logging.getLogger(__name__)

pcfg = config.placement


@dataclass(frozen=True)
class PlacementRule:
    """Geometry of one clothing category, expressed over landmark names."""
    anchor_x: str
    anchor_y: tuple[str, ...]  # averaged
    lift: float = 1.0  # multiplier on the anchor y
    width_span: tuple[str, str] | None = None  # horizontal extent driving the scale
    width_factor: float = 1.0
    width_reference_px: float = 1.0
    height_span: tuple[str, str] | None = None  # vertical extent (top, bottom)
    height_reference_px: float = 1.0
    z_index: int | None = None  # None → selection order


SHOULDERS = ("left_shoulder", "right_shoulder")
KNEES = ("left_knee", "right_knee")

PLACEMENT_RULES: dict[str, PlacementRule] = {
    ClothingCategory.upper.value: PlacementRule(
        anchor_x="chest",
        anchor_y=("chest",),
        width_span=SHOULDERS,
        width_reference_px=pcfg.torso_reference_px,
        z_index=20,
    ),
    ClothingCategory.outer.value: PlacementRule(
        anchor_x="chest",
        anchor_y=("chest",),
        lift=pcfg.outer_lift,
        width_span=SHOULDERS,
        width_factor=pcfg.outer_width_factor,
        width_reference_px=pcfg.torso_reference_px,
        z_index=30,
    ),
    ClothingCategory.lower.value: PlacementRule(
        anchor_x="hips",
        anchor_y=("waist", "left_knee"),
        width_span=KNEES,
        width_factor=pcfg.legs_width_factor,
        width_reference_px=pcfg.legs_reference_px,
        z_index=15,
    ),
    ClothingCategory.full.value: PlacementRule(
        anchor_x="chest",
        anchor_y=("left_shoulder", "left_knee"),
        width_span=SHOULDERS,
        width_factor=pcfg.dress_width_factor,
        width_reference_px=pcfg.torso_reference_px,
        height_span=("left_shoulder", "left_knee"),
        height_reference_px=pcfg.dress_height_reference_px,
        z_index=25,
    ),
}

DEFAULT_RULE = PlacementRule(anchor_x="chest", anchor_y=("chest",))


def rule_for(category: str) -> PlacementRule:
    return PLACEMENT_RULES.get(category, DEFAULT_RULE)


def _default_z_bounds() -> tuple[int, int]:
    """Open interval (lower layer, upper layer) for order-stacked items."""
    lower = PLACEMENT_RULES[ClothingCategory.lower.value].z_index
    upper = PLACEMENT_RULES[ClothingCategory.upper.value].z_index
    return lower + 1, upper - 1


def default_z_index(selection_index: int) -> int:
    floor, ceiling = _default_z_bounds()
    return int(np.clip(pcfg.default_z_base + selection_index, floor, ceiling))


def _point(landmarks: BodyLandmarks, name: str) -> Point:
    return getattr(landmarks, name)


def compute_scale(rule: PlacementRule, landmarks: BodyLandmarks) -> float:
    candidates: list[float] = []

    if rule.width_span is not None:
        a, b = (_point(landmarks, n) for n in rule.width_span)
        candidates.append(abs(b.x - a.x) * rule.width_factor / rule.width_reference_px)

    if rule.height_span is not None:
        top, bottom = (_point(landmarks, n) for n in rule.height_span)
        candidates.append((bottom.y - top.y) / rule.height_reference_px)

    return max(candidates) if candidates else 1.0


def compute_anchor(rule: PlacementRule, landmarks: BodyLandmarks) -> Point:
    x = _point(landmarks, rule.anchor_x).x
    y = float(np.mean([_point(landmarks, n).y for n in rule.anchor_y])) * rule.lift
    return Point(x=x, y=y)


def place_item(item: ClothingItem, landmarks: BodyLandmarks, selection_index: int) -> PositionedItem:
    rule = rule_for(item.category)
    z_index = rule.z_index if rule.z_index is not None else default_z_index(selection_index)

    return PositionedItem(
        item=item,
        position=compute_anchor(rule, landmarks),
        scale=compute_scale(rule, landmarks),
        z_index=z_index,
        rotation=0.0,
    )


def position_items(
    landmarks: BodyLandmarks,
    items: Sequence[ClothingItem],
) -> list[PositionedItem]:
    """
    Place every selected item against the (display-space) landmarks.

    Always returns a fresh list with exactly one entry per item, in
    selection order; callers replace their previous list wholesale.
    """
    positioned = [place_item(item, landmarks, i) for i, item in enumerate(items)]
    logger.debug("Positioned %d overlay items", len(positioned))
    return positioned
