"""
2D view rendering.

Two outputs from the same PositionedItem list:

  • render_layers(): absolutely-positioned sprite descriptors for the
    browser (centre at left/top, translate(-50%, -50%), scale, rotate,
    stacked by z-index);
  • composite(): the same layering burned into a single image with Pillow.
"""

from __future__ import annotations

import io
import logging
from typing import Callable, Sequence

from PIL import Image

from uzerimde.models.schemas import OverlayLayer, PositionedItem

logger = logging.getLogger(__name__)


def stacking_order(positioned: Sequence[PositionedItem]) -> list[PositionedItem]:
    """Bottom-most first; equal z-index keeps selection order."""
    return sorted(positioned, key=lambda p: p.z_index)


def css_transform(scale: float, rotation: float) -> str:
    return f"translate(-50%, -50%) scale({scale:g}) rotate({rotation:g}deg)"


def render_layers(positioned: Sequence[PositionedItem]) -> list[OverlayLayer]:
    return [
        OverlayLayer(
            item_id=p.item.id,
            src=p.item.overlay,
            left=p.position.x,
            top=p.position.y,
            z_index=p.z_index,
            transform=css_transform(p.scale, p.rotation),
        )
        for p in stacking_order(positioned)
    ]


def _transform_sprite(sprite: Image.Image, scale: float, rotation: float) -> Image.Image:
    w, h = sprite.size
    size = (max(1, round(w * scale)), max(1, round(h * scale)))
    out = sprite.convert("RGBA").resize(size, Image.Resampling.LANCZOS)
    if rotation:
        # CSS rotates clockwise for positive angles, PIL counter-clockwise.
        out = out.rotate(-rotation, resample=Image.Resampling.BICUBIC, expand=True)
    return out


def composite(
    photo: Image.Image,
    positioned: Sequence[PositionedItem],
    load_overlay: Callable[[str], Image.Image | None],
) -> Image.Image:
    """
    Composite overlay sprites onto the photo.

    Positions must be in the photo's own pixel space.  Items whose overlay
    cannot be loaded are left out of the picture.
    """
    canvas = photo.convert("RGBA")

    for p in stacking_order(positioned):
        if not p.item.overlay:
            logger.warning("Item %s has no overlay image; skipped", p.item.id)
            continue
        sprite = load_overlay(p.item.overlay)
        if sprite is None:
            logger.warning("Overlay %s for item %s unavailable; skipped", p.item.overlay, p.item.id)
            continue

        sprite = _transform_sprite(sprite, p.scale, p.rotation)
        left = round(p.position.x - sprite.width / 2)
        top = round(p.position.y - sprite.height / 2)

        layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        layer.paste(sprite, (left, top), sprite)
        canvas = Image.alpha_composite(canvas, layer)

    return canvas.convert("RGB")


def encode_jpeg(image: Image.Image, quality: int = 90) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()
