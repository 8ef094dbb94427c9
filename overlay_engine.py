#!/usr/bin/env python3

import json
import sys
from pathlib import Path

from uzerimde.core.landmark_detection import detect_landmarks
from uzerimde.core.placement import position_items
from uzerimde.models.schemas import ClothingItem


def place_overlays(path: str, categories: list[str]) -> dict:
    content = Path(path).read_bytes()
    landmarks, (width, height) = detect_landmarks(content)

    items = [
        ClothingItem(id=str(i), name=category, category=category)
        for i, category in enumerate(categories)
    ]
    positioned = position_items(landmarks, items)

    return {
        "width": width,
        "height": height,
        "landmarks": landmarks.model_dump(mode="json", by_alias=True),
        "items": [
            {
                "category": p.item.category,
                "x": round(p.position.x, 2),
                "y": round(p.position.y, 2),
                "scale": round(p.scale, 4),
                "zIndex": p.z_index,
                "rotation": p.rotation,
            }
            for p in positioned
        ],
    }


def main():
    if len(sys.argv) < 2:
        print(f"Usage: python {sys.argv[0]} <photo> [category ...]", file=sys.stderr)
        sys.exit(1)

    try:
        result = place_overlays(sys.argv[1], sys.argv[2:])
        print(json.dumps(result, indent=2))
    except Exception as exc:
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
