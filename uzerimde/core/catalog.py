"""
Built-in clothing catalog.

Static entries served to the try-on pages; each carries a flat preview, a
2D overlay sprite and a 3D model.  Paths are relative to the asset
directory unless they are absolute URLs.
"""

from __future__ import annotations

from uzerimde.models.schemas import ClothingItem

_RAW_CATALOG: list[dict] = [
    {
        "id": 1,
        "name": "Mavi V-Yaka T-Shirt",
        "category": "tops",
        "image": "/images/clothing/blue-vneck-tshirt.png",
        "overlay": "/images/overlays/blue-vneck-tshirt-overlay.png",
        "modelUrl": "/models/clothing/blue-vneck-tshirt.glb",
        "brand": "LCWaikiki",
        "price": "199,90 TL",
    },
    {
        "id": 2,
        "name": "Siyah Deri Ceket",
        "category": "outerwear",
        "image": "/images/clothing/black-leather-jacket.png",
        "overlay": "/images/overlays/black-leather-jacket-overlay.png",
        "modelUrl": "/models/clothing/black-leather-jacket.glb",
        "brand": "Koton",
        "price": "899,90 TL",
    },
    {
        "id": 3,
        "name": "Slim Fit Kot Pantolon",
        "category": "bottoms",
        "image": "/images/clothing/slim-fit-jeans.png",
        "overlay": "/images/overlays/slim-fit-jeans-overlay.png",
        "modelUrl": "/models/clothing/slim-fit-jeans.glb",
        "brand": "Mavi",
        "price": "549,90 TL",
    },
    {
        "id": 4,
        "name": "Çiçek Desenli Yazlık Elbise",
        "category": "dresses",
        "image": "/images/clothing/floral-summer-dress.png",
        "overlay": "/images/overlays/floral-summer-dress-overlay.png",
        "modelUrl": "/models/clothing/floral-summer-dress.glb",
        "brand": "DeFacto",
        "price": "399,90 TL",
    },
    {
        "id": 5,
        "name": "Beyaz Gömlek",
        "category": "tops",
        "image": "/images/clothing/white-shirt.png",
        "overlay": "/images/overlays/white-shirt-overlay.png",
        "modelUrl": "/models/clothing/white-shirt.glb",
        "brand": "Pierre Cardin",
        "price": "329,90 TL",
    },
    {
        "id": 6,
        "name": "Kırmızı Kazak",
        "category": "tops",
        "image": "/images/clothing/red-sweater.png",
        "overlay": "/images/overlays/red-sweater-overlay.png",
        "modelUrl": "/models/clothing/red-sweater.glb",
        "brand": "Beymen",
        "price": "699,90 TL",
    },
    {
        "id": "shoes-1",
        "name": "Spor Ayakkabı",
        "category": "shoes",
        "image": "https://example.com/images/sneakers.jpg",
        "modelUrl": "https://example.com/models/sneakers.glb",
        "brand": "Nike",
        "price": "1299",
        "description": "Günlük spor ayakkabı",
    },
    {
        "id": "full-1",
        "name": "Takım Elbise",
        "category": "full",
        "image": "https://example.com/images/suit.jpg",
        "modelUrl": "https://example.com/models/suit.glb",
        "brand": "Kiğılı",
        "price": "2899",
        "description": "Slim fit takım elbise",
    },
]

CATALOG: tuple[ClothingItem, ...] = tuple(
    ClothingItem.model_validate(entry) for entry in _RAW_CATALOG
)

_BY_ID: dict[str, ClothingItem] = {item.id: item for item in CATALOG}


def get_item(item_id: str) -> ClothingItem | None:
    return _BY_ID.get(str(item_id))


def list_items(category: str | None = None) -> list[ClothingItem]:
    if category is None:
        return list(CATALOG)
    return [item for item in CATALOG if item.category == category]
