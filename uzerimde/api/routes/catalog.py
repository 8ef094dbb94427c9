"""
Clothing catalog endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from uzerimde.core.catalog import get_item, list_items
from uzerimde.models.schemas import ClothingItem, ErrorResponse, normalize_category

router = APIRouter()


@router.get("", response_model=list[ClothingItem], response_model_exclude_none=True)
async def catalog(category: str | None = None):
    """All catalog items, optionally restricted to one category."""
    return list_items(normalize_category(category) if category else None)


@router.get(
    "/{item_id}",
    response_model=ClothingItem,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}},
)
async def catalog_item(item_id: str):
    item = get_item(item_id)
    if item is None:
        raise HTTPException(404, f"Item '{item_id}' not found")
    return item
