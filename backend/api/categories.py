"""
Category listing endpoint.
"""

from fastapi import APIRouter

from helpers.calendar_helpers import category_color
from models.schemas import Category


router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("")
async def get_categories():
    """Fixed category set with display label, calendar color and sync flag."""
    data = [
        {
            "name": category.value,
            "label": category.label,
            "colorId": category_color(category),
            "calendarSynced": category.calendar_synced,
        }
        for category in Category
    ]
    return {"status": "success", "data": data}
