# api/routes_restrooms.py
import math
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from api.deps import get_restroom_service
from services.restroom_service import RestroomService

router = APIRouter()


def _to_float(value: Optional[str]) -> float:
    if value is None or not value.strip():
        return math.nan
    try:
        return float(value)
    except ValueError:
        return math.nan


@router.get("/suggest_restrooms")
async def suggest_restrooms(
    service: Annotated[RestroomService, Depends(get_restroom_service)],
    lat: Optional[str] = Query(None),
    lon: Optional[str] = Query(None),
    radius: Optional[str] = Query(None),
    lang: Optional[str] = Query("en"),
):
    """
    Nearby places likely to have a restroom, nearest first (max 8).
    Query params stay strings so junk input degrades to an empty list instead of a 400.
    """
    suggestions = await service.suggest(_to_float(lat), _to_float(lon), radius, lang)
    return {"suggestions": [s.model_dump() for s in suggestions]}
