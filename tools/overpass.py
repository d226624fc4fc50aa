"""
Overpass (OpenStreetMap) restroom lookup.

Provides:
- build_query(lat, lon, radius_m): Overpass QL union over toilets and venues that
  usually have a customer restroom.
- element_to_candidate(element): raw OSM element -> {"name", "type", "lat", "lon"}.
- OverpassClient.fetch_candidates(...): one POST to the interpreter.

Upstream failures never propagate: callers get an empty list and a warning in the log.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from models.place import PlaceType, TAG_PRIORITY

logger = logging.getLogger(__name__)

DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/interpreter"
MAX_ELEMENTS = 60

NAME_TAGS = ("name", "brand", "operator", "addr:housename")


def build_query(lat: float, lon: float, radius_m: float) -> str:
    # fixed-point only: Overpass QL does not accept exponent notation (1e+06, 5e-05)
    around = f"around:{radius_m:.0f},{lat:.7f},{lon:.7f}"
    selectors = "\n".join(
        f'  nwr({around})["{key}"="{value}"];' for (key, value), _ in TAG_PRIORITY
    )
    return f"[out:json][timeout:25];\n(\n{selectors}\n);\nout center {MAX_ELEMENTS};"


def element_to_candidate(element: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    # nodes carry lat/lon; ways/relations carry a computed "center"
    coords = element.get("center") or element
    tags = element.get("tags") or {}
    try:
        lat = float(coords.get("lat"))
        lon = float(coords.get("lon"))
    except (TypeError, ValueError):
        return None

    place_type = PlaceType.from_tags(tags)
    name = next((tags[k] for k in NAME_TAGS if tags.get(k)), None)
    if not name:
        name = "Public Restroom" if place_type is PlaceType.PUBLIC_RESTROOM else "Place"
    return {"name": name, "type": place_type.value, "lat": lat, "lon": lon}


class OverpassClient:
    def __init__(self, url: str = DEFAULT_OVERPASS_URL, user_agent: str = "bathroom-reminder/1.0",
                 timeout_seconds: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def fetch_candidates(self, lat: float, lon: float, radius_m: float) -> List[Dict[str, Any]]:
        query = build_query(lat, lon, radius_m)
        headers = {"User-Agent": self.user_agent}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                resp = await client.post(self.url, data={"data": query}, headers=headers)
                if resp.status_code != 200:
                    logger.warning("Overpass failed: %s %s", resp.status_code, resp.text[:300])
                    return []
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Overpass request failed for (%s,%s): %s", lat, lon, e)
            return []

        elements = data.get("elements") if isinstance(data, dict) else None
        if not isinstance(elements, list):
            return []
        candidates = []
        for el in elements:
            if not isinstance(el, dict):
                continue
            candidate = element_to_candidate(el)
            if candidate is not None:
                candidates.append(candidate)
        return candidates
