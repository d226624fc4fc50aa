# services/restroom_service.py
import logging
import math
from typing import Any, Dict, Iterable, List, Protocol

from core.exceptions import InvalidCoordinates
from models.place import PlaceType, Suggestion, tip_for
from models.subscription import Language
from tools.geo import haversine_meters, is_finite_number
from tools.llm_suggester import GroqSuggester
from tools.overpass import OverpassClient

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_M = 1000.0
MAX_SUGGESTIONS = 8


class CandidateSource(Protocol):
    async def fetch_candidates(self, lat: float, lon: float, radius_m: float, language: Language) -> List[Dict[str, Any]]:
        ...


def normalize_radius(radius) -> float:
    try:
        value = float(radius)
    except (TypeError, ValueError):
        return DEFAULT_RADIUS_M
    if not math.isfinite(value) or value <= 0:
        return DEFAULT_RADIUS_M
    return value


def _dedupe_key(c: Dict[str, Any]) -> str:
    return f"{c['name']}|{c['type']}|{c['lat']:.5f}|{c['lon']:.5f}"


def rank_candidates(candidates: Iterable[Dict[str, Any]], lat: float, lon: float,
                    limit: int = MAX_SUGGESTIONS) -> List[Dict[str, Any]]:
    """
    Shared post-processing:
    drop entries without a name or finite coordinates, dedupe on name|type|lat|lon
    (5 dp), sort by great-circle distance from (lat, lon), keep the first `limit`.
    """
    seen = set()
    unique = []
    for c in candidates:
        name = c.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        if not is_finite_number(c.get("lat")) or not is_finite_number(c.get("lon")):
            continue
        item = {**c, "name": name.strip(), "type": str(c.get("type") or PlaceType.PLACE.value)}
        key = _dedupe_key(item)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)

    unique.sort(key=lambda c: haversine_meters(lat, lon, c["lat"], c["lon"]))
    return unique[:limit]


class RestroomService:
    """
    Coordinate + radius -> up to 8 nearby places likely to have a restroom.

    strict=False (Overpass): bad coordinates give an empty list, upstream errors are
    swallowed by the client.
    strict=True (LLM): bad coordinates raise InvalidCoordinates, upstream/parse
    errors propagate to the HTTP layer.
    """

    def __init__(self, source: CandidateSource, strict: bool = False):
        self.source = source
        self.strict = strict

    async def suggest(self, lat, lon, radius_m=None, language=None) -> List[Suggestion]:
        lang = Language.normalize(language)
        if not is_finite_number(lat) or not is_finite_number(lon):
            if self.strict:
                raise InvalidCoordinates("lat and lon must be finite numbers")
            return []
        radius = normalize_radius(radius_m)

        if self.strict:
            candidates = await self.source.fetch_candidates(lat, lon, radius, lang)
        else:
            try:
                candidates = await self.source.fetch_candidates(lat, lon, radius, lang)
            except Exception:
                logger.exception("Restroom lookup failed for (%s,%s); returning no suggestions", lat, lon)
                return []
        top = rank_candidates(candidates, lat, lon)

        suggestions = []
        for c in top:
            tips = c.get("tips")
            if not isinstance(tips, str) or not tips.strip():
                tips = tip_for(PlaceType.from_label(c["type"]), lang)
            suggestions.append(Suggestion(name=c["name"], type=c["type"], lat=c["lat"], lon=c["lon"], tips=tips))
        logger.debug("suggest(%s,%s,r=%s,%s): %d of %d candidates", lat, lon, radius, lang.value, len(suggestions), len(candidates))
        return suggestions


class OverpassSource:
    """Adapts OverpassClient to the CandidateSource signature (language is unused)."""

    def __init__(self, client):
        self.client = client

    async def fetch_candidates(self, lat, lon, radius_m, language):
        return await self.client.fetch_candidates(lat, lon, radius_m)


def build_restroom_service(settings) -> RestroomService:
    backend = (settings.SUGGEST_BACKEND or "overpass").strip().lower()
    if backend == "llm":
        if not settings.GROQ_API_KEY:
            logger.warning("SUGGEST_BACKEND=llm but GROQ_API_KEY is empty; requests will fail upstream")
        suggester = GroqSuggester(
            api_key=settings.GROQ_API_KEY or "",
            model=settings.GROQ_MODEL,
            max_tokens=settings.GROQ_MAX_TOKENS,
        )
        return RestroomService(suggester, strict=True)

    if backend != "overpass":
        logger.warning("Unknown SUGGEST_BACKEND=%s; using overpass", backend)
    client = OverpassClient(
        url=settings.OVERPASS_URL,
        user_agent=settings.OVERPASS_USER_AGENT,
        timeout_seconds=settings.OVERPASS_TIMEOUT_SECONDS,
    )
    return RestroomService(OverpassSource(client), strict=False)
