"""
LLM-backed restroom suggestions (Groq chat completions).

The model is asked for a bare JSON array; anything else is a SuggestionParseError.
Client/transport failures are SuggestionUpstreamError. There is no local fallback.
"""
import json
import logging
from typing import Any, Dict, List

from groq import AsyncGroq, GroqError

from core.exceptions import SuggestionParseError, SuggestionUpstreamError
from models.subscription import Language

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {Language.EN: "English", Language.DE: "German", Language.ZH: "Simplified Chinese"}


def build_prompt(lat: float, lon: float, radius_m: float, language: Language, limit: int = 8) -> str:
    lang_name = LANGUAGE_NAMES[language]
    return (
        "You help people find a restroom quickly.\n"
        f"List up to {limit} real places within {radius_m:g} meters of latitude {lat}, longitude {lon} "
        "where a member of the public is likely to find a restroom: public toilets, shopping malls, "
        "coffee shops, restaurants, fast food, fuel stations, convenience stores, supermarkets, parks.\n"
        "Return ONLY a JSON array, no prose and no code fences. Each element:\n"
        '{"name": string, "type": string, "lat": number, "lon": number, "tips": string}\n'
        f'- Write "type" and "tips" in {lang_name}; "tips" is one short sentence.\n'
        '- Keep "name" exactly as the place is known locally; do not translate proper names.\n'
        "- lat/lon are WGS84 decimal degrees.\n"
        "Return [] if you do not know any."
    )


def parse_suggestions(text: str) -> List[Dict[str, Any]]:
    try:
        decoded = json.loads((text or "").strip())
    except json.JSONDecodeError as e:
        raise SuggestionParseError("Model output is not valid JSON", detail={"error": str(e), "raw": (text or "")[:500]})
    if not isinstance(decoded, list):
        raise SuggestionParseError("Model output is not a JSON array", detail={"raw": (text or "")[:500]})
    return [item for item in decoded if isinstance(item, dict)]


class GroqSuggester:
    def __init__(self, api_key: str, model: str = "llama-3.3-70b-versatile", max_tokens: int = 1200,
                 client: AsyncGroq | None = None):
        self.model = model
        self.max_tokens = max_tokens
        self.client = client or AsyncGroq(api_key=api_key)

    async def fetch_candidates(self, lat: float, lon: float, radius_m: float, language: Language) -> List[Dict[str, Any]]:
        prompt = build_prompt(lat, lon, radius_m, language)
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.2,
                max_tokens=self.max_tokens,
            )
        except GroqError as e:
            status = getattr(e, "status_code", None)
            logger.error("Groq completion failed (status=%s): %s", status, e)
            raise SuggestionUpstreamError("LLM request failed", detail={"status": status, "error": str(e)}) from e

        try:
            text = resp.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise SuggestionParseError("Model returned no content", detail={"error": str(e)}) from e
        return parse_suggestions(text)
