"""
Place categories for restroom suggestions.

- PlaceType.from_tags(): priority-ordered OSM tag -> category mapping.
- tip_for(): total (category, language) -> short localized hint.
"""
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from pydantic import BaseModel

from models.subscription import Language


class PlaceType(str, Enum):
    PUBLIC_RESTROOM = "public restroom"
    SHOPPING_MALL = "shopping mall"
    COFFEE_SHOP = "coffee shop"
    RESTAURANT = "restaurant"
    FAST_FOOD = "fast food"
    FUEL = "fuel"
    CONVENIENCE = "convenience"
    SUPERMARKET = "supermarket"
    PARK = "park"
    PLACE = "place"

    @classmethod
    def from_tags(cls, tags: Mapping[str, str]) -> "PlaceType":
        for (key, value), place_type in TAG_PRIORITY:
            if tags.get(key) == value:
                return place_type
        return cls.PLACE

    @classmethod
    def from_label(cls, label: Optional[str]) -> "PlaceType":
        """Best-effort match for free-text labels (e.g. returned by an LLM)."""
        text = (label or "").strip().lower()
        try:
            return cls(text)
        except ValueError:
            pass
        if "toilet" in text or "restroom" in text:
            return cls.PUBLIC_RESTROOM
        if "fast_food" in text or "fast food" in text:
            return cls.FAST_FOOD
        if "fuel" in text or "gas station" in text:
            return cls.FUEL
        if "convenience" in text:
            return cls.CONVENIENCE
        return cls.PLACE


# Order matters: a node tagged both amenity=toilets and leisure=park is a restroom.
TAG_PRIORITY: Tuple[Tuple[Tuple[str, str], PlaceType], ...] = (
    (("amenity", "toilets"), PlaceType.PUBLIC_RESTROOM),
    (("shop", "mall"), PlaceType.SHOPPING_MALL),
    (("amenity", "cafe"), PlaceType.COFFEE_SHOP),
    (("amenity", "restaurant"), PlaceType.RESTAURANT),
    (("amenity", "fast_food"), PlaceType.FAST_FOOD),
    (("amenity", "fuel"), PlaceType.FUEL),
    (("shop", "convenience"), PlaceType.CONVENIENCE),
    (("shop", "supermarket"), PlaceType.SUPERMARKET),
    (("leisure", "park"), PlaceType.PARK),
)

TIPS: Dict[Language, Dict[PlaceType, str]] = {
    Language.EN: {
        PlaceType.PUBLIC_RESTROOM: "Look for signage; some are in parks or stations.",
        PlaceType.SHOPPING_MALL: "Clean restrooms—check atrium or food court.",
        PlaceType.COFFEE_SHOP: "Kindly ask staff to use the restroom.",
        PlaceType.RESTAURANT: "Most restaurants will let you use it if you ask.",
        PlaceType.SUPERMARKET: "Often near the customer service area.",
        PlaceType.FAST_FOOD: "Usually available for customers—ask staff.",
        PlaceType.FUEL: "Gas stations often have public toilets.",
        PlaceType.CONVENIENCE: "Small shops sometimes have restrooms—ask politely.",
        PlaceType.PARK: "Some parks have public toilets near entrances.",
    },
    Language.DE: {
        PlaceType.PUBLIC_RESTROOM: "Auf Beschilderung achten; oft in Parks/Bahnhöfen.",
        PlaceType.SHOPPING_MALL: "Saubere Toiletten – Atrium oder Food-Court.",
        PlaceType.COFFEE_SHOP: "Höflich fragen, ob Sie die Toilette benutzen dürfen.",
        PlaceType.RESTAURANT: "Viele Restaurants erlauben die Nutzung auf Anfrage.",
        PlaceType.SUPERMARKET: "Oft in der Nähe vom Kundenservice.",
        PlaceType.FAST_FOOD: "Meist für Gäste – bitte Personal fragen.",
        PlaceType.FUEL: "Tankstellen haben häufig öffentliche Toiletten.",
        PlaceType.CONVENIENCE: "Kleine Läden haben manchmal Toiletten – freundlich fragen.",
        PlaceType.PARK: "In Parks oft nahe den Eingängen.",
    },
    Language.ZH: {
        PlaceType.PUBLIC_RESTROOM: "留意指示牌；常在公园或车站附近。",
        PlaceType.SHOPPING_MALL: "商场洗手间较干净—中庭或美食区附近。",
        PlaceType.COFFEE_SHOP: "礼貌询问店员是否可使用洗手间。",
        PlaceType.RESTAURANT: "很多餐馆会在你询问后允许使用。",
        PlaceType.SUPERMARKET: "通常在客服台附近。",
        PlaceType.FAST_FOOD: "通常为顾客开放—先询问店员。",
        PlaceType.FUEL: "加油站常有公共洗手间。",
        PlaceType.CONVENIENCE: "小店有时也有洗手间—礼貌询问。",
        PlaceType.PARK: "一些公园入口附近设有公厕。",
    },
}


def tip_for(place_type: PlaceType, language) -> str:
    table = TIPS[Language.normalize(language)]
    # generic places get the restroom hint
    return table.get(place_type, table[PlaceType.PUBLIC_RESTROOM])


class Suggestion(BaseModel):
    name: str
    type: str
    lat: float
    lon: float
    tips: str = ""
