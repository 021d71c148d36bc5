"""
Location normalizer.

Forms send the location in whatever shape the browser produced:
  - plain text typed by the user ("near the lake")
  - a JSON-encoded geolocation object ('{"lat": 12.97, "lng": 77.59}')
  - the same object already decoded (JSON request bodies)

normalize_location() turns any of these into a display string and, when
possible, a Google Maps search link. It never raises: input that looks like
JSON but does not parse is shown as-is.
"""

import json
import math
import re
from typing import Any, Optional
from urllib.parse import quote

from app.models.submission import NormalizedLocation

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query="

# Characters left unescaped by JavaScript's encodeURIComponent; the map links
# are opened by browsers and must match what the web form would build.
_URI_COMPONENT_SAFE = "-_.!~*'()"

# Numeric strings must be spelled the way JSON spells numbers
_JSON_NUMBER = re.compile(r"-?(0|[1-9]\d*)(\.\d+)?([eE][+-]?\d+)?")


def _coordinate_text(value: Any) -> Optional[str]:
    """
    Render a lat/lng value, or None if it is not numeric.

    Numeric strings keep their original text. Integral floats drop the
    trailing ".0" (12.0 -> "12").
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, str):
        text = value.strip()
        if not _JSON_NUMBER.fullmatch(text):
            return None
        if not math.isfinite(float(text)):
            return None
        return text
    return None


def as_text(value: Any) -> str:
    """Coerce a scalar to display text: strings as-is, everything else as JSON."""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def _encode(text: str) -> str:
    return quote(text, safe=_URI_COMPONENT_SAFE)


def search_url(query: str) -> Optional[str]:
    """Build a map search link for free text, or None for blank text."""
    if not query.strip():
        return None
    return MAPS_SEARCH_URL + _encode(query)


def _from_structured(data: Any) -> NormalizedLocation:
    if isinstance(data, dict):
        lat = _coordinate_text(data.get("lat"))
        lng = _coordinate_text(data.get("lng"))
        if lat is not None and lng is not None:
            return NormalizedLocation(
                display_string=f"{lat}, {lng}",
                map_url=f"{MAPS_SEARCH_URL}{_encode(lat)},{_encode(lng)}",
            )
    return NormalizedLocation(
        display_string=json.dumps(data, ensure_ascii=False, separators=(",", ":")),
        map_url=None,
    )


def normalize_location(value: Any) -> NormalizedLocation:
    """
    Normalize a submitted location value.

    Rules, in order:
      1. Strings are parsed as JSON; if that fails the raw string is the
         display value and the map link searches for it
         (no link for blank text).
      2. A mapping with numeric lat and lng becomes "<lat>, <lng>" with a
         coordinate map link.
      3. Any other mapping or list is shown as compact JSON, without a link.
      4. Everything else is coerced to text and searched for.

    Examples:
        >>> normalize_location({"lat": 12.9716, "lng": 77.5946}).display_string
        '12.9716, 77.5946'
        >>> normalize_location("near the lake").map_url
        'https://www.google.com/maps/search/?api=1&query=near%20the%20lake'
    """
    data = value
    if isinstance(value, str):
        try:
            data = json.loads(value)
        except (ValueError, RecursionError):
            return NormalizedLocation(display_string=value, map_url=search_url(value))

    if isinstance(data, (dict, list)):
        return _from_structured(data)

    text = as_text(data)
    return NormalizedLocation(display_string=text, map_url=search_url(text))
