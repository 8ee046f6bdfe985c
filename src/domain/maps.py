"""Map-name normalization."""

from __future__ import annotations

UNKNOWN_MAP = "Unknown"

KNOWN_MAPS = {
    "de_mirage": "Mirage",
    "de_inferno": "Inferno",
    "de_dust2": "Dust 2",
    "de_nuke": "Nuke",
    "de_overpass": "Overpass",
    "de_vertigo": "Vertigo",
    "de_ancient": "Ancient",
    "de_anubis": "Anubis",
    "de_train": "Train",
    "de_cache": "Cache",
    "cs_office": "Office",
    "cs_italy": "Italy",
}


def normalize_map_name(raw_name: object) -> str:
    """Map a raw upstream map identifier to its display name."""
    if raw_name is None:
        return UNKNOWN_MAP
    name = str(raw_name).strip()
    if not name:
        return UNKNOWN_MAP
    if name in KNOWN_MAPS:
        return KNOWN_MAPS[name]
    if name.startswith("de_") and len(name) > 3:
        remainder = name[3:]
        return remainder[0].upper() + remainder[1:]
    # Numeric values are match ids leaking into the map field.
    if name.isdigit():
        return UNKNOWN_MAP
    return name


__all__ = ["KNOWN_MAPS", "UNKNOWN_MAP", "normalize_map_name"]
