from __future__ import annotations

from typing import Dict, List, Optional
import os
import yaml

from .models.graph import ColorPalette

DEFAULT_NODE_HIGHLIGHT = "#f6ff00"
DEFAULT_LINK_HIGHLIGHT = "#FFA500"

_PALETTES_PATH = os.path.join(os.path.dirname(__file__), "palettes.yml")
_cache: Optional[List[ColorPalette]] = None


def load_palettes(path: Optional[str] = None) -> List[ColorPalette]:
    with open(path or _PALETTES_PATH, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    out: List[ColorPalette] = []
    for item in data:
        out.append(ColorPalette(
            id=item["id"],
            name=item.get("name", item["id"]),
            colors=[str(c).strip() for c in item.get("colors", [])],
            nodeHighlight=item.get("nodeHighlight", DEFAULT_NODE_HIGHLIGHT),
            linkHighlight=item.get("linkHighlight", DEFAULT_LINK_HIGHLIGHT),
            textColor=str(item.get("textColor", "white")),
        ))
    return out


def all_palettes() -> List[ColorPalette]:
    global _cache
    if _cache is None:
        _cache = load_palettes()
    return _cache


def palettes_by_id() -> Dict[str, ColorPalette]:
    return {p.id: p for p in all_palettes()}


def default_palette() -> ColorPalette:
    return all_palettes()[0]


def has_palette(palette_id: str) -> bool:
    return palette_id in palettes_by_id()


def get_palette(palette_id: Optional[str]) -> ColorPalette:
    """Look up a palette by id; unknown ids fall back to the first palette."""
    if palette_id:
        p = palettes_by_id().get(palette_id)
        if p is not None:
            return p
    return default_palette()
