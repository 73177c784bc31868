"""Metadata slot keys and member category constants."""

from __future__ import annotations

__all__ = [
    "KEY_PREFIX",
    "PROPS",
    "ACTIONS",
    "FLOWS",
    "VIEWS",
    "VOLATILES",
    "CATEGORIES",
    "get_tag_key",
    "TYPE_KEY",
    "PROPS_KEY",
    "ACTIONS_KEY",
    "FLOWS_KEY",
    "VIEWS_KEY",
    "VOLATILES_KEY",
]

KEY_PREFIX = "__treeclass_"

PROPS = "props"
ACTIONS = "actions"
FLOWS = "flows"
VIEWS = "views"
VOLATILES = "volatiles"

# Member categories collected into per-class slots (props is a mapping, the rest are lists)
CATEGORIES: tuple[str, ...] = (PROPS, ACTIONS, FLOWS, VIEWS, VOLATILES)


def get_tag_key(tag: str) -> str:
    """Return the class attribute name that holds the slot for ``tag``."""
    if not isinstance(tag, str) or not tag.strip():
        raise ValueError(f"tag must be a non-empty string (got {tag!r})")
    return f"{KEY_PREFIX}{tag.strip()}"


TYPE_KEY = get_tag_key("type")
PROPS_KEY = get_tag_key(PROPS)
ACTIONS_KEY = get_tag_key(ACTIONS)
FLOWS_KEY = get_tag_key(FLOWS)
VIEWS_KEY = get_tag_key(VIEWS)
VOLATILES_KEY = get_tag_key(VOLATILES)
