"""Merging of locally built index settings over the settings already online."""

from typing import Any, Mapping, Optional

# Legacy option names and their current equivalent
RENAMED_SETTINGS = {
    "attributesToIndex": "searchableAttributes",
}

# Options never carried over from the online settings
DEPRECATED_SETTINGS = ("slaves", "replicas")


def _apply_renames(index_settings: Mapping[str, Any]) -> dict:
    renamed = dict(index_settings)
    for old_name, new_name in RENAMED_SETTINGS.items():
        if old_name in renamed:
            renamed[new_name] = renamed.pop(old_name)
    return renamed


def merge_settings(
    base: Optional[Mapping[str, Any]],
    override: Mapping[str, Any],
) -> dict:
    """
    Overlay ``override`` on ``base``.

    Rules:
    1. Legacy names are renamed in both maps independently
    2. Deprecated options (replica lists) are removed from ``base`` only
    3. Each key of ``override`` replaces the ``base`` value wholesale;
       keys only present in ``base`` are preserved

    A missing base (no settings online, engine unavailable) is treated as
    an empty map. Neither input is modified.

    Examples:
        >>> merge_settings(None, {"attributesToIndex": ["title"]})
        {'searchableAttributes': ['title']}
        >>> merge_settings({"replicas": ["a"], "ranking": ["words"]}, {"ranking": ["typo"]})
        {'ranking': ['typo']}
    """
    merged = _apply_renames(base or {})
    for deprecated in DEPRECATED_SETTINGS:
        merged.pop(deprecated, None)

    merged.update(_apply_renames(override))
    return merged
