"""Utility helpers shared by the essencekit configuration loader."""

from __future__ import annotations

import typing as typ

from .models import SiteConfigError


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_bool(value: object, *, field: str) -> bool:
    """Return ``value`` as a boolean, rejecting anything but real booleans."""
    match value:
        case None:
            return False
        case bool():
            return value
        case _:
            msg = f"'{field}' must be true or false, got {value!r}."
            raise SiteConfigError(msg)


def _string_list(value: object, *, field: str) -> list[str]:
    """Normalize a string or list of strings into a list of non-empty strings."""
    match value:
        case None:
            return []
        case str():
            return [value] if value.strip() else []
        case list():
            return [text for item in value if (text := _optional_str(item))]
        case _:
            msg = f"'{field}' must be a string or a list of strings."
            raise SiteConfigError(msg)


def _mapping(value: object, *, field: str) -> dict[str, typ.Any]:
    """Return ``value`` as a plain dict, treating ``None`` as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = f"'{field}' must be a mapping."
        raise SiteConfigError(msg)
    return dict(value)


def _string_mapping(value: object, *, field: str) -> dict[str, str]:
    """Return a mapping whose keys and values are all strings."""
    return {str(key): str(item) for key, item in _mapping(value, field=field).items()}


__all__ = [
    "_as_bool",
    "_mapping",
    "_optional_str",
    "_string_list",
    "_string_mapping",
]
