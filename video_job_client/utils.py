import re
from typing import Any, Mapping

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def camel_to_snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


def to_snake_case(data: Any) -> Any:
    """Recursively rename mapping keys from camelCase to snake_case.

    Lists are walked element by element and anything that isn't a mapping or
    a list is returned untouched, so snake_case input comes back unchanged.
    """
    if isinstance(data, Mapping):
        return {
            camel_to_snake(key) if isinstance(key, str) else key: to_snake_case(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [to_snake_case(item) for item in data]
    return data


def is_media_audio(data: Mapping[str, Any]) -> bool:
    """Audio media ids carry an ``a-`` prefix"""
    media_id = data.get("id")
    return isinstance(media_id, str) and media_id.startswith("a-")
