"""Conversion of decoded event arguments into JSON-safe values."""

from collections.abc import Mapping
from typing import Any

# Largest integer a JSON consumer can hold in a double without losing precision
MAX_SAFE_INTEGER = 2**53 - 1

JsonValue = str | int | float | bool | None | list["JsonValue"] | dict[str, "JsonValue"]


def normalize_event_value(value: Any) -> JsonValue:
    """Recursively reduce a value to str, int, float, bool, None, list or dict.

    Integers beyond MAX_SAFE_INTEGER become decimal strings. Bytes become 0x
    hex. Anything unrecognised is rendered with str().
    """
    if value is None or isinstance(value, (bool, str, float)):
        return value
    if isinstance(value, int):
        if abs(value) > MAX_SAFE_INTEGER:
            return str(value)
        return value
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, Mapping):
        return {str(key): normalize_event_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_event_value(item) for item in value]
    return str(value)


def normalize_event_args(args: Mapping[str, Any] | None) -> dict[str, JsonValue] | None:
    if args is None:
        return None
    return {str(key): normalize_event_value(item) for key, item in args.items()}
