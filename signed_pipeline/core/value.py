from __future__ import annotations

from typing import Any, Dict, List, Union

# JSON value model as produced by json.loads.
Value = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]

VALUE_KINDS = ("null", "bool", "number", "string", "sequence", "mapping")


def value_kind(value: Any) -> str:
    """Classify a decoded JSON value into one of VALUE_KINDS.

    bool is checked before number because bool is an int subclass.
    Raises TypeError for anything json.loads cannot produce.
    """

    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "sequence"
    if isinstance(value, dict):
        return "mapping"
    raise TypeError(f"not a JSON value: {type(value).__name__}")
