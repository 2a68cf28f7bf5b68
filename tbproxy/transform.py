"""Reshaping of upstream payloads into client-facing shapes."""

from typing import Any, Iterable, Mapping


def attributes_to_map(records: Iterable[Mapping[str, Any]]) -> dict[str, dict]:
    """
    Convert an upstream attribute list into a mapping keyed by attribute name.

    Records are applied in order, so a key that appears twice keeps the
    value and timestamp of its last occurrence.

    Parameters
    ----------
    records : Iterable[Mapping]
        Upstream records with "key", "value" and "lastUpdateTs" fields

    Returns
    -------
    dict
        Mapping of key to {"value": ..., "ts": ...}

    Examples
    --------
    >>> attributes_to_map([{"key": "latitude", "value": 1, "lastUpdateTs": 10}])
    {'latitude': {'value': 1, 'ts': 10}}
    """
    result = {}
    for record in records:
        result[record.get("key")] = {
            "value": record.get("value"),
            "ts": record.get("lastUpdateTs"),
        }
    return result
