"""Row normalization and result shaping.

Drivers hand back ``datetime``, ``Decimal``, ``UUID``, ``bytes``, and
(for PostgreSQL JSON columns) raw strings. Everything leaving the data
layer is converted to JSON-compatible Python values here so transforms,
views, and the JSON response all see the same shapes.
"""

import base64
import datetime as dt
import uuid
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any


def normalize_value(value: Any) -> Any:
    """Convert one driver value to a JSON-compatible value.

    Timestamps become ISO-8601 strings, ``Decimal`` becomes ``int`` when
    integral and ``float`` otherwise, ``UUID`` becomes ``str``, bytes
    become base64 text. Containers are normalized recursively.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, dt.timedelta):
        return value.total_seconds()
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Mapping):
        return {str(k): normalize_value(v) for k, v in value.items()}
    if isinstance(value, Sequence):
        return [normalize_value(v) for v in value]
    return str(value)


def normalize_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize every column of *row*, preserving column order."""
    return {key: normalize_value(value) for key, value in row.items()}


def shape_rows(rows: Sequence[Mapping[str, Any]]) -> Any:
    """Shape a row set into the data-call result.

    Zero rows is ``None``, one row is a dict, more rows a list of dicts.
    """
    if not rows:
        return None
    if len(rows) == 1:
        return normalize_row(rows[0])
    return [normalize_row(row) for row in rows]
