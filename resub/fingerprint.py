# =============================================================================
# Resub -- Subscription Fingerprint
# =============================================================================
#
# Identity key for deduplicating subscribe requests.  The key is canonical
# JSON, so two requests share a key only if their values are equal.
#
# Values orjson cannot represent exactly are tagged before encoding:
#   ints outside 64 bits  -> {"$bigint": "<digits>"}
#   nan / inf / -inf      -> {"$float": "nan" | "inf" | "-inf"}
#   non-str dict keys     -> "$<type>:<value>", e.g. "$int:1"
#   anything else         -> {"$repr": "<type>:<repr>"}
# User dict keys starting with "$" get a second "$", so tags never collide
# with user data.
# =============================================================================

from __future__ import annotations

import math

from collections.abc import Sequence
from typing import Any

import orjson

_OPTIONS = orjson.OPT_SORT_KEYS

_INT_MIN = -(2**63)
_INT_MAX = 2**64 - 1


def fingerprint(name: str, params: Sequence[Any]) -> str:
    """Return the deduplication key for a subscription.

    Args:
        name: Subscription name.
        params: Ordered subscription parameters (JSON-serializable).

    Example::

        >>> fingerprint("feed", [1, {"b": 2, "a": 1}])
        '{"name":"feed","params":[1,{"a":1,"b":2}]}'
    """
    key = {"name": name, "params": [_normalize(p) for p in params]}
    return orjson.dumps(key, option=_OPTIONS).decode()


def _normalize(value: Any) -> Any:
    if isinstance(value, bool) or value is None or isinstance(value, str):
        return value
    if isinstance(value, int):
        if _INT_MIN <= value <= _INT_MAX:
            return value
        return {"$bigint": str(int(value))}
    if isinstance(value, float):
        if math.isfinite(value):
            return value
        return {"$float": "nan" if math.isnan(value) else str(value)}
    if isinstance(value, dict):
        return {_normalize_key(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return _tag_unknown(value)


def _normalize_key(key: Any) -> str:
    if isinstance(key, str):
        return "$" + key if key.startswith("$") else key
    if key is None:
        return "$null"
    if isinstance(key, bool):
        return "$bool:" + ("true" if key else "false")
    if isinstance(key, int):
        return f"$int:{int(key)}"
    if isinstance(key, float):
        return f"$float:{key!r}"
    return f"$repr:{type(key).__qualname__}:{key!r}"


def _tag_unknown(value: Any) -> dict[str, str]:
    return {"$repr": f"{type(value).__qualname__}:{value!r}"}
