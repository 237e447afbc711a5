# catalog/utils/normalize.py
"""
Helpers that turn loosely-typed request fields (form strings, JSON values)
into the types stored on a Product.
"""
import json
import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from catalog.core.errors import ValidationError

logger = logging.getLogger(__name__)

# specification keys every product carries, even when empty
SPEC_FIELDS = (
    "category",
    "subCategory",
    "composition",
    "gsm",
    "width",
    "count",
    "construction",
    "weave",
    "finish",
)

_TRUE = ("1", "true", "yes", "y", "t", "on")
_FALSE = ("0", "false", "no", "n", "f", "off")


def default_specifications() -> Dict[str, str]:
    return {k: "" for k in SPEC_FIELDS}


def normalize_tags(value: Any) -> List[str]:
    """
    "a, b ,c" -> ["a", "b", "c"]. Sequences are kept in order with each element
    stripped, so normalizing an already-normalized list returns it unchanged.
    """
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [t.strip() for t in value.split(",")]
    if isinstance(value, Iterable):
        return [str(t).strip() for t in value if t is not None]
    return [str(value).strip()]


def parse_specifications(raw: Any) -> Optional[Dict[str, str]]:
    """
    Accept a mapping or JSON text holding an object. Returns None when the
    payload is absent or malformed so callers can rebuild from flat fields.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring malformed specifications payload: %s", e)
            return None
    if not isinstance(raw, Mapping):
        logger.warning("Ignoring specifications payload of type %s", type(raw).__name__)
        return None
    return {str(k): "" if v is None else str(v) for k, v in raw.items()}


def build_specifications(
    flat: Mapping[str, Any],
    structured: Any = None,
    existing: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Build the specification map for a create or update.

    A well-formed structured payload replaces everything (standard keys are
    re-defaulted to ""). Otherwise the flat fields that were provided are
    merged key by key over `existing` (or over empty defaults on create).
    """
    parsed = parse_specifications(structured)
    if parsed is not None:
        specs = default_specifications()
        specs.update(parsed)
        return specs

    specs = default_specifications()
    if existing:
        specs.update(existing)
    for key in SPEC_FIELDS:
        value = flat.get(key)
        if value is None or value == "":
            continue
        specs[key] = str(value)
    return specs


def parse_price(value: Any, default: float = 0.0) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise ValidationError("price must be a number")
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"price must be a number, got {value!r}")
    if math.isnan(price) or math.isinf(price):
        raise ValidationError(f"price must be a finite number, got {value!r}")
    if price < 0:
        raise ValidationError("price must not be negative")
    return price


def parse_bool(value: Any, default: bool = True) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    s = str(value).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValidationError(f"inStock must be a boolean, got {value!r}")


def clean_text(value: Any) -> Optional[str]:
    """Strip text fields; empty or missing values come back as None (treated as not provided)."""
    if value is None:
        return None
    s = str(value).strip()
    return s or None
