"""
Record serialization helpers.

Persisted records are flat JSON objects with camelCase keys. Decimals are
written as exact JSON number literals (``str(decimal)``, scale included),
enums as their integer ordinals and datetimes as ISO-8601 strings.
"""

import json
import re
import uuid
from dataclasses import fields
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


_CAMEL_BOUNDARY = re.compile(r'_([a-z])')


def to_camel(name: str) -> str:
    """Convert a snake_case attribute name to its camelCase storage key."""
    return _CAMEL_BOUNDARY.sub(lambda m: m.group(1).upper(), name)


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output. Decimals are kept for ``encode_json``."""
    if isinstance(value, Decimal):
        return value
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [serialize_value(v) for v in value]
    elif hasattr(value, 'to_dict'):
        return value.to_dict()
    return value


def record_to_dict(obj: Any) -> Dict[str, Any]:
    """Convert a dataclass record to a camelCase dictionary.

    Uses ``dataclasses.fields()`` + ``getattr`` rather than ``asdict()`` so
    nested records are serialized through their own ``to_dict``.
    """
    return {to_camel(f.name): serialize_value(getattr(obj, f.name)) for f in fields(obj)}


def parse_decimal(value: Any, default: str = "0") -> Decimal:
    """Read a stored number back as an exact Decimal."""
    if value is None:
        return Decimal(default)
    if isinstance(value, Decimal):
        return value
    # str() first so floats map to their shortest repr, not their binary expansion
    return Decimal(str(value))


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Read a stored ISO-8601 timestamp."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def encode_json(value: Any, indent: Optional[int] = None) -> str:
    """Encode to JSON text, writing every Decimal as its exact number literal.

    ``json`` can only emit floats, so each Decimal is first swapped for a
    token string unique to this call and the quoted token is then replaced by
    ``str(decimal)``.
    """
    nonce = uuid.uuid4().hex
    literals: Dict[str, str] = {}

    def mark(obj: Any) -> Any:
        if isinstance(obj, Decimal):
            if not obj.is_finite():
                raise ValueError(f"Cannot encode non-finite decimal {obj}")
            token = f"{nonce}:{len(literals)}"
            literals[token] = str(obj)
            return token
        if isinstance(obj, dict):
            return {k: mark(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [mark(v) for v in obj]
        return obj

    text = json.dumps(mark(value), indent=indent, ensure_ascii=False, default=str)
    if not literals:
        return text
    token_pattern = re.compile('"(' + nonce + r':\d+)"')
    return token_pattern.sub(lambda m: literals[m.group(1)], text)
