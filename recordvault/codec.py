"""
Serialization of AppData to and from the bytes that get encrypted.

The payload is UTF-8 JSON of the form {"categories": [...], "records": [...]}.
The one migration applied on decode: categories written before the
is_enabled flag existed are read back as enabled.
"""

import json
from typing import Any, Dict

from .errors import MalformedPayload
from .models import AppData, Category, RecordItem, OPTIONAL_RECORD_FIELDS


def encode(data: AppData) -> bytes:
    payload = {
        'categories': [c.to_dict() for c in data.categories],
        'records': [r.to_dict() for r in data.records],
    }
    return json.dumps(payload, ensure_ascii=False).encode('utf-8')


def decode(raw: bytes) -> AppData:
    """
    Rebuild AppData from encoded bytes.

    Raises:
        MalformedPayload: If the bytes are not a structurally valid encoding
    """
    try:
        payload = json.loads(raw.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedPayload(f"Payload is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedPayload("Payload must be a JSON object")

    categories = _require(payload, 'categories', list)
    records = _require(payload, 'records', list)
    return AppData(
        categories=[_decode_category(c) for c in categories],
        records=[_decode_record(r) for r in records],
    )


def _require(obj: Dict[str, Any], name: str, kind):
    if name not in obj:
        raise MalformedPayload(f"Missing field '{name}'")
    value = obj[name]
    # bool is an int subclass; ids must be real integers
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise MalformedPayload(f"Field '{name}' has the wrong type")
    return value


def _require_object(obj: Any, what: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise MalformedPayload(f"Each {what} must be a JSON object")
    return obj


def _decode_category(obj: Any) -> Category:
    obj = _require_object(obj, 'category')
    is_enabled = obj.get('is_enabled', True)
    if not isinstance(is_enabled, bool):
        raise MalformedPayload("Field 'is_enabled' has the wrong type")
    return Category(
        category_id=_require(obj, 'category_id', int),
        name=_require(obj, 'name', str),
        created_at=_require(obj, 'created_at', str),
        is_enabled=is_enabled,
    )


def _decode_record(obj: Any) -> RecordItem:
    obj = _require_object(obj, 'record')
    optional = {}
    for name in OPTIONAL_RECORD_FIELDS:
        value = obj.get(name)
        if value is not None and not isinstance(value, str):
            raise MalformedPayload(f"Field '{name}' has the wrong type")
        optional[name] = value
    return RecordItem(
        record_id=_require(obj, 'record_id', int),
        category_id=_require(obj, 'category_id', int),
        name=_require(obj, 'name', str),
        created_at=_require(obj, 'created_at', str),
        **optional
    )
