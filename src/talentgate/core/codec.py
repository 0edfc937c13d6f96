from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from talentgate.types import COLLECTION_FIELDS


class CollectionDecodeError(ValueError):
    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field


def _coerce(field: str, value: Any) -> Any:
    if value is None or value == "":
        return []
    if isinstance(value, (str, bytes)):
        try:
            return json.loads(value)
        except json.JSONDecodeError as exc:
            raise CollectionDecodeError(field, f"invalid JSON ({exc.msg})") from exc
    return value


def encode_collection(field: str, value: Any) -> list[Any]:
    """Validate one structured collection and return its storable form.

    Accepts a list of entries or its JSON text, the two shapes clients send.
    Rows written before the JSON columns existed hold text, so reads go
    through the same path.
    """
    adapter = COLLECTION_FIELDS[field]
    try:
        items = adapter.validate_python(_coerce(field, value))
    except ValidationError as exc:
        raise CollectionDecodeError(field, _first_error(exc)) from exc
    return adapter.dump_python(items, mode="json")


decode_collection = encode_collection


def encode_collections(values: dict[str, Any]) -> dict[str, list[Any]]:
    return {field: encode_collection(field, values.get(field)) for field in COLLECTION_FIELDS}


def decode_collections(record: Any) -> dict[str, list[Any]]:
    return {field: decode_collection(field, getattr(record, field)) for field in COLLECTION_FIELDS}


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location} {error.get('msg', 'invalid')}".strip()
