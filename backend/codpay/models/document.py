from __future__ import annotations

import json
from datetime import date, datetime

from sqlalchemy import String


def load_json(raw, default):
    if not raw:
        return default
    try:
        return json.loads(raw)
    except Exception:
        return default


def dump_json(value) -> str | None:
    if value is None:
        return None
    return json.dumps(value, separators=(",", ":"), default=str)


def parse_datetime(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None) if value.tzinfo else value
    raw = str(value).strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    parsed = datetime.fromisoformat(raw)
    return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed


def parse_date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def iso(value) -> str | None:
    return value.isoformat() if value else None


def ref(value) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


class DocumentMixin:
    """Maps a row to and from the document shape the record store exposes."""

    # dotted document path -> column attribute
    filterable: dict[str, str] = {"id": "id"}

    @classmethod
    def where_clause(cls, path: str, value):
        attr = cls.filterable.get(path)
        if attr is None:
            return None
        column = getattr(cls, attr)
        if value is None:
            return column.is_(None)
        if attr == "id":
            try:
                value = int(value)
            except (TypeError, ValueError):
                return column.is_(None)
        elif isinstance(column.type, String):
            value = str(value)
        return column == value

    def apply_document(self, data: dict) -> None:
        raise NotImplementedError

    def to_dict(self) -> dict:
        raise NotImplementedError
