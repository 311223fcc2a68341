from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any, Dict

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base

from ..errors import StoreError


Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_data(data: Dict[str, Any]) -> str:
    return json.dumps(data, default=_json_default)


def decode_data(raw: str) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise StoreError("decode", f"corrupt document: {exc}") from exc
    return value if isinstance(value, dict) else {}


class DocumentRow(Base):
    """One JSON record of a collection, scoped by the app namespace."""

    __tablename__ = "documents"

    namespace = Column(String(128), primary_key=True)
    collection = Column(String(64), primary_key=True)
    id = Column(String(64), primary_key=True)
    data_json = Column(Text, default="{}", nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def data(self) -> Dict[str, Any]:
        return decode_data(self.data_json)

    def set_data(self, data: Dict[str, Any]) -> None:
        self.data_json = encode_data(data)
