"""
Shared model helpers
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict
from uuid import uuid4

from sqlalchemy import inspect


def new_id() -> str:
    """Primary key generator for string-keyed tables"""
    return str(uuid4())


def _json_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


class SerializableMixin:
    """Column-level dict conversion used by the functions gateway"""

    # Attribute names excluded from to_dict() (e.g. password hashes)
    __private_fields__: frozenset = frozenset()

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to a JSON-ready dictionary"""
        mapper = inspect(self).mapper
        return {
            attr.key: _json_value(getattr(self, attr.key))
            for attr in mapper.column_attrs
            if attr.key not in self.__private_fields__
        }
