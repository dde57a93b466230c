"""
Row -> JSON-safe dict conversion for API responses
"""
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional

HIDDEN_COLUMNS = {"hashed_password"}


def row_to_dict(row, exclude: Iterable[str] = ()) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    skip = HIDDEN_COLUMNS | set(exclude)
    data: Dict[str, Any] = {}
    for column in row.__table__.columns:
        if column.key in skip:
            continue
        value = getattr(row, column.key)
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        data[column.key] = value
    return data
