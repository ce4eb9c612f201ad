"""
JSON serialization of emitted records.

Query results carry driver types (``Decimal`` for numeric columns, dates,
arrays). The encoder turns them into plain JSON values so that every record
can be written as one JSON object.
"""

import json
from collections import OrderedDict
from datetime import date, datetime, timedelta
from decimal import Decimal


class UniversalJSONEncoder(json.JSONEncoder):
    """
    JSON encoder for values coming out of PostgreSQL result sets.

    Usage:
        json.dumps(data, cls=UniversalJSONEncoder)
    """

    def default(self, obj):
        if isinstance(obj, Decimal):
            # Integral numerics (sizes, counters) stay integers
            if obj == obj.to_integral_value():
                return int(obj)
            return float(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, timedelta):
            return obj.total_seconds()
        if isinstance(obj, bytes):
            return obj.decode('utf-8', errors='replace')
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        return super().default(obj)


def safe_json_dumps(obj, **kwargs):
    """
    Serializes ``obj`` with ``UniversalJSONEncoder`` unless another encoder
    class is passed explicitly.
    """
    kwargs.setdefault('cls', UniversalJSONEncoder)
    return json.dumps(obj, **kwargs)


def record_to_json(record):
    """Serializes a record as a JSON object whose keys follow the record's field order."""
    return safe_json_dumps(OrderedDict(record.ordered_items()), ensure_ascii=False)
