from flask import abort

from ..db import period_tables

def resolve_period(period: str) -> str:
    """'2010-2011' -> table name, or 404."""
    table = period_tables().get(period)
    if table is None:
        abort(404, description=f"unknown period {period}")
    return table
