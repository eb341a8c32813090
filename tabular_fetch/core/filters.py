"""
Filter and sort helpers for the core module.

Filters reach the fetch engine either as a list of conditions
(`{"operator": "equal", "field": ..., "value": ...}`) or as an already built
query mapping operator kinds to `{field: value}`. Only equality is supported.
The row helpers are the client-side fallbacks used when a backend cannot
search or sort natively.
"""

from typing import Any

OPERATORS = ["equal"]


def build_query(filter: list[dict] | dict | None) -> dict[str, dict[str, Any]]:
    """Build a `{operator: {field: value}}` query from filter conditions."""
    if not filter:
        return {}
    if isinstance(filter, dict):
        for operator in filter:
            if operator not in OPERATORS:
                raise ValueError(f"operator '{operator}' is not supported")
        return {operator: dict(fields) for operator, fields in filter.items() if fields}
    query: dict[str, dict[str, Any]] = {}
    for condition in filter:
        operator = condition.get("operator", "equal")
        if operator not in OPERATORS:
            raise ValueError(f"operator '{operator}' is not supported")
        if not condition.get("field"):
            raise ValueError(f"condition '{condition}' could not be parsed")
        # conditions without a value are still being edited in the UI
        if condition.get("value") in (None, ""):
            continue
        query.setdefault(operator, {})[condition["field"]] = condition["value"]
    return query


def run_query(rows: list[dict], query: dict[str, dict[str, Any]]) -> list[dict]:
    """Filter rows in memory with the same semantics as a backend search."""
    equal = query.get("equal") or {}
    if not equal:
        return rows
    return [
        row
        for row in rows
        # values are compared as strings, the way they are typed in the UI
        if all(str(row.get(column)) == str(value) for column, value in equal.items())
    ]


def normalize_sort_order(order: str | None) -> str | None:
    """Map "ascending"/"Descending"/... to the two-value "asc"/"desc" vocabulary."""
    if not order:
        return None
    return order.lower().replace("ending", "")


def sort_rows(
    rows: list[dict], column: str | None, order: str | None = "ascending"
) -> list[dict]:
    """Sort rows in memory, rows missing the column always come last."""
    if not column:
        return rows
    present = [row for row in rows if row.get(column) is not None]
    missing = [row for row in rows if row.get(column) is None]
    try:
        present.sort(key=lambda row: row[column], reverse=normalize_sort_order(order) == "desc")
    except TypeError:
        # mixed types, fall back to their string representation
        present.sort(
            key=lambda row: str(row[column]), reverse=normalize_sort_order(order) == "desc"
        )
    return present + missing
