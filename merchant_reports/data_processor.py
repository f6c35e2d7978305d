# merchant_reports/data_processor.py
import logging
from typing import List, Any, Iterator, Tuple

from .models import ApiResponse, FlattenedRow, JsonValue

logger = logging.getLogger(__name__)

def extract_results(response: ApiResponse) -> List[Any]:
    """Returns the page's result records. A missing `results` field is an empty page."""
    if response.results is None:
        logger.debug("Response has no 'results' field, treating page as empty.")
        return []
    return list(response.results)

def flatten_record(record: JsonValue) -> FlattenedRow:
    """
    Collapses nested mappings into one level with dot-joined keys:
    {"productView": {"title": "x"}} -> {"productView.title": "x"}.

    Lists and scalars are leaves, kept as-is under their full path. Keys come out in
    depth-first, insertion order. Uses an explicit stack so nesting depth is not bounded
    by the interpreter's recursion limit.
    """
    if not isinstance(record, dict):
        logger.warning(f"Record is not a dictionary (type: {type(record)}). Wrapping it as {{ 'value': record }}.")
        record = {"value": record}

    flattened: FlattenedRow = {}
    stack: List[Tuple[str, Iterator[Tuple[str, JsonValue]]]] = [("", iter(record.items()))]

    while stack:
        prefix, fields = stack[-1]
        try:
            key, value = next(fields)
        except StopIteration:
            stack.pop()
            continue

        path = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            stack.append((path, iter(value.items())))
            continue

        if path in flattened:
            logger.warning(f"Flattened key '{path}' produced twice (a field name contains '.'). Keeping the later value.")
        flattened[path] = value

    return flattened

def flatten_records(records: List[JsonValue]) -> List[FlattenedRow]:
    """One flattened row per input record, in input order."""
    rows = [flatten_record(record) for record in records]
    logger.debug(f"Flattened {len(rows)} records.")
    return rows

def rows_to_table(rows: List[FlattenedRow]) -> Tuple[List[str], List[List[Any]]]:
    """
    Shapes flattened rows into (headers, values) for sink implementations that write a grid;
    export_report hands sinks the rows themselves.
    Headers are every key seen, in order of first appearance; missing cells are None.
    """
    headers: List[str] = []
    seen = set()
    for row in rows:
        for key in row:
            if key not in seen:
                seen.add(key)
                headers.append(key)

    values = [[row.get(header) for header in headers] for row in rows]
    return headers, values
