"""Rendering of bulk operation results."""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence

from aws_bulk.execution.batch import ProcessResult
from aws_bulk.parser.schemas import OutputFormat

MAX_COLUMNS = 6
MAX_ROWS = 50
MAX_CELL_WIDTH = 30


def clean_value(data: Any) -> Any:
    """Make response data JSON-friendly."""
    if isinstance(data, dict):
        return {k: clean_value(v) for k, v in data.items() if k != "ResponseMetadata"}
    elif isinstance(data, (list, tuple, set)):
        return [clean_value(item) for item in data]
    elif isinstance(data, datetime):
        return data.isoformat()
    elif isinstance(data, Decimal):
        return int(data) if data == data.to_integral_value() else float(data)
    elif isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def format_as_table(data: Sequence[dict[str, Any]]) -> str | None:
    """Format records as a markdown table, capped in columns, rows and cell width."""
    if not data or not isinstance(data[0], dict):
        return None

    headers = list(data[0].keys())[:MAX_COLUMNS]

    col_widths = [min(MAX_CELL_WIDTH, len(h)) for h in headers]
    for row in data[:20]:
        for i, h in enumerate(headers):
            if h in row:
                val = str(row[h])[:MAX_CELL_WIDTH]
                col_widths[i] = min(MAX_CELL_WIDTH, max(col_widths[i], len(val)))

    lines = []
    lines.append("| " + " | ".join(h.ljust(col_widths[i]) for i, h in enumerate(headers)) + " |")
    lines.append("| " + " | ".join("-" * w for w in col_widths) + " |")

    for row in data[:MAX_ROWS]:
        cells = [
            str(row.get(h, ""))[:MAX_CELL_WIDTH].ljust(col_widths[i])
            for i, h in enumerate(headers)
        ]
        lines.append("| " + " | ".join(cells) + " |")

    if len(data) > MAX_ROWS:
        lines.append(f"... and {len(data) - MAX_ROWS} more rows")

    return "\n".join(lines)


def render_records(records: Sequence[dict[str, Any]], fmt: OutputFormat) -> str:
    """Render records in the requested output format."""
    cleaned = clean_value(list(records))
    if fmt == OutputFormat.JSON:
        return json.dumps(cleaned, indent=2, default=str)
    if fmt == OutputFormat.JSONL:
        return "\n".join(json.dumps(record, default=str) for record in cleaned)
    return format_as_table(cleaned) or ""


def render_summary(operation: str, result: ProcessResult, done_verb: str = "processed") -> str:
    """One-line summary such as ``Batch send complete: 23 sent, 0 failed``."""
    return (
        f"Batch {operation} complete: {len(result.processed)} {done_verb}, "
        f"{len(result.failed)} failed ({result.total_batches} batches)"
    )


def render_result(result: ProcessResult, fmt: OutputFormat) -> str | None:
    """Render a result for machine-readable formats; tables only list failed items."""
    if fmt == OutputFormat.TABLE:
        return format_as_table(clean_value(result.failed)) if result.failed else None
    payload = {
        **result.to_dict(),
        "failed_items": clean_value(result.failed),
    }
    if fmt == OutputFormat.JSONL:
        return json.dumps(payload, default=str)
    return json.dumps(payload, indent=2, default=str)
