"""Loading bulk-operation input records from JSON, JSONL, CSV and TSV files."""

from __future__ import annotations

import csv
import io
import json
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

from aws_bulk.core.exceptions import InputFileError

logger = structlog.get_logger()


class InputFormat(Enum):
    """Supported input file formats."""

    JSON = "json"
    JSONL = "jsonl"
    CSV = "csv"
    TSV = "tsv"


_EXTENSION_FORMATS = {
    ".csv": InputFormat.CSV,
    ".tsv": InputFormat.TSV,
    ".jsonl": InputFormat.JSONL,
    ".ndjson": InputFormat.JSONL,
}


def detect_format(path: str | Path) -> InputFormat:
    """Pick the format from the file extension; anything unknown is JSON."""
    return _EXTENSION_FORMATS.get(Path(path).suffix.lower(), InputFormat.JSON)


def parse_value(value: str) -> Any:
    """Coerce a CSV cell: booleans and numbers become typed, blanks become None."""
    if value == "":
        return None
    if value == "true":
        return True
    if value == "false":
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def parse_records(content: str, fmt: InputFormat, source: str | None = None) -> list[dict[str, Any]]:
    """
    Parse records from text.

    Args:
        content: Raw file content
        fmt: Format of ``content``
        source: Path used in error messages

    Returns:
        List of records

    Raises:
        InputFileError: When the content cannot be parsed
    """
    if fmt == InputFormat.JSON:
        return _parse_json(content, source)
    if fmt == InputFormat.JSONL:
        return _parse_json_lines(content, source)
    return _parse_delimited(content, "\t" if fmt == InputFormat.TSV else ",")


def load_records(
    path: str | Path,
    fmt: InputFormat | None = None,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """Read and parse an input file."""
    file_path = Path(path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise InputFileError(f"Input file not found: {file_path}", path=str(file_path))
    except (OSError, UnicodeDecodeError) as e:
        raise InputFileError(f"Cannot read input file {file_path}: {e}", path=str(file_path))

    fmt = fmt or detect_format(file_path)
    records = parse_records(content, fmt, str(file_path))
    if limit is not None:
        records = records[:limit]

    logger.debug("input_file_loaded", path=str(file_path), format=fmt.value, records=len(records))
    return records


def _parse_json(content: str, source: str | None) -> list[dict[str, Any]]:
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        raise InputFileError(f"Invalid JSON: {e.msg}", path=source, line=e.lineno, raw=content)
    return parsed if isinstance(parsed, list) else [parsed]


def _parse_json_lines(content: str, source: str | None) -> list[dict[str, Any]]:
    records = []
    for line_number, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise InputFileError(
                f"Invalid JSON on line {line_number}: {e.msg}",
                path=source,
                line=line_number,
                raw=line,
            )
    return records


def _parse_delimited(content: str, delimiter: str) -> list[dict[str, Any]]:
    rows = [row for row in csv.reader(io.StringIO(content), delimiter=delimiter) if any(c.strip() for c in row)]
    if not rows:
        return []

    headers = [h.strip() for h in rows[0]]
    records = []
    for row in rows[1:]:
        record: dict[str, Any] = {}
        for index, raw in enumerate(row):
            header = headers[index] if index < len(headers) else f"column_{index}"
            value = parse_value(raw.strip())
            if value is not None:
                record[header] = value
        records.append(record)
    return records
