import logging
import re
import sqlite3
from typing import Any, Dict, List, Sequence

import pandas as pd

from .errors import InvalidArgumentError

logger = logging.getLogger(__name__)

_SAMPLE_ROWS = 5


def collect_columns(results: Sequence[Dict[str, Any]]) -> List[str]:
    """
    Collect every path found across flatten results.

    Columns keep first-seen order, so the first result's traversal order
    leads and paths only present in later results are appended.
    """
    columns: Dict[str, None] = {}
    for result in results:
        for path in result:
            columns.setdefault(path, None)
    return list(columns)


def to_dataframe(results: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    """
    Convert flatten results into a DataFrame, one row per result.

    Paths missing from a result are filled with None. Composite values are
    kept as objects; use ``value`` or ``include`` filters beforehand to keep
    only leaves.
    """
    if isinstance(results, dict):
        results = [results]
    columns = collect_columns(results)
    rows = [{column: result.get(column) for column in columns} for result in results]
    return pd.DataFrame(rows, columns=columns, dtype=object)


def sanitize_table_name(table_name: str) -> str:
    """
    Sanitize table name for SQLite by replacing bad characters
    """
    if not isinstance(table_name, str):
        raise InvalidArgumentError("Table name must be a string")

    # Replace bad characters with underscores
    sanitized = re.sub(r'[^a-zA-Z0-9_]', '_', table_name)

    # Ensure it starts with a letter or underscore
    if sanitized and not sanitized[0].isalpha() and sanitized[0] != '_':
        sanitized = '_' + sanitized

    # Ensure it's not empty
    if not sanitized:
        sanitized = 'objects'

    return sanitized


def sanitize_column_name(path: str) -> str:
    """root.items[0].'owner-link' -> root_items_0_owner_link"""
    cleaned = re.sub(r'[^a-zA-Z0-9_]+', '_', path).strip('_')
    return cleaned or 'value'


def write_sqlite(results: Sequence[Dict[str, Any]], table_name: str,
                 conn: sqlite3.Connection) -> Dict[str, Any]:
    """
    Write flatten results to a SQLite table, replacing any existing one.

    Values are stored as text (None stays NULL), because the same path can
    hold differently typed values across results.

    Returns:
        A dictionary containing:
        - table_name: The sanitized table name
        - schema: Dictionary mapping column names to data types
        - row_count: Number of rows in the table
        - sample_data: Up to 5 sample records
    """
    table_name = sanitize_table_name(table_name)

    df = to_dataframe(results)
    if df.columns.empty:
        raise InvalidArgumentError("Nothing to write: the flatten results hold no paths")
    df.columns = _unique_columns([sanitize_column_name(col) for col in df.columns])
    for column in df.columns:
        df[column] = [None if v is None else str(v) for v in df[column]]

    df.to_sql(table_name, conn, if_exists='replace', index=False)
    logger.info(f"Wrote {len(df)} flattened objects to table {table_name}")

    # The table name was sanitized above, so quoting it is sufficient
    quoted = f'"{table_name}"'
    columns_info = conn.execute(f"PRAGMA table_info({quoted})").fetchall()
    schema = {col[1]: col[2] for col in columns_info}

    sample_rows = conn.execute(f"SELECT * FROM {quoted} LIMIT {_SAMPLE_ROWS}").fetchall()
    column_names = [col[1] for col in columns_info]
    sample_data = [dict(zip(column_names, row)) for row in sample_rows]

    row_count = conn.execute(f"SELECT COUNT(*) FROM {quoted}").fetchone()[0]

    return {
        'table_name': table_name,
        'schema': schema,
        'row_count': row_count,
        'sample_data': sample_data
    }


def _unique_columns(columns: List[str]) -> List[str]:
    seen: Dict[str, int] = {}
    unique = []
    for column in columns:
        count = seen.get(column, 0)
        seen[column] = count + 1
        unique.append(column if count == 0 else f"{column}_{count}")
    return unique
