"""
starter/typegen.py
Regenerate starter/database_types.py from the live database schema.

Usage:
  python -m starter.typegen                  # rewrite starter/database_types.py
  python -m starter.typegen --schema public --output path/to/types.py
  python -m starter.typegen --check          # exit 1 when the file is stale

Reads information_schema.columns over the direct Postgres connection
(DB_HOST / DB_PORT / DB_NAME / DB_USER / DB_PASSWORD) and writes one
TypedDict per table describing the row shape PostgREST returns.
"""

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd
from psycopg2.extras import RealDictCursor

from starter.clients import get_pg_connection

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = Path(__file__).resolve().parent / "database_types.py"

_COLUMNS_SQL = """
    SELECT  table_name, column_name, data_type, udt_name,
            is_nullable, ordinal_position
    FROM    information_schema.columns
    WHERE   table_schema = %s
    ORDER BY table_name, ordinal_position
"""

# Postgres udt_name → Python annotation, as decoded from PostgREST JSON.
_UDT_TYPES = {
    "bool":        "bool",
    "int2":        "int",
    "int4":        "int",
    "int8":        "int",
    "float4":      "float",
    "float8":      "float",
    "numeric":     "float",
    "json":        "Any",
    "jsonb":       "Any",
    "text":        "str",
    "varchar":     "str",
    "bpchar":      "str",
    "uuid":        "str",
    "date":        "str",
    "time":        "str",
    "timetz":      "str",
    "timestamp":   "str",
    "timestamptz": "str",
    "interval":    "str",
    "bytea":       "str",
}


def load_columns(schema: str) -> pd.DataFrame:
    """
    Return one row per column of every table and view in schema.

    Returns an empty DataFrame (never None) when the schema has no tables.
    """
    conn = get_pg_connection()
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(_COLUMNS_SQL, (schema,))
            rows = cur.fetchall()
            if not rows:
                return pd.DataFrame()
            return pd.DataFrame(rows)
    finally:
        conn.close()


def python_type(data_type: str, udt_name: str) -> str:
    """Map an information_schema column type onto a Python annotation string."""
    if data_type == "ARRAY":
        return f"list[{_UDT_TYPES.get(udt_name.lstrip('_'), 'Any')}]"
    if data_type == "USER-DEFINED":
        # Enums come back as their label.
        return "str"
    return _UDT_TYPES.get(udt_name, "Any")


def class_name(table_name: str) -> str:
    """profiles → ProfilesRow, user_settings → UserSettingsRow."""
    return "".join(part.capitalize() for part in table_name.split("_") if part) + "Row"


def render_module(columns: pd.DataFrame, schema: str = "public") -> str:
    """Render the source of database_types.py for the given column listing."""
    out = [
        '"""',
        "starter/database_types.py",
        f"Row types for the {schema} schema.",
        "Generated by `python -m starter.typegen`; do not edit by hand.",
        '"""',
        "",
        "from typing import Any, TypedDict",
        "",
    ]

    table_classes = []
    if not columns.empty:
        for table_name, table_cols in columns.groupby("table_name", sort=True):
            name = class_name(table_name)
            table_classes.append((table_name, name))
            out += ["", f"class {name}(TypedDict):"]
            for _, col in table_cols.sort_values("ordinal_position").iterrows():
                annotation = python_type(col["data_type"], col["udt_name"])
                if col["is_nullable"] == "YES":
                    annotation = f"{annotation} | None"
                out.append(f"    {col['column_name']}: {annotation}")
            out.append("")

    out += ["", "TABLES = {"]
    out += [f'    "{table_name}": {name},' for table_name, name in table_classes]
    out += ["}", ""]
    return "\n".join(out)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python -m starter.typegen",
        description="Regenerate row TypedDicts from the Supabase database schema.",
    )
    parser.add_argument("--schema", default="public", help="Postgres schema to introspect (default: public)")
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT, help="File to write")
    parser.add_argument("--check", action="store_true", help="Do not write; exit 1 if the file is out of date")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
    )

    columns = load_columns(args.schema)
    if columns.empty:
        logger.warning("Schema %s has no tables; writing an empty TABLES mapping", args.schema)
    source = render_module(columns, args.schema)

    if args.check:
        current = args.output.read_text(encoding="utf-8") if args.output.exists() else ""
        if current != source:
            logger.error("%s is out of date, run `python -m starter.typegen`", args.output)
            return 1
        logger.info("%s is up to date", args.output)
        return 0

    args.output.write_text(source, encoding="utf-8")
    logger.info("Wrote %d table types to %s", columns["table_name"].nunique() if not columns.empty else 0, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
